"""Route collected rewards to the systems that credit them."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from .events import REWARD_GRANTED_PREFIX, EventBus
from .rewards import GeneratedReward, RewardType

logger = logging.getLogger(__name__)

GrantHandler = Callable[[GeneratedReward], Awaitable[None]]


class RewardFulfillment:
    """Type-dispatch a generated reward to its grant handler."""

    def __init__(self) -> None:
        self._handlers: dict[RewardType, GrantHandler] = {}

    def register(self, reward_type: RewardType, handler: GrantHandler) -> "RewardFulfillment":
        self._handlers[reward_type] = handler
        return self

    def handler_for(self, reward_type: RewardType) -> GrantHandler | None:
        return self._handlers.get(reward_type)

    async def grant(self, reward: GeneratedReward) -> bool:
        reward_type = reward.reward_type
        if reward_type is None:
            logger.warning(
                "Skipping grant of reward without a template (stored id %r).", reward.template_id
            )
            return False
        handler = self._handlers.get(reward_type)
        if handler is None:
            logger.warning("No grant handler registered for %s rewards.", reward_type.value)
            return False
        logger.info(
            "Granting %s reward '%s' x%s.", reward_type.value, reward.template_id, reward.amount
        )
        await handler(reward)
        return True


def grant_payload(reward: GeneratedReward) -> dict:
    template = reward.template
    return {
        "template_id": reward.template_id,
        "amount": reward.amount,
        "resource_id": reward.resource_id,
        "building_id": template.building_id if template else None,
        "is_super_reward": reward.is_super_reward,
    }


def default_fulfillment(event_bus: EventBus) -> RewardFulfillment:
    """Publish ``reward.granted.<type>`` for every reward type."""
    fulfillment = RewardFulfillment()

    def _publisher(reward_type: RewardType) -> GrantHandler:
        async def handler(reward: GeneratedReward) -> None:
            if reward_type == RewardType.RESOURCE and reward.resource is None:
                logger.warning("Resource reward '%s' has no resource; nothing to credit.",
                               reward.template_id)
                return
            await event_bus.publish(
                f"{REWARD_GRANTED_PREFIX}.{reward_type.value}", grant_payload(reward)
            )

        return handler

    for reward_type in RewardType:
        fulfillment.register(reward_type, _publisher(reward_type))
    return fulfillment

"""Campaign orchestration: sessions, ad unlocks, grants and persistence per user."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Sequence

from .ads import AdGate, AdProvider
from .economy import ResourceRegistry
from .events import COOLDOWN_STARTED, CYCLE_STARTED, REVEAL_EXPIRED, SLOT_COLLECTED, EventBus
from .exceptions import InvalidSnapshot
from .fulfillment import RewardFulfillment
from .pool import RewardPool
from .rewards import GeneratedReward, RewardCatalog
from .session import (
    Clock,
    RewardSession,
    SessionPhase,
    SessionSnapshot,
    SessionTransition,
    SlotState,
)
from ..config import SessionConfig
from ..storage.base import GrantHistoryStore, GrantRecord, SessionStore

logger = logging.getLogger(__name__)

AdProviderFactory = Callable[[int], AdProvider | None]


class UnlockStatus(str, Enum):
    GRANTED = "granted"
    LOCKED = "locked"
    COOLDOWN = "cooldown"
    BUSY = "busy"
    DECLINED = "declined"
    EXPIRED = "expired"


@dataclass(slots=True)
class UnlockOutcome:
    status: UnlockStatus
    slot_index: int
    reward: GeneratedReward | None = None
    message: str | None = None

    @property
    def granted(self) -> bool:
        return self.status == UnlockStatus.GRANTED


@dataclass(slots=True)
class SessionView:
    phase: SessionPhase
    seconds_remaining: int
    slots: Sequence[GeneratedReward]
    states: Sequence[SlotState]
    collected: Sequence[bool]
    cycle: int


@dataclass(slots=True)
class _CampaignHandle:
    session: RewardSession
    gate: AdGate


class CampaignService:
    """Run one progress bar campaign per user on top of the domain primitives."""

    def __init__(
        self,
        catalog: RewardCatalog,
        resources: ResourceRegistry,
        pool: RewardPool,
        session_store: SessionStore,
        history_store: GrantHistoryStore,
        session_config: SessionConfig,
        event_bus: EventBus,
        fulfillment: RewardFulfillment,
        *,
        ad_provider_factory: AdProviderFactory | None = None,
        clock: Clock | None = None,
        ad_timeout: float | None = None,
    ) -> None:
        self._catalog = catalog
        self._resources = resources
        self._pool = pool
        self._session_store = session_store
        self._history_store = history_store
        self._config = session_config
        self._event_bus = event_bus
        self._fulfillment = fulfillment
        self._ad_provider_factory = ad_provider_factory
        self._clock = clock
        self._ad_timeout = ad_timeout
        self._handles: dict[int, _CampaignHandle] = {}

    @property
    def active_users(self) -> list[int]:
        return list(self._handles)

    async def open(self, user_id: int, *, now: int | None = None) -> SessionView:
        handle = await self._handle(user_id)
        cycle = handle.session.cycle
        handle.session.open(now)
        if handle.session.cycle != cycle:
            await self._publish_cycle_started(user_id, handle.session)
        await self._persist(user_id, handle.session)
        return self._view(handle.session, now)

    async def close(self, user_id: int) -> None:
        handle = self._handles.get(user_id)
        if handle is None:
            return
        handle.session.close()
        await self._persist(user_id, handle.session)

    async def view(self, user_id: int, *, now: int | None = None) -> SessionView:
        handle = await self._handle(user_id)
        return self._view(handle.session, now)

    async def tick(self, user_id: int, *, now: int | None = None) -> list[SessionTransition]:
        handle = self._handles.get(user_id)
        if handle is None:
            return []
        transitions = handle.session.tick(now)
        for transition in transitions:
            if transition == SessionTransition.REVEAL_EXPIRED:
                await self._event_bus.publish(
                    REVEAL_EXPIRED,
                    {
                        "user_id": user_id,
                        "cycle": handle.session.cycle,
                        "collected": sum(handle.session.collected),
                    },
                )
            elif transition == SessionTransition.CYCLE_STARTED:
                await self._publish_cycle_started(user_id, handle.session)
        if transitions:
            await self._persist(user_id, handle.session)
        return transitions

    async def tick_all(self, *, now: int | None = None) -> dict[int, list[SessionTransition]]:
        results: dict[int, list[SessionTransition]] = {}
        for user_id in list(self._handles):
            transitions = await self.tick(user_id, now=now)
            if transitions:
                results[user_id] = transitions
        return results

    async def unlock(
        self, user_id: int, slot_index: int, *, now: int | None = None
    ) -> UnlockOutcome:
        handle = await self._handle(user_id)
        session = handle.session

        if session.phase == SessionPhase.COOLDOWN:
            return UnlockOutcome(UnlockStatus.COOLDOWN, slot_index)
        if not session.request_unlock(slot_index):
            return UnlockOutcome(UnlockStatus.LOCKED, slot_index)
        if handle.gate.busy:
            return UnlockOutcome(UnlockStatus.BUSY, slot_index)

        cycle = session.cycle
        watched = await handle.gate.request_reward_async(timeout=self._ad_timeout)
        if not watched:
            return UnlockOutcome(
                UnlockStatus.DECLINED, slot_index, message=self._config.unavailable_message
            )
        if session.cycle != cycle:
            logger.info("User %s finished an ad after cycle %s was replaced.", user_id, cycle)
            return UnlockOutcome(UnlockStatus.EXPIRED, slot_index)

        reward = session.slots[slot_index]
        if not session.resolve_unlock(slot_index, True, now):
            return UnlockOutcome(UnlockStatus.LOCKED, slot_index)

        try:
            await self._fulfillment.grant(reward)
        except Exception:
            logger.exception(
                "Grant handler failed for user %s slot %s (%s).",
                user_id,
                slot_index,
                reward.template_id,
            )
        await self._history_store.add_record(
            GrantRecord(
                user_id=user_id,
                slot_index=slot_index,
                template_id=reward.template_id,
                resource_id=reward.resource_id,
                amount=reward.amount,
                is_super_reward=reward.is_super_reward,
                timestamp=datetime.now(timezone.utc),
            )
        )
        await self._event_bus.publish(
            SLOT_COLLECTED,
            {
                "user_id": user_id,
                "cycle": cycle,
                "slot_index": slot_index,
                "template_id": reward.template_id,
                "amount": reward.amount,
            },
        )
        if session.phase == SessionPhase.COOLDOWN:
            await self._event_bus.publish(
                COOLDOWN_STARTED,
                {
                    "user_id": user_id,
                    "cycle": cycle,
                    "cooldown_deadline": session.cooldown_deadline,
                },
            )
        await self._persist(user_id, session)
        return UnlockOutcome(UnlockStatus.GRANTED, slot_index, reward=reward)

    async def history(self, user_id: int, limit: int = 20) -> Sequence[GrantRecord]:
        return await self._history_store.recent_for_user(user_id, limit)

    async def reset(self, user_id: int) -> None:
        handle = self._handles.pop(user_id, None)
        if handle is not None:
            handle.gate.cancel()
        await self._session_store.delete(user_id)

    async def _handle(self, user_id: int) -> _CampaignHandle:
        handle = self._handles.get(user_id)
        if handle is not None:
            return handle

        session = RewardSession(self._pool, self._config, clock=self._clock)
        payload = await self._session_store.load(user_id)
        if payload is not None:
            try:
                snapshot = SessionSnapshot.from_dict(payload)
            except InvalidSnapshot as exc:
                logger.warning("Discarding stored session for user %s: %s", user_id, exc)
                await self._session_store.delete(user_id)
            else:
                session.restore(snapshot, self._catalog, self._resources)

        provider = self._ad_provider_factory(user_id) if self._ad_provider_factory else None
        gate = AdGate(provider)
        gate.initialize()
        handle = _CampaignHandle(session=session, gate=gate)
        self._handles[user_id] = handle
        return handle

    async def _persist(self, user_id: int, session: RewardSession) -> None:
        snapshot = session.snapshot()
        if snapshot is not None:
            await self._session_store.save(user_id, snapshot.to_dict())

    async def _publish_cycle_started(self, user_id: int, session: RewardSession) -> None:
        await self._event_bus.publish(
            CYCLE_STARTED,
            {
                "user_id": user_id,
                "cycle": session.cycle,
                "templates": [slot.template_id for slot in session.slots],
                "reveal_deadline": session.reveal_deadline,
            },
        )

    def _view(self, session: RewardSession, now: int | None) -> SessionView:
        return SessionView(
            phase=session.phase,
            seconds_remaining=session.seconds_remaining(now),
            slots=session.slots,
            states=session.slot_states(),
            collected=session.collected,
            cycle=session.cycle,
        )

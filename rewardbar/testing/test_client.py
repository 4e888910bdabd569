"""Async test client that drives campaigns without Telegram transport."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from ..domain.campaign import CampaignService


@dataclass(slots=True)
class TestMessage:
    __test__ = False

    text: str
    metadata: Dict[str, Any]


class TestClient:
    """Facilitate scenario testing of open/unlock/tick flows."""

    __test__ = False

    def __init__(self, campaigns: CampaignService) -> None:
        self._campaigns = campaigns
        self._log: List[TestMessage] = []

    async def open(self, user_id: int, *, now: int | None = None) -> None:
        view = await self._campaigns.open(user_id, now=now)
        self._log.append(
            TestMessage(
                text=f"Opened {view.phase.value} ({view.seconds_remaining}s)",
                metadata={
                    "phase": view.phase.value,
                    "templates": [slot.template_id for slot in view.slots],
                    "states": [state.value for state in view.states],
                },
            )
        )

    async def unlock(self, user_id: int, slot_index: int, *, now: int | None = None) -> None:
        outcome = await self._campaigns.unlock(user_id, slot_index, now=now)
        self._log.append(
            TestMessage(
                text=f"Unlock {slot_index}: {outcome.status.value}",
                metadata={
                    "status": outcome.status.value,
                    "template": outcome.reward.template_id if outcome.reward else None,
                    "amount": outcome.reward.amount if outcome.reward else None,
                },
            )
        )

    async def tick(self, user_id: int, *, now: int | None = None) -> None:
        transitions = await self._campaigns.tick(user_id, now=now)
        if transitions:
            self._log.append(
                TestMessage(
                    text=", ".join(t.value for t in transitions),
                    metadata={"transitions": [t.value for t in transitions]},
                )
            )

    def history(self) -> List[TestMessage]:
        return list(self._log)

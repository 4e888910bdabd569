"""Storage abstractions used by the RewardBar services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence


@dataclass(slots=True)
class GrantRecord:
    user_id: int
    slot_index: int
    template_id: str | None
    resource_id: str | None
    amount: int
    is_super_reward: bool
    timestamp: datetime


class SessionStore(Protocol):
    """Persist session snapshots in their ``SessionSnapshot.to_dict`` layout."""

    async def load(self, user_id: int) -> Mapping[str, Any] | None:
        ...

    async def save(self, user_id: int, payload: Mapping[str, Any]) -> None:
        ...

    async def delete(self, user_id: int) -> None:
        ...


class GrantHistoryStore(Protocol):
    async def add_record(self, record: GrantRecord) -> None:
        ...

    async def recent_for_user(self, user_id: int, limit: int = 20) -> Sequence[GrantRecord]:
        ...

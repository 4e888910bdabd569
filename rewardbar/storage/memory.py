"""In-memory storage backend for RewardBar."""

from __future__ import annotations

import copy
from collections import deque
from typing import Any, Deque, Mapping, Sequence

from .base import GrantHistoryStore, GrantRecord, SessionStore


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._snapshots: dict[int, dict[str, Any]] = {}

    async def load(self, user_id: int) -> Mapping[str, Any] | None:
        payload = self._snapshots.get(user_id)
        return copy.deepcopy(payload) if payload is not None else None

    async def save(self, user_id: int, payload: Mapping[str, Any]) -> None:
        self._snapshots[user_id] = copy.deepcopy(dict(payload))

    async def delete(self, user_id: int) -> None:
        self._snapshots.pop(user_id, None)


class InMemoryGrantHistoryStore(GrantHistoryStore):
    def __init__(self, *, maxlen: int = 5000) -> None:
        self._history: Deque[GrantRecord] = deque(maxlen=maxlen)

    async def add_record(self, record: GrantRecord) -> None:
        self._history.append(record)

    async def recent_for_user(self, user_id: int, limit: int = 20) -> Sequence[GrantRecord]:
        filtered = [rec for rec in reversed(self._history) if rec.user_id == user_id]
        return filtered[:limit]

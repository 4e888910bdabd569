"""Storage backends for RewardBar."""

from .base import GrantHistoryStore, GrantRecord, SessionStore
from .memory import InMemoryGrantHistoryStore, InMemorySessionStore
from .sqlalchemy import AsyncSQLAlchemyStorage

__all__ = [
    "GrantHistoryStore",
    "GrantRecord",
    "SessionStore",
    "InMemoryGrantHistoryStore",
    "InMemorySessionStore",
    "AsyncSQLAlchemyStorage",
]

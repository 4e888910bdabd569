"""SQLAlchemy storage backend for RewardBar."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Mapping, Sequence

from sqlalchemy import Boolean, DateTime, Integer, JSON, String, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .base import GrantHistoryStore, GrantRecord, SessionStore


class Base(DeclarativeBase):
    pass


class SessionTable(Base):
    __tablename__ = "rewardbar_sessions"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    payload: Mapped[dict] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class GrantHistoryTable(Base):
    __tablename__ = "rewardbar_grant_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    slot_index: Mapped[int] = mapped_column(Integer)
    template_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    amount: Mapped[int] = mapped_column(Integer, default=0)
    is_super_reward: Mapped[bool] = mapped_column(Boolean, default=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class AsyncSQLAlchemyStorage:
    """Bundle of async stores backed by SQLAlchemy."""

    def __init__(self, dsn: str, *, echo: bool = False) -> None:
        self._engine = create_async_engine(dsn, echo=echo, future=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def init_models(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    def session_store(self) -> "AsyncSQLAlchemySessionStore":
        return AsyncSQLAlchemySessionStore(self._session_factory)

    def grant_history_store(self) -> "AsyncSQLAlchemyGrantHistoryStore":
        return AsyncSQLAlchemyGrantHistoryStore(self._session_factory)


class AsyncSQLAlchemySessionStore(SessionStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self, user_id: int) -> Mapping[str, Any] | None:
        async with self._session_factory() as session:
            row = await session.get(SessionTable, user_id)
            return dict(row.payload) if row else None

    async def save(self, user_id: int, payload: Mapping[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            stmt = (
                update(SessionTable)
                .where(SessionTable.user_id == user_id)
                .values(payload=dict(payload), updated_at=now)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                session.add(SessionTable(user_id=user_id, payload=dict(payload), updated_at=now))
            await session.commit()

    async def delete(self, user_id: int) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(SessionTable).where(SessionTable.user_id == user_id))
            await session.commit()


class AsyncSQLAlchemyGrantHistoryStore(GrantHistoryStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_record(self, record: GrantRecord) -> None:
        async with self._session_factory() as session:
            session.add(
                GrantHistoryTable(
                    user_id=record.user_id,
                    slot_index=record.slot_index,
                    template_id=record.template_id,
                    resource_id=record.resource_id,
                    amount=record.amount,
                    is_super_reward=record.is_super_reward,
                    timestamp=record.timestamp,
                )
            )
            await session.commit()

    async def recent_for_user(self, user_id: int, limit: int = 20) -> Sequence[GrantRecord]:
        async with self._session_factory() as session:
            stmt = (
                select(GrantHistoryTable)
                .where(GrantHistoryTable.user_id == user_id)
                .order_by(GrantHistoryTable.timestamp.desc(), GrantHistoryTable.id.desc())
                .limit(limit)
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [
                GrantRecord(
                    user_id=row.user_id,
                    slot_index=row.slot_index,
                    template_id=row.template_id,
                    resource_id=row.resource_id,
                    amount=row.amount,
                    is_super_reward=row.is_super_reward,
                    timestamp=row.timestamp,
                )
                for row in rows
            ]

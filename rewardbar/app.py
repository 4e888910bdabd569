"""Top level application object for RewardBar campaigns."""

from __future__ import annotations

from random import Random
from typing import Any

from .config import RewardBarConfig
from .domain.ads import AdProvider, MockAdProvider
from .domain.campaign import AdProviderFactory, CampaignService
from .domain.economy import ProgressionState
from .domain.events import EventBus
from .domain.fulfillment import RewardFulfillment, default_fulfillment
from .domain.pool import RewardPool
from .domain.session import Clock
from .registry import ResourceRegistryFacade, RewardRegistry
from .storage.base import GrantHistoryStore, SessionStore
from .storage.memory import InMemoryGrantHistoryStore, InMemorySessionStore
from .storage.sqlalchemy import AsyncSQLAlchemyStorage


def _mock_provider(user_id: int) -> AdProvider:
    return MockAdProvider()


class CampaignApp:
    """Central dependency container used by bots and extensions."""

    def __init__(
        self,
        config: RewardBarConfig,
        *,
        session_store: SessionStore | None = None,
        history_store: GrantHistoryStore | None = None,
        event_bus: EventBus | None = None,
        rng: Random | None = None,
        progression: ProgressionState | None = None,
        fulfillment: RewardFulfillment | None = None,
        ad_provider_factory: AdProviderFactory | None = None,
        clock: Clock | None = None,
        ad_timeout: float | None = None,
    ) -> None:
        self.config = config
        self.event_bus = event_bus or EventBus()
        self.rewards = RewardRegistry()
        self.resources = ResourceRegistryFacade()

        self._rng = rng or (Random(config.rng_seed) if config.rng_seed is not None else Random())

        self._sqlalchemy_storage: AsyncSQLAlchemyStorage | None = None
        self.session_store, self.history_store = self._wire_storage(session_store, history_store)

        self.pool = RewardPool(
            catalog=self.rewards.catalog,
            resources=self.resources.registry,
            config=self.config.pool,
            progression=progression or self.resources.progression,
            rng=self._rng,
        )
        self.fulfillment = fulfillment or default_fulfillment(self.event_bus)
        self.campaigns = CampaignService(
            catalog=self.rewards.catalog,
            resources=self.resources.registry,
            pool=self.pool,
            session_store=self.session_store,
            history_store=self.history_store,
            session_config=self.config.session,
            event_bus=self.event_bus,
            fulfillment=self.fulfillment,
            ad_provider_factory=ad_provider_factory or _mock_provider,
            clock=clock,
            ad_timeout=ad_timeout,
        )

    def _wire_storage(
        self,
        session_store: SessionStore | None,
        history_store: GrantHistoryStore | None,
    ) -> tuple[SessionStore, GrantHistoryStore]:
        if session_store and history_store:
            return session_store, history_store

        backend = self.config.storage.backend
        if backend == "memory":
            return (
                session_store or InMemorySessionStore(),
                history_store or InMemoryGrantHistoryStore(),
            )
        if backend == "sqlalchemy":
            dsn = self.config.storage.resolve_dsn()
            if not dsn:
                raise ValueError("SQLAlchemy backend requires a DSN")
            storage = AsyncSQLAlchemyStorage(dsn, echo=self.config.storage.echo_sql)
            self._sqlalchemy_storage = storage
            return (
                session_store or storage.session_store(),
                history_store or storage.grant_history_store(),
            )
        raise ValueError(f"Unsupported storage backend {backend}")

    def snapshot(self) -> dict[str, Any]:
        """Export current configuration for debugging."""
        return {
            "storage": self.config.storage.backend,
            "templates": [t.template_id for t in self.rewards.catalog.iter_templates()],
            "super_templates": [t.template_id for t in self.rewards.catalog.super_templates()],
            "resources": [r.resource_id for r in self.resources.registry.all()],
            "slot_count": self.config.session.slot_count,
            "active_users": self.campaigns.active_users,
        }

    async def init_backend(self) -> None:
        """Initialize storage backend resources (e.g., database tables)."""
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.init_models()

    async def shutdown(self) -> None:
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.dispose()

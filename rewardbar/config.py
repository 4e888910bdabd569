"""Configuration models for RewardBar."""

from __future__ import annotations

import os
import json
from dataclasses import dataclass, field
from typing import Literal, Mapping


StorageBackend = Literal["memory", "sqlalchemy"]


@dataclass(slots=True)
class StorageConfig:
    """Configure where session snapshots and grant history are persisted."""

    backend: StorageBackend = "memory"
    dsn: str | None = None
    echo_sql: bool = False

    def resolve_dsn(self) -> str | None:
        if self.dsn:
            return self.dsn
        if self.backend == "sqlalchemy":
            return "sqlite+aiosqlite:///./rewardbar.db"
        return None


def _default_rarity_weights() -> dict[str, float]:
    return {"common": 60.0, "rare": 25.0, "epic": 10.0, "legendary": 5.0}


def _default_type_weights() -> dict[str, float]:
    return {"resource": 25.0, "crystal": 25.0, "coin": 25.0, "building": 25.0, "other": 1.0}


@dataclass(slots=True)
class PoolConfig:
    """Balancing knobs for reward generation."""

    rarity_weights: Mapping[str, float] = field(default_factory=_default_rarity_weights)
    type_base_weights: Mapping[str, float] = field(default_factory=_default_type_weights)
    max_consecutive_same_type: int = 2
    streak_weight_multiplier: float = 0.01
    recent_item_penalty_steps: int = 3
    recent_item_penalty_multiplier: float = 0.2
    type_repeat_penalty_multiplier: float = 0.5
    min_weight: float = 0.0001
    production_chance: float = 0.55
    coin_rounding: int = 500
    default_coin_limit: int = 1000


@dataclass(slots=True)
class SessionConfig:
    """Timing rules of the reveal/cooldown cycle."""

    slot_count: int = 5
    reveal_duration_seconds: int = 60
    cooldown_duration_seconds: int = 30
    force_super_last: bool = True
    tick_interval_seconds: float = 1.0
    unavailable_message: str = "Video not available"


@dataclass(slots=True)
class RewardBarConfig:
    """Top-level configuration container."""

    bot_token: str = ""
    storage: StorageConfig = field(default_factory=StorageConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    rng_seed: int | None = None

    @classmethod
    def from_env(cls) -> "RewardBarConfig":
        """Create config from environment variables prefixed with REWARDBAR_."""
        prefix = "REWARDBAR_"
        storage_backend = os.getenv(f"{prefix}STORAGE_BACKEND", "memory")
        dsn = os.getenv(f"{prefix}STORAGE_DSN")
        echo_sql = os.getenv(f"{prefix}STORAGE_ECHO_SQL", "false").lower() in {"1", "true", "yes"}

        pool_config = PoolConfig(
            max_consecutive_same_type=int(os.getenv(f"{prefix}POOL_MAX_SAME_TYPE", "2")),
            recent_item_penalty_steps=int(os.getenv(f"{prefix}POOL_PENALTY_STEPS", "3")),
            recent_item_penalty_multiplier=float(
                os.getenv(f"{prefix}POOL_PENALTY_MULTIPLIER", "0.2")
            ),
            type_repeat_penalty_multiplier=float(
                os.getenv(f"{prefix}POOL_TYPE_REPEAT_MULTIPLIER", "0.5")
            ),
            default_coin_limit=int(os.getenv(f"{prefix}POOL_DEFAULT_COIN_LIMIT", "1000")),
        )
        rarity_weights = _parse_weights(
            os.getenv(f"{prefix}POOL_RARITY_WEIGHTS"), f"{prefix}POOL_RARITY_WEIGHTS"
        )
        if rarity_weights:
            pool_config.rarity_weights = {**pool_config.rarity_weights, **rarity_weights}

        session_config = SessionConfig(
            slot_count=int(os.getenv(f"{prefix}SESSION_SLOTS", "5")),
            reveal_duration_seconds=int(os.getenv(f"{prefix}SESSION_REVEAL_SECONDS", "60")),
            cooldown_duration_seconds=int(os.getenv(f"{prefix}SESSION_COOLDOWN_SECONDS", "30")),
            force_super_last=os.getenv(f"{prefix}SESSION_FORCE_SUPER_LAST", "true").lower()
            in {"1", "true", "yes"},
            tick_interval_seconds=float(os.getenv(f"{prefix}SESSION_TICK_SECONDS", "1.0")),
            unavailable_message=os.getenv(f"{prefix}SESSION_UNAVAILABLE_MESSAGE")
            or "Video not available",
        )

        return cls(
            bot_token=os.getenv(f"{prefix}BOT_TOKEN", ""),
            storage=StorageConfig(
                backend=storage_backend, dsn=dsn, echo_sql=echo_sql
            ),
            pool=pool_config,
            session=session_config,
            rng_seed=(
                int(os.getenv(f"{prefix}RNG_SEED")) if os.getenv(f"{prefix}RNG_SEED") else None
            ),
        )


def _parse_weights(raw: str | None, variable: str) -> Mapping[str, float]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON for {variable}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{variable} must be a JSON object")
    return {str(k): float(v) for k, v in data.items()}

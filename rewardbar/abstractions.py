"""High-level helpers that simplify bootstrapping RewardBar bots.

This module provides a straightforward, batteries-included API oriented towards
developers who do not want to dive into the full async/config ecosystem.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from random import Random

from aiogram import Bot, Dispatcher
from rich.console import Console

from . import CampaignApp, RewardBarConfig
from .diagnostics.generation_simulator import GenerationSimulator
from .loaders import load_catalog_from_json, validate_catalog_dict
from .scheduler import CampaignTicker
from .telegram import build_router

console = Console()


@dataclass(slots=True)
class SimpleBotConfig:
    """Minimal settings required to run a RewardBar bot."""

    bot_token: str
    catalog_path: Path
    storage: str = "memory"  # "memory" or path to SQLite file
    slot_count: int | None = None


async def run_simple_bot(config: SimpleBotConfig) -> None:
    """Spin up a ready-to-go aiogram bot with a ticking reward campaign."""

    rewardbar_config = RewardBarConfig.from_env()
    rewardbar_config.bot_token = config.bot_token
    if config.storage != "memory":
        db_path = Path(config.storage).expanduser().resolve()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        rewardbar_config.storage.backend = "sqlalchemy"
        rewardbar_config.storage.dsn = f"sqlite+aiosqlite:///{db_path.as_posix()}"
    if config.slot_count is not None:
        rewardbar_config.session.slot_count = config.slot_count

    app = CampaignApp(rewardbar_config)
    await app.init_backend()
    load_catalog_from_json(app, config.catalog_path)

    bot = Bot(app.config.bot_token)
    dp = Dispatcher()
    dp.include_router(build_router(app))

    summary = GenerationSimulator(app, rng=Random(0)).simulate(runs=200)
    console.print(
        f"[bold green]RewardBar ready![/bold green]\n"
        f"Templates: {len(app.rewards.catalog)}, "
        f"super reward last: {summary.super_last_rate:.0%}",
    )

    ticker = CampaignTicker(app.campaigns, interval=app.config.session.tick_interval_seconds)
    ticker.start()
    try:
        await dp.start_polling(bot)
    finally:
        await ticker.stop()
        await app.shutdown()


def run_simple_bot_sync(config: SimpleBotConfig) -> None:
    """Synchronous wrapper for run_simple_bot."""

    asyncio.run(run_simple_bot(config))


@dataclass(slots=True)
class CatalogBuilder:
    """Imperative builder that produces JSON catalogs."""

    templates: list[dict] = field(default_factory=list)
    resources: list[dict] = field(default_factory=list)
    level_recipes: list[dict] = field(default_factory=list)

    def add_resource(
        self,
        resource_id: str,
        name: str,
        *,
        max_stack_size: int = 1,
        icon: str | None = None,
    ) -> "CatalogBuilder":
        resource: dict = {"id": resource_id, "name": name, "maxStackSize": max_stack_size}
        if icon:
            resource["icon"] = icon
        self.resources.append(resource)
        return self

    def add_template(
        self,
        template_id: str,
        reward_type: str,
        *,
        rarity: str = "common",
        spawn_weight: int = 100,
        fixed_amount: int = 0,
        resource_coefficient: float = 1.0,
        is_super_reward: bool = False,
        name: str | None = None,
        building_id: str | None = None,
        icon: str | None = None,
    ) -> "CatalogBuilder":
        template: dict = {
            "id": template_id,
            "type": reward_type,
            "rarity": rarity,
            "spawnWeight": spawn_weight,
            "fixedAmount": fixed_amount,
            "resourceCoefficient": resource_coefficient,
            "isSuperReward": is_super_reward,
        }
        if name:
            template["name"] = name
        if building_id:
            template["buildingId"] = building_id
        if icon:
            template["icon"] = icon
        self.templates.append(template)
        return self

    def add_level_recipe(self, recipe_id: str, components: list[str]) -> "CatalogBuilder":
        self.level_recipes.append({"id": recipe_id, "components": list(components)})
        return self

    def build(self) -> dict:
        catalog = {
            "resources": self.resources,
            "templates": self.templates,
            "levelRecipes": self.level_recipes,
        }
        errors = validate_catalog_dict(catalog)
        if errors:
            raise ValueError("Catalog validation failed:\n" + "\n".join(f"- {err}" for err in errors))
        return catalog

    def save(self, path: Path) -> None:
        catalog = self.build()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(catalog, ensure_ascii=False, indent=2), encoding="utf-8")


__all__ = [
    "SimpleBotConfig",
    "CatalogBuilder",
    "run_simple_bot",
    "run_simple_bot_sync",
]

"""Example RewardBar bot: a progress bar of ad-unlocked rewards with logging of grants."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from rewardbar import CampaignApp, CampaignTicker, RewardBarConfig
from rewardbar.diagnostics import GenerationSimulator
from rewardbar.loaders import load_catalog_from_json

logger = logging.getLogger("progress_bar_bot")


async def log_coins(payload) -> None:
    logger.info("Credit %s coins", payload["amount"])


async def log_resources(payload) -> None:
    logger.info("Credit %s x%s", payload["resource_id"], payload["amount"])


async def log_building(payload) -> None:
    logger.info("Start placing building %s", payload["building_id"])


def register(app: CampaignApp) -> None:
    """Register the catalog and hook grant events."""
    catalog_path = Path(__file__).with_name("catalog") / "rewards.json"
    load_catalog_from_json(app, catalog_path)
    app.resources.produces("wood")
    app.resources.progression.level = 1

    app.event_bus.subscribe("reward.granted.coin", log_coins)
    app.event_bus.subscribe("reward.granted.resource", log_resources)
    app.event_bus.subscribe("reward.granted.building", log_building)


def simulate() -> None:
    app = CampaignApp(RewardBarConfig.from_env())
    register(app)
    result = GenerationSimulator(app).simulate(runs=100)
    print(f"Super reward last: {result.super_last_rate:.0%}, longest run: {result.longest_type_run}")


async def run_bot() -> None:
    from aiogram import Bot, Dispatcher
    from rewardbar.telegram import build_router

    logging.basicConfig(level=logging.INFO)
    app = CampaignApp(RewardBarConfig.from_env())
    await app.init_backend()
    register(app)

    bot = Bot(app.config.bot_token)
    dp = Dispatcher()
    dp.include_router(build_router(app))
    ticker = CampaignTicker(app.campaigns, interval=app.config.session.tick_interval_seconds)
    ticker.start()
    try:
        await dp.start_polling(bot)
    finally:
        await ticker.stop()
        await app.shutdown()


if __name__ == "__main__":
    asyncio.run(run_bot())

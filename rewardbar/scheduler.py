"""Asyncio ticker that drives campaign countdowns at a fixed cadence."""

from __future__ import annotations

import asyncio
import logging

from .domain.campaign import CampaignService

logger = logging.getLogger(__name__)


class CampaignTicker:
    """Call ``CampaignService.tick_all`` every ``interval`` seconds until stopped."""

    def __init__(self, campaigns: CampaignService, *, interval: float = 1.0) -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self._campaigns = campaigns
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="rewardbar-ticker")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def tick_once(self) -> None:
        transitions = await self._campaigns.tick_all()
        for user_id, changes in transitions.items():
            logger.debug("User %s transitions: %s", user_id, ", ".join(c.value for c in changes))

    async def _run(self) -> None:
        while True:
            try:
                await self.tick_once()
            except Exception:
                logger.exception("Campaign tick failed; continuing.")
            await asyncio.sleep(self._interval)

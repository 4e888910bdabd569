"""Monte-Carlo simulation of progress bar generation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from random import Random
from typing import Sequence

from ..app import CampaignApp
from ..domain.pool import RewardPool
from ..domain.rewards import GeneratedReward, RewardType


@dataclass(slots=True)
class SimulationResult:
    runs: int
    slot_count: int
    types: Counter = field(default_factory=Counter)
    rarities: Counter = field(default_factory=Counter)
    templates: Counter = field(default_factory=Counter)
    super_last: int = 0
    longest_type_run: int = 0
    coins: int = 0

    @property
    def super_last_rate(self) -> float:
        return self.super_last / self.runs if self.runs else 0.0

    def merge(self, rewards: Sequence[GeneratedReward]) -> None:
        run, previous = 0, None
        for reward in rewards:
            template = reward.template
            if template is None:
                self.types["none"] += 1
                run, previous = 0, None
                continue
            self.types[template.reward_type.value] += 1
            self.rarities[template.rarity.value] += 1
            self.templates[template.template_id] += 1
            if template.reward_type == RewardType.COIN:
                self.coins += reward.amount
            run = run + 1 if template.reward_type == previous else 1
            previous = template.reward_type
            self.longest_type_run = max(self.longest_type_run, run)
        if rewards and rewards[-1].is_super_reward:
            self.super_last += 1


class GenerationSimulator:
    """Run ``generate_sequence`` many times and aggregate what comes out."""

    def __init__(self, app: CampaignApp, *, rng: Random | None = None) -> None:
        self._app = app
        self._pool = RewardPool(
            catalog=app.rewards.catalog,
            resources=app.resources.registry,
            config=app.config.pool,
            progression=app.resources.progression,
            rng=rng or Random(),
        )

    def simulate(
        self,
        *,
        runs: int = 1000,
        slot_count: int | None = None,
        force_super_last: bool | None = None,
    ) -> SimulationResult:
        session = self._app.config.session
        count = session.slot_count if slot_count is None else slot_count
        force = session.force_super_last if force_super_last is None else force_super_last
        result = SimulationResult(runs=runs, slot_count=count)
        for _ in range(runs):
            result.merge(self._pool.generate_sequence(count, force))
        return result

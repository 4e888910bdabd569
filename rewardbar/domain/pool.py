"""Reward generation: weighted picks with rarity, recency and diversity rules."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from random import Random
from typing import Sequence

from .economy import ProgressionState, Resource, ResourceRegistry, StaticProgression
from .rewards import GeneratedReward, RewardCatalog, RewardTemplate, RewardType
from ..config import PoolConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SelectionHistory:
    """Recency bookkeeping for a single generation call."""

    recent_penalty: dict[str, int] = field(default_factory=dict)
    type_streak: dict[RewardType, int] = field(default_factory=dict)

    def has_penalty(self, template: RewardTemplate) -> bool:
        return self.recent_penalty.get(template.template_id, 0) > 0

    def streak(self, reward_type: RewardType) -> int:
        return self.type_streak.get(reward_type, 0)

    def record_pick(self, template: RewardTemplate, penalty_steps: int) -> None:
        for key in self.recent_penalty:
            self.recent_penalty[key] = max(0, self.recent_penalty[key] - 1)
        for key in self.type_streak:
            self.type_streak[key] = max(0, self.type_streak[key] - 1)
        self.recent_penalty[template.template_id] = penalty_steps
        self.type_streak[template.reward_type] = self.type_streak.get(template.reward_type, 0) + 1


class RewardPool:
    """Turn the catalog into an ordered sequence of generated rewards."""

    def __init__(
        self,
        catalog: RewardCatalog,
        resources: ResourceRegistry,
        config: PoolConfig | None = None,
        *,
        progression: ProgressionState | None = None,
        rng: Random | None = None,
    ) -> None:
        self._catalog = catalog
        self._resources = resources
        self._config = config or PoolConfig()
        self._progression = progression or StaticProgression()
        self._rng = rng or Random()

    @property
    def config(self) -> PoolConfig:
        return self._config

    def attach_progression(self, progression: ProgressionState) -> None:
        self._progression = progression

    def generate_sequence(
        self, slot_count: int, force_super_last: bool = True
    ) -> list[GeneratedReward]:
        if slot_count <= 0:
            return []

        templates = list(self._catalog.iter_templates())
        if not templates:
            logger.warning(
                "Reward catalog is empty; generating %s placeholder rewards.", slot_count
            )
            return [GeneratedReward(template=None) for _ in range(slot_count)]

        supers = [t for t in templates if t.is_super_reward]
        slot_types = self._slot_type_sequence(slot_count, force_super_last, supers)
        history = SelectionHistory()
        rewards: list[GeneratedReward] = []

        for index, slot_type in enumerate(slot_types):
            if index == slot_count - 1 and force_super_last and supers:
                candidates = supers
            else:
                candidates = [
                    t for t in templates if t.reward_type == slot_type and not t.is_super_reward
                ]
                if not candidates:
                    candidates = templates

            picked = self._pick_template(candidates, history)
            rewards.append(self.build_reward(picked))
            history.record_pick(picked, self._config.recent_item_penalty_steps)

        return rewards

    def build_reward(self, template: RewardTemplate) -> GeneratedReward:
        """Size a reward for ``template`` according to its type."""
        reward = GeneratedReward(template=template, is_super_reward=template.is_super_reward)

        if template.reward_type == RewardType.RESOURCE:
            resource, amount = self._resource_reward(template.resource_coefficient)
            reward.resource = resource
            reward.resource_id = resource.resource_id if resource else None
            reward.amount = amount
        elif template.reward_type == RewardType.COIN:
            reward.amount = self._coin_amount(template.resource_coefficient)
        elif template.reward_type == RewardType.BUILDING:
            reward.amount = 0
        else:
            reward.amount = max(0, template.fixed_amount)
        return reward

    def rarity_weight(self, template: RewardTemplate) -> float:
        return float(self._config.rarity_weights.get(template.rarity.value, 1.0))

    def template_weight(self, template: RewardTemplate, history: SelectionHistory) -> float:
        weight = self.rarity_weight(template) * template.spawn_weight
        if history.has_penalty(template):
            weight *= self._config.recent_item_penalty_multiplier
        streak = history.streak(template.reward_type)
        if streak > 0:
            weight *= self._config.type_repeat_penalty_multiplier ** streak
        return max(self._config.min_weight, weight)

    def _slot_type_sequence(
        self,
        slot_count: int,
        force_super_last: bool,
        supers: Sequence[RewardTemplate],
    ) -> list[RewardType]:
        base_weights = {
            reward_type: float(self._config.type_base_weights.get(reward_type.value, 0.0))
            for reward_type in RewardType
        }
        run = self._config.max_consecutive_same_type
        sequence: list[RewardType] = []

        for index in range(slot_count):
            if index == slot_count - 1 and force_super_last and supers:
                sequence.append(supers[0].reward_type)
                continue

            weights = dict(base_weights)
            if run > 0 and len(sequence) >= run:
                tail = sequence[-run:]
                if all(t == tail[-1] for t in tail):
                    weights[tail[-1]] *= self._config.streak_weight_multiplier

            types = list(weights)
            chosen = self._weighted_index(list(weights.values()))
            sequence.append(types[chosen] if chosen is not None else RewardType.RESOURCE)
        return sequence

    def _pick_template(
        self, candidates: Sequence[RewardTemplate], history: SelectionHistory
    ) -> RewardTemplate:
        weights = [self.template_weight(template, history) for template in candidates]
        index = self._weighted_index(weights)
        return candidates[index if index is not None else 0]

    def _weighted_index(self, weights: Sequence[float]) -> int | None:
        total = sum(weights)
        if total <= 0:
            return None
        threshold = self._rng.random() * total
        cumulative = 0.0
        for idx, weight in enumerate(weights):
            if weight <= 0:
                continue
            cumulative += weight
            if threshold <= cumulative:
                return idx
        return len(weights) - 1

    def _resource_reward(self, coefficient: float) -> tuple[Resource | None, int]:
        if self._rng.random() < self._config.production_chance:
            resource = self._resource_from_production()
        else:
            resource = self._resource_from_level_recipe()
        if resource is None:
            resource = self._resources.default()
        if resource is None:
            logger.warning("No resources registered; resource reward has no resource.")
            return None, 0
        return resource, max(0, round(resource.max_stack_size * coefficient))

    def _resource_from_production(self) -> Resource | None:
        produced = list(self._progression.production_resources())
        if not produced:
            return None
        return produced[self._rng.randrange(len(produced))]

    def _resource_from_level_recipe(self) -> Resource | None:
        recipes = list(self._progression.level_recipes())
        if not recipes:
            return None
        index = min(max(self._progression.current_level() + 1, 0), len(recipes) - 1)
        components = recipes[index].components
        if not components:
            return None
        component_id = components[self._rng.randrange(len(components))]
        return self._resources.find(component_id)

    def _coin_amount(self, coefficient: float) -> int:
        limit = self._progression.coin_limit()
        if limit is None:
            limit = self._config.default_coin_limit
        amount = max(0, int(limit * coefficient))
        step = self._config.coin_rounding
        if step <= 0:
            return amount
        return math.ceil(amount / step) * step

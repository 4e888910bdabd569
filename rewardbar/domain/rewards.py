"""Reward templates, the catalog and generated reward slots."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from .economy import Resource, ResourceRegistry

logger = logging.getLogger(__name__)


class RewardType(str, Enum):
    # Declaration order is the walk order of the slot-type draw.
    RESOURCE = "resource"
    CRYSTAL = "crystal"
    COIN = "coin"
    BUILDING = "building"
    OTHER = "other"


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


@dataclass(frozen=True, slots=True)
class RewardTemplate:
    """Definition of a reward that may appear in a progress bar slot."""

    template_id: str
    reward_type: RewardType = RewardType.OTHER
    rarity: Rarity = Rarity.COMMON
    spawn_weight: int = 100
    fixed_amount: int = 0
    resource_coefficient: float = 1.0
    is_super_reward: bool = False
    name: str = ""
    building_id: str | None = None
    icon: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.template_id


class RewardCatalog:
    """Registry of reward templates."""

    def __init__(self) -> None:
        self._templates: dict[str, RewardTemplate] = {}

    def register_template(self, template: RewardTemplate) -> None:
        if template.template_id in self._templates:
            raise ValueError(f"Template {template.template_id} already registered")
        if template.spawn_weight <= 0:
            raise ValueError(
                f"Template {template.template_id} must have a positive spawn weight"
            )
        self._templates[template.template_id] = template

    def register_templates(self, templates: Iterable[RewardTemplate]) -> None:
        for template in templates:
            self.register_template(template)

    def get_template(self, template_id: str) -> RewardTemplate:
        try:
            return self._templates[template_id]
        except KeyError as exc:
            raise KeyError(f"Template {template_id} not found") from exc

    def find_template(self, template_id: str | None) -> RewardTemplate | None:
        if not template_id:
            return None
        return self._templates.get(template_id)

    def iter_templates(self) -> Iterable[RewardTemplate]:
        return self._templates.values()

    def super_templates(self) -> list[RewardTemplate]:
        return [t for t in self._templates.values() if t.is_super_reward]

    def __len__(self) -> int:
        return len(self._templates)


@dataclass(frozen=True, slots=True)
class SerializedReward:
    """Minimal durable form of a generated reward."""

    template_id: str | None
    resource_id: str | None
    amount: int
    is_super_reward: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "templateId": self.template_id,
            "resourceId": self.resource_id,
            "amount": self.amount,
            "isSuperReward": self.is_super_reward,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SerializedReward":
        return cls(
            template_id=data.get("templateId") or None,
            resource_id=data.get("resourceId") or None,
            amount=max(0, int(data.get("amount", 0))),
            is_super_reward=bool(data.get("isSuperReward", False)),
        )


@dataclass(slots=True)
class GeneratedReward:
    """A concrete, sized instantiation of a template for one slot."""

    template: RewardTemplate | None
    resource: Resource | None = None
    amount: int = 0
    is_super_reward: bool = False
    template_id: str | None = None
    resource_id: str | None = None

    def __post_init__(self) -> None:
        # Identifiers survive even when the references could not be resolved.
        if self.template is not None and self.template_id is None:
            self.template_id = self.template.template_id
        if self.resource is not None and self.resource_id is None:
            self.resource_id = self.resource.resource_id

    @property
    def reward_type(self) -> RewardType | None:
        return self.template.reward_type if self.template else None

    @property
    def icon(self) -> str | None:
        # resource icon wins over the template's
        if self.resource and self.resource.icon:
            return self.resource.icon
        return self.template.icon if self.template else None

    def to_serializable(self) -> SerializedReward:
        return SerializedReward(
            template_id=self.template_id,
            resource_id=self.resource_id,
            amount=self.amount,
            is_super_reward=self.is_super_reward,
        )

    @classmethod
    def from_serializable(
        cls,
        data: SerializedReward,
        catalog: RewardCatalog,
        resources: ResourceRegistry,
    ) -> "GeneratedReward":
        """Resolve a stored reward back through the catalog and registry.

        Identifiers that no longer resolve leave the reference empty; amount
        and the super flag are kept as stored.
        """
        template = catalog.find_template(data.template_id)
        if data.template_id and template is None:
            logger.warning("Stored reward references unknown template '%s'.", data.template_id)
        resource = resources.find(data.resource_id)
        if data.resource_id and resource is None:
            logger.warning("Stored reward references unknown resource '%s'.", data.resource_id)
        return cls(
            template=template,
            resource=resource,
            amount=data.amount,
            is_super_reward=data.is_super_reward,
            template_id=data.template_id,
            resource_id=data.resource_id,
        )

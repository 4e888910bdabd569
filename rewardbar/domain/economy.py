"""Resources and progression queries used to size rewards."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence


@dataclass(frozen=True, slots=True)
class Resource:
    resource_id: str
    name: str
    max_stack_size: int = 1
    icon: str | None = None


@dataclass(frozen=True, slots=True)
class LevelRecipe:
    """Components a level asks the player to build from."""

    recipe_id: str
    components: tuple[str, ...] = ()


class ResourceRegistry:
    """Keeps track of resources a reward may grant."""

    def __init__(self) -> None:
        self._resources: dict[str, Resource] = {}

    def register(self, resource: Resource) -> None:
        if resource.resource_id in self._resources:
            raise ValueError(f"Resource {resource.resource_id} already registered")
        self._resources[resource.resource_id] = resource

    def bulk_register(self, resources: Iterable[Resource]) -> None:
        for resource in resources:
            self.register(resource)

    def get(self, resource_id: str) -> Resource:
        try:
            return self._resources[resource_id]
        except KeyError as exc:
            raise KeyError(f"Resource {resource_id} is not configured") from exc

    def find(self, resource_id: str | None) -> Resource | None:
        if not resource_id:
            return None
        return self._resources.get(resource_id)

    def default(self) -> Resource | None:
        """First registered resource, used when nothing better is known."""
        return next(iter(self._resources.values()), None)

    def all(self) -> Iterable[Resource]:
        return self._resources.values()

    def __len__(self) -> int:
        return len(self._resources)


class ProgressionState(Protocol):
    """Read-only view of the player's progress queried while sizing rewards."""

    def production_resources(self) -> Sequence[Resource]: ...

    def level_recipes(self) -> Sequence[LevelRecipe]: ...

    def current_level(self) -> int: ...

    def coin_limit(self) -> int | None: ...


@dataclass(slots=True)
class StaticProgression:
    """Plain in-memory progression, enough for bots and tests."""

    produced: list[Resource] = field(default_factory=list)
    recipes: list[LevelRecipe] = field(default_factory=list)
    level: int = 0
    coins: int | None = None

    def production_resources(self) -> Sequence[Resource]:
        return tuple(self.produced)

    def level_recipes(self) -> Sequence[LevelRecipe]:
        return tuple(self.recipes)

    def current_level(self) -> int:
        return self.level

    def coin_limit(self) -> int | None:
        return self.coins

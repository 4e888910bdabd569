"""Chainable registration facades for templates, resources and recipes."""

from __future__ import annotations

from .domain.economy import LevelRecipe, Resource, ResourceRegistry, StaticProgression
from .domain.rewards import RewardCatalog, RewardTemplate


class RewardRegistry:
    """Facade around RewardCatalog with chainable API."""

    def __init__(self) -> None:
        self.catalog = RewardCatalog()

    def template(self, template: RewardTemplate) -> "RewardRegistry":
        self.catalog.register_template(template)
        return self


class ResourceRegistryFacade:
    """Register resources and the level recipes that reference them."""

    def __init__(self, progression: StaticProgression | None = None) -> None:
        self.registry = ResourceRegistry()
        self.progression = progression or StaticProgression()

    def resource(self, resource: Resource) -> "ResourceRegistryFacade":
        self.registry.register(resource)
        return self

    def recipe(self, recipe: LevelRecipe) -> "ResourceRegistryFacade":
        for component in recipe.components:
            if self.registry.find(component) is None:
                raise ValueError(
                    f"Recipe {recipe.recipe_id} references unknown resource {component}"
                )
        self.progression.recipes.append(recipe)
        return self

    def produces(self, resource_id: str) -> "ResourceRegistryFacade":
        """Mark a registered resource as produced by an unlocked ability."""
        self.progression.produced.append(self.registry.get(resource_id))
        return self


__all__ = [
    "RewardRegistry",
    "ResourceRegistryFacade",
]

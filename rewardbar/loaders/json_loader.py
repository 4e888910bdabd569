"""Load reward templates, resources and level recipes from JSON definitions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence, TYPE_CHECKING

from ..domain.economy import LevelRecipe, Resource
from ..domain.rewards import Rarity, RewardTemplate, RewardType

if TYPE_CHECKING:
    from ..app import CampaignApp


@dataclass(slots=True)
class CatalogDefinition:
    templates: Sequence[RewardTemplate]
    resources: Sequence[Resource]
    recipes: Sequence[LevelRecipe]


def load_catalog_from_json(app: "CampaignApp", path: str | Path) -> CatalogDefinition:
    """Load a catalog JSON file and register everything on the app."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    definition = parse_catalog_dict(data)
    for resource in definition.resources:
        try:
            app.resources.resource(resource)
        except ValueError:
            # Resource already registered; keep the existing definition.
            continue
    for recipe in definition.recipes:
        app.resources.recipe(recipe)
    for template in definition.templates:
        app.rewards.template(template)
    return definition


def parse_catalog_dict(data: dict[str, Any]) -> CatalogDefinition:
    """Parse a JSON dict (already decoded) into domain objects."""
    errors = validate_catalog_dict(data)
    if errors:
        raise ValueError(_format_errors("Catalog validation failed", errors))
    resources = tuple(parse_resource(entry) for entry in data.get("resources", []))
    templates = tuple(parse_template(entry) for entry in data.get("templates", []))
    recipes = tuple(parse_recipe(entry) for entry in data.get("levelRecipes", []))
    return CatalogDefinition(templates=templates, resources=resources, recipes=recipes)


def parse_resource(entry: dict[str, Any]) -> Resource:
    return Resource(
        resource_id=entry["id"],
        name=entry.get("name", entry["id"].title()),
        max_stack_size=int(entry.get("maxStackSize", 1)),
        icon=entry.get("icon"),
    )


def parse_template(entry: dict[str, Any]) -> RewardTemplate:
    return RewardTemplate(
        template_id=entry["id"],
        reward_type=RewardType(entry.get("type", RewardType.OTHER.value)),
        rarity=Rarity(entry.get("rarity", Rarity.COMMON.value)),
        spawn_weight=int(entry.get("spawnWeight", 100)),
        fixed_amount=int(entry.get("fixedAmount", 0)),
        resource_coefficient=float(entry.get("resourceCoefficient", 1.0)),
        is_super_reward=bool(entry.get("isSuperReward", False)),
        name=entry.get("name", ""),
        building_id=entry.get("buildingId"),
        icon=entry.get("icon"),
    )


def parse_recipe(entry: dict[str, Any]) -> LevelRecipe:
    return LevelRecipe(
        recipe_id=entry["id"],
        components=tuple(map(str, entry.get("components", ()))),
    )


def validate_catalog_file(path: str | Path) -> list[str]:
    """Validate catalog JSON file and return a list of errors."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return validate_catalog_dict(data)


def validate_catalog_dict(data: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Catalog must be a JSON object."]

    resource_ids: set[str] = set()
    resources_raw = data.get("resources", [])
    if not isinstance(resources_raw, list):
        errors.append("Catalog 'resources' must be an array.")
        resources_raw = []
    for idx, entry in enumerate(resources_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Resource #{idx} must be an object.")
            continue
        resource_id = entry.get("id")
        if not isinstance(resource_id, str) or not resource_id.strip():
            errors.append(f"Resource #{idx} must define non-empty 'id'.")
            continue
        if resource_id in resource_ids:
            errors.append(f"Resource id '{resource_id}' defined multiple times.")
        resource_ids.add(resource_id)
        stack = entry.get("maxStackSize", 1)
        if not isinstance(stack, int) or stack <= 0:
            errors.append(f"Resource '{resource_id}' has invalid 'maxStackSize' value '{stack}'.")

    templates_raw = data.get("templates")
    if not isinstance(templates_raw, list) or not templates_raw:
        errors.append("Catalog must contain non-empty 'templates' array.")
        templates_raw = []
    template_ids: set[str] = set()
    has_resource_template = False
    for idx, entry in enumerate(templates_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Template #{idx} must be an object.")
            continue
        template_id = entry.get("id")
        if not isinstance(template_id, str) or not template_id.strip():
            errors.append(f"Template #{idx} must define non-empty 'id'.")
            continue
        if template_id in template_ids:
            errors.append(f"Template id '{template_id}' defined multiple times.")
        template_ids.add(template_id)

        type_value = entry.get("type", RewardType.OTHER.value)
        try:
            RewardType(type_value)
        except ValueError:
            errors.append(f"Template '{template_id}' has invalid type '{type_value}'.")
        else:
            has_resource_template |= type_value == RewardType.RESOURCE.value

        rarity_value = entry.get("rarity", Rarity.COMMON.value)
        try:
            Rarity(rarity_value)
        except ValueError:
            errors.append(f"Template '{template_id}' has invalid rarity '{rarity_value}'.")

        weight = entry.get("spawnWeight", 100)
        if not isinstance(weight, int) or isinstance(weight, bool) or weight <= 0:
            errors.append(f"Template '{template_id}' has invalid 'spawnWeight' value '{weight}'.")

        fixed = entry.get("fixedAmount", 0)
        if not isinstance(fixed, int) or fixed < 0:
            errors.append(f"Template '{template_id}' 'fixedAmount' must be non-negative integer.")

        coefficient = entry.get("resourceCoefficient", 1.0)
        if not isinstance(coefficient, (int, float)) or float(coefficient) < 0:
            errors.append(
                f"Template '{template_id}' 'resourceCoefficient' must be non-negative number."
            )

        if "isSuperReward" in entry and not isinstance(entry["isSuperReward"], bool):
            errors.append(f"Template '{template_id}' 'isSuperReward' must be boolean.")

    if has_resource_template and not resource_ids:
        errors.append("Catalog defines resource templates but no 'resources'.")

    recipes_raw = data.get("levelRecipes", [])
    if not isinstance(recipes_raw, list):
        errors.append("Catalog 'levelRecipes' must be an array.")
        recipes_raw = []
    for idx, entry in enumerate(recipes_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Level recipe #{idx} must be an object.")
            continue
        recipe_id = entry.get("id")
        if not isinstance(recipe_id, str) or not recipe_id.strip():
            errors.append(f"Level recipe #{idx} must define non-empty 'id'.")
            continue
        components = entry.get("components", [])
        if not isinstance(components, list):
            errors.append(f"Level recipe '{recipe_id}' 'components' must be an array.")
            continue
        for component in components:
            if component not in resource_ids:
                errors.append(
                    f"Level recipe '{recipe_id}' references unknown resource '{component}'."
                )

    return errors


def _format_errors(prefix: str, errors: Iterable[str]) -> str:
    formatted = "\n".join(f"- {err}" for err in errors)
    return f"{prefix}:\n{formatted}"

"""Validation utilities for RewardBar applications."""

from __future__ import annotations

from .app import CampaignApp
from .domain.rewards import Rarity, RewardType


def validate_app(app: CampaignApp) -> list[str]:
    """Return list of validation errors discovered in configured app."""
    errors: list[str] = []

    templates = list(app.rewards.catalog.iter_templates())
    if not templates:
        errors.append("No reward templates registered in application.")

    for template in templates:
        if template.spawn_weight <= 0:
            errors.append(
                f"Template '{template.template_id}' has non-positive spawn weight "
                f"'{template.spawn_weight}'."
            )
        if template.fixed_amount < 0:
            errors.append(
                f"Template '{template.template_id}' has negative fixed amount "
                f"'{template.fixed_amount}'."
            )
        if template.resource_coefficient < 0:
            errors.append(
                f"Template '{template.template_id}' has negative resource coefficient."
            )
        if template.reward_type == RewardType.RESOURCE and not len(app.resources.registry):
            errors.append(
                f"Template '{template.template_id}' grants resources but none are registered."
            )

    session = app.config.session
    if session.slot_count <= 0:
        errors.append("Session configuration 'slot_count' must be positive.")
    if session.reveal_duration_seconds <= 0:
        errors.append("Session configuration 'reveal_duration_seconds' must be positive.")
    if session.cooldown_duration_seconds < 0:
        errors.append("Session configuration 'cooldown_duration_seconds' cannot be negative.")
    if session.tick_interval_seconds <= 0:
        errors.append("Session configuration 'tick_interval_seconds' must be positive.")
    if session.force_super_last and templates and not app.rewards.catalog.super_templates():
        errors.append("force_super_last is enabled but no super reward template is registered.")

    pool = app.config.pool
    for rarity_code, weight in pool.rarity_weights.items():
        try:
            Rarity(rarity_code)
        except ValueError:
            errors.append(f"Pool configuration rarity weight contains invalid rarity '{rarity_code}'.")
        if weight is None or weight <= 0:
            errors.append(f"Pool configuration rarity weight for '{rarity_code}' must be positive.")
    for type_code, weight in pool.type_base_weights.items():
        try:
            RewardType(type_code)
        except ValueError:
            errors.append(f"Pool configuration type weight contains invalid type '{type_code}'.")
        if weight is None or weight < 0:
            errors.append(f"Pool configuration type weight for '{type_code}' cannot be negative.")
    if pool.max_consecutive_same_type < 0:
        errors.append("Pool configuration 'max_consecutive_same_type' cannot be negative.")
    for name in (
        "recent_item_penalty_multiplier",
        "type_repeat_penalty_multiplier",
        "production_chance",
    ):
        value = getattr(pool, name)
        if not 0.0 <= value <= 1.0:
            errors.append(f"Pool configuration '{name}' must be within [0, 1].")
    if pool.min_weight <= 0:
        errors.append("Pool configuration 'min_weight' must be positive.")

    return errors


__all__ = ["validate_app"]

"""Automated checks to highlight balancing issues."""

from __future__ import annotations

from dataclasses import dataclass

from ..app import CampaignApp
from ..domain.rewards import RewardType


@dataclass(slots=True)
class ChecklistIssue:
    severity: str
    message: str


def run_checklist(app: CampaignApp) -> list[ChecklistIssue]:
    issues: list[ChecklistIssue] = []
    templates = list(app.rewards.catalog.iter_templates())
    if not templates:
        issues.append(ChecklistIssue("error", "No reward templates registered."))
        return issues

    if not app.rewards.catalog.super_templates():
        issues.append(
            ChecklistIssue("warning", "No super reward template; the last slot is not guaranteed.")
        )

    weights = app.config.pool.type_base_weights
    for reward_type in RewardType:
        if weights.get(reward_type.value, 0) <= 0:
            continue
        regular = [
            t for t in templates if t.reward_type == reward_type and not t.is_super_reward
        ]
        if not regular:
            issues.append(
                ChecklistIssue(
                    "warning",
                    f"Slot type '{reward_type.value}' can be drawn but has no regular templates; "
                    "such slots fall back to the whole catalog.",
                )
            )

    uses_resources = any(t.reward_type == RewardType.RESOURCE for t in templates)
    if uses_resources and not len(app.resources.registry):
        issues.append(
            ChecklistIssue("error", "Resource templates exist but no resources are registered.")
        )
    elif uses_resources and not app.resources.progression.recipes:
        issues.append(
            ChecklistIssue("info", "No level recipes; resource rewards rely on production only.")
        )

    heaviest = max(templates, key=lambda t: t.spawn_weight)
    total = sum(t.spawn_weight for t in templates)
    if len(templates) > 1 and heaviest.spawn_weight > total * 0.8:
        issues.append(
            ChecklistIssue(
                "warning",
                f"Template '{heaviest.template_id}' holds over 80% of the spawn weight.",
            )
        )

    return issues

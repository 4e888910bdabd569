"""Balancing diagnostics for reward catalogs."""

from .checklist import ChecklistIssue, run_checklist
from .generation_simulator import GenerationSimulator, SimulationResult

__all__ = [
    "ChecklistIssue",
    "GenerationSimulator",
    "SimulationResult",
    "run_checklist",
]

"""Command line helpers for RewardBar."""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path
from random import Random

from rich.console import Console
from rich.table import Table

from .app import CampaignApp
from .config import RewardBarConfig
from .diagnostics.checklist import run_checklist as checklist_run
from .diagnostics.generation_simulator import GenerationSimulator, SimulationResult
from .loaders import load_catalog_from_json, validate_catalog_file
from .validators import validate_app

console = Console()


def run_simulator() -> None:
    parser = argparse.ArgumentParser(description="RewardBar generation simulator")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--module", help="Python module with register(app) function")
    source.add_argument("--catalog", help="Path to catalog JSON file")
    parser.add_argument("--runs", type=int, default=1000, help="Number of bars to generate")
    parser.add_argument("--slots", type=int, default=None, help="Override slot count")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    app = _build_app(args.module, args.catalog)
    simulator = GenerationSimulator(app, rng=Random(args.seed))
    result = simulator.simulate(runs=args.runs, slot_count=args.slots)
    render_simulation(result)


def render_simulation(result: SimulationResult) -> None:
    console.print(
        f"Simulated [bold]{result.runs}[/bold] bars of {result.slot_count} slots."
    )
    table = Table(title="Slot types")
    table.add_column("Type")
    table.add_column("Slots", justify="right")
    table.add_column("Share", justify="right")
    total = sum(result.types.values()) or 1
    for name, amount in result.types.most_common():
        table.add_row(name, str(amount), f"{amount / total:.1%}")
    console.print(table)

    rarity_table = Table(title="Rarities")
    rarity_table.add_column("Rarity")
    rarity_table.add_column("Slots", justify="right")
    for name, amount in result.rarities.most_common():
        rarity_table.add_row(name, str(amount))
    console.print(rarity_table)

    console.print(f"Super reward in last slot: {result.super_last_rate:.1%}")
    console.print(f"Longest same-type run: {result.longest_type_run}")
    console.print(f"Coins generated: {result.coins}")


def run_checklist() -> None:
    parser = argparse.ArgumentParser(description="RewardBar sanity checks")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--module", help="Python module with register(app) function")
    source.add_argument("--catalog", help="Path to catalog JSON file")
    args = parser.parse_args()

    app = _build_app(args.module, args.catalog)
    issues = checklist_run(app)
    if not issues:
        console.print("[green]No issues found.[/green]")
        return
    for issue in issues:
        console.print(f"[{issue.severity.upper()}] {issue.message}", markup=False)
    if any(issue.severity == "error" for issue in issues):
        sys.exit(1)


def run_validate() -> None:
    parser = argparse.ArgumentParser(description="RewardBar validator")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--catalog",
        help="Path to catalog JSON file for validation",
    )
    group.add_argument(
        "--module",
        help="Python module with register(app) function to validate",
    )
    args = parser.parse_args()

    if args.catalog:
        errors = validate_catalog_file(Path(args.catalog))
        if errors:
            console.print("[red]Catalog errors:[/red]")
            for err in errors:
                console.print(f"- {err}", markup=False)
            sys.exit(1)
        console.print("[green]Catalog is valid.[/green]")
        return

    app = _build_app(args.module, None)
    issues = validate_app(app)
    if issues:
        console.print("[red]Configuration errors:[/red]")
        for issue in issues:
            console.print(f"- {issue}", markup=False)
        sys.exit(1)
    console.print("[green]Campaign configuration is valid.[/green]")


def _build_app(module: str | None, catalog: str | None) -> CampaignApp:
    app = CampaignApp(RewardBarConfig.from_env())
    if catalog:
        load_catalog_from_json(app, Path(catalog))
    if module:
        _load_module(module, app)
    return app


def _load_module(path: str, app: CampaignApp) -> None:
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    module = importlib.import_module(path)
    if hasattr(module, "register"):
        module.register(app)
    else:
        raise RuntimeError(f"Module {path} does not define register(app).")

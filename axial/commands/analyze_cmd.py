"""
CLI commands for read-only analysis.

Commands:
- axial analyze   - Distribution and trend report for one ledger
- axial compat    - Compatibility between two ledgers
- axial standing  - Social standing from a prestige ledger
"""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..analysis import analyze_compatibility, analyze_distribution, analyze_trends
from ..errors import LedgerError
from ..policies import Settlement, social_standing
from .ledger_cmd import read_ledger

console = Console()
err = Console(stderr=True)


def run_analyze(path: Path, window_days: float = 30, json_output: bool = False) -> int:
    try:
        ledger = read_ledger(path)
    except (OSError, LedgerError) as e:
        err.print(f"Cannot read ledger {path}: {e}", style="bold red")
        return 1

    distribution = analyze_distribution(ledger)
    trends = analyze_trends(ledger, window_days=window_days)

    if json_output:
        print(json.dumps({"distribution": distribution.to_dict(), "trends": trends.to_dict()}, indent=2))
        return 0

    console.print(
        f"Total [bold]{distribution.total:g}[/bold], average {distribution.average:.2f}, "
        f"balance {distribution.balance_score:.2f}"
    )
    console.print(f"Dominant: {', '.join(a.axis_id for a in distribution.dominant)}")
    console.print(f"Weak: {', '.join(a.axis_id for a in distribution.weak)}")

    table = Table(title=f"Trends over {window_days:g} days ({trends.overall})")
    table.add_column("Axis", style="cyan")
    table.add_column("Trend")
    table.add_column("Total", justify="right")
    table.add_column("Changes", justify="right")
    table.add_column("Projected decay", justify="right")
    for axis_id in ledger.axis_ids():
        trend = trends.axes.get(axis_id)
        projected = trends.projected_decay.get(axis_id)
        table.add_row(
            axis_id,
            trend.trend if trend else "[dim]no changes[/dim]",
            f"{trend.total_change:+g}" if trend else "-",
            str(trend.change_count) if trend else "0",
            f"{projected:.2f}" if projected is not None else "-",
        )
    console.print(table)

    if trends.significant:
        console.print("\n[bold]Significant changes[/bold]")
        for change in trends.significant:
            console.print(f"  {change.axis_id}: {change.record.delta:+g} {change.record.reason}")
    return 0


def run_compat(path_a: Path, path_b: Path, json_output: bool = False) -> int:
    try:
        a = read_ledger(path_a)
        b = read_ledger(path_b)
    except (OSError, LedgerError) as e:
        err.print(f"Cannot read ledger: {e}", style="bold red")
        return 1

    report = analyze_compatibility(a, b)
    if json_output:
        print(json.dumps(report.to_dict(), indent=2))
        return 0

    table = Table(title=f"Compatibility {report.overall:.2f}")
    table.add_column("Axis", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Difference", justify="right")
    table.add_column(path_a.stem)
    table.add_column(path_b.stem)
    for axis_id, c in report.axes.items():
        style = "red" if axis_id in report.conflict else "green" if axis_id in report.harmonious else None
        table.add_row(axis_id, f"{c.score:.2f}", f"{c.difference:g}", c.band_a, c.band_b, style=style)
    console.print(table)
    return 0


def run_standing(
    path: Path,
    settlement_type: str = "town",
    population: float | None = None,
    name: str = "",
    json_output: bool = False,
) -> int:
    try:
        ledger = read_ledger(path)
    except (OSError, LedgerError) as e:
        err.print(f"Cannot read ledger {path}: {e}", style="bold red")
        return 1

    settlement = Settlement(id=name or settlement_type, name=name or settlement_type, type=settlement_type, population=population)
    standing = social_standing(ledger, settlement)
    if json_output:
        print(json.dumps(standing.to_dict(), indent=2))
        return 0

    console.print(
        f"[bold]{standing.social_class}[/bold] (rank {standing.overall_rank:.1f}, "
        f"settlement rank {standing.settlement_rank:.1f}, political power {standing.political_power:g})"
    )
    table = Table(title="Track standings")
    table.add_column("Track", style="cyan")
    table.add_column("Level")
    table.add_column("Rank", justify="right")
    table.add_column("Percentile", justify="right")
    table.add_column("Position")
    for axis_id, t in standing.track_standings.items():
        table.add_row(axis_id, t.level_name, f"{t.rank:.1f}", f"{t.percentile:.1f}", t.relative_position)
    console.print(table)
    if standing.privileges:
        console.print(f"Privileges: {', '.join(standing.privileges)}")
    if standing.responsibilities:
        console.print(f"Responsibilities: {', '.join(standing.responsibilities)}")
    return 0

"""
CLI commands for ledger files.

Commands:
- axial new      - Create a ledger at default values
- axial show     - Print current values, bands and last changes
- axial verify   - Replay every axis history against its current value
- axial migrate  - Wrap legacy manager data into ledger files
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ..config import load_axes
from ..errors import LedgerError
from ..ledger import Ledger, migrate_batch
from ..presets import preset_axes

console = Console()
err = Console(stderr=True)


def read_ledger(path: Path) -> Ledger:
    return Ledger.from_json(path.read_text(encoding="utf-8"))


def write_ledger(ledger: Ledger, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(ledger.to_json(indent=2) + "\n", encoding="utf-8")


def _fmt(value: float) -> str:
    return f"{value:g}"


# ============================================================================
# axial new
# ============================================================================


def run_new(kind: str | None, axes_path: Path | None, out: Path, force: bool = False, strict: bool = False) -> int:
    """Create a ledger from a preset kind or a TOML axis set."""
    if out.exists() and not force:
        err.print(f"Refusing to overwrite {out} (use --force)", style="bold red")
        return 1
    try:
        if axes_path is not None:
            axes = load_axes(axes_path, strict=strict)
        elif kind is not None:
            axes = preset_axes(kind)
        else:
            err.print("Pass a preset kind or --axes FILE", style="bold red")
            return 1
        ledger = Ledger(axes)
    except (LedgerError, ValueError) as e:
        err.print(f"Cannot create ledger: {e}", style="bold red")
        return 1

    write_ledger(ledger, out)
    console.print(f"[green]Created[/green] {out} with axes: {', '.join(ledger.axis_ids())}")
    return 0


# ============================================================================
# axial show
# ============================================================================


def run_show(path: Path, json_output: bool = False) -> int:
    try:
        ledger = read_ledger(path)
    except (OSError, LedgerError) as e:
        err.print(f"Cannot read ledger {path}: {e}", style="bold red")
        return 1

    summary = ledger.summary()
    if json_output:
        output: dict[str, Any] = {}
        for axis_id, info in summary.items():
            last = info["last_change"]
            output[axis_id] = {
                "value": info["value"],
                "band": info["band"],
                "changes": len(ledger.history(axis_id)),
                "last_change": last.to_dict() if last else None,
            }
        print(json.dumps(output, indent=2))
        return 0

    table = Table(title=str(path))
    table.add_column("Axis", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Band")
    table.add_column("Range", style="dim")
    table.add_column("Changes", justify="right")
    table.add_column("Last change")
    for axis in ledger.axes:
        info = summary[axis.id]
        last = info["last_change"]
        table.add_row(
            axis.id,
            _fmt(info["value"]),
            info["band"] or "[yellow]Unknown[/yellow]",
            f"{_fmt(axis.min)}..{_fmt(axis.max)}",
            str(len(ledger.history(axis.id))),
            f"{last.reason} ({last.delta:+g})" if last else "-",
        )
    console.print(table)
    return 0


# ============================================================================
# axial verify
# ============================================================================


def run_verify(path: Path, json_output: bool = False) -> int:
    """Exit 1 when any axis history does not replay to its current value."""
    try:
        ledger = read_ledger(path)
    except (OSError, LedgerError) as e:
        err.print(f"Cannot read ledger {path}: {e}", style="bold red")
        return 1

    inconsistent = ledger.inconsistent_axes()
    if json_output:
        print(
            json.dumps(
                {
                    "ok": not inconsistent,
                    "inconsistent": [
                        {"axis_id": a, "value": ledger.value(a), "replayed": ledger.replay(a)} for a in inconsistent
                    ],
                },
                indent=2,
            )
        )
        return 1 if inconsistent else 0

    if not inconsistent:
        console.print(f"[green]OK[/green] {len(ledger.axis_ids())} axes replay to their current values")
        return 0
    for axis_id in inconsistent:
        err.print(
            f"{axis_id}: current {_fmt(ledger.value(axis_id))}, replayed {_fmt(ledger.replay(axis_id))}",
            style="yellow",
        )
    return 1


# ============================================================================
# axial migrate
# ============================================================================


def _load_records(path: Path) -> list[Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, list) else [data]


def run_migrate(inputs: list[Path], out_dir: Path, kind: str | None = None, json_output: bool = False) -> int:
    """Migrate legacy records; each input file holds one record or a list of them."""
    records: list[Any] = []
    sources: list[str] = []
    for path in inputs:
        try:
            loaded = _load_records(path)
        except (OSError, json.JSONDecodeError) as e:
            err.print(f"Cannot read {path}: {e}", style="bold red")
            return 1
        records.extend(loaded)
        sources.extend(f"{path.stem}-{i}" if len(loaded) > 1 else path.stem for i in range(len(loaded)))

    report = migrate_batch(records, kind)

    failed = {f.index for f in report.failures}
    written: list[str] = []
    ledgers = iter(report.ledgers)
    for index, name in enumerate(sources):
        if index in failed:
            continue
        target = out_dir / f"{name}.json"
        write_ledger(next(ledgers), target)
        written.append(str(target))

    if json_output:
        print(
            json.dumps(
                {
                    "migrated": report.migrated,
                    "failed": report.failed,
                    "written": written,
                    "failures": [{"record": sources[f.index], "error": str(f)} for f in report.failures],
                },
                indent=2,
            )
        )
    else:
        for path in written:
            console.print(f"[green]Wrote[/green] {path}")
        for failure in report.failures:
            err.print(f"{sources[failure.index]}: {failure}", style="yellow")
        console.print(f"\n[dim]Migrated {report.migrated}, failed {report.failed}[/dim]")
    return 1 if report.failures else 0

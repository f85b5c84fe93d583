"""
CLI commands that evolve a ledger.

Commands:
- axial apply   - Run an event file through a modifier policy
- axial decay   - Apply elapsed-time decay (or alignment drift)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ..config import load_decay_config, load_policy_config
from ..errors import LedgerError
from ..ledger import Ledger
from ..policies import POLICIES, Actor, Occurrence, Settlement
from ..policies.alignment import AlignmentPolicy
from ..policies.base import ModifierPolicy
from ..policies.influence import InfluencePolicy
from ..policies.prestige import PrestigePolicy
from .ledger_cmd import read_ledger, write_ledger

console = Console()
err = Console(stderr=True)


def build_policy(kind: str, config_path: Path | None = None) -> ModifierPolicy:
    """Instantiate a policy, layering TOML overrides when given."""
    policy_cls = POLICIES[kind]
    if config_path is None:
        return policy_cls()
    base = policy_cls().config
    config = load_policy_config(config_path, base)
    if policy_cls in (InfluencePolicy, PrestigePolicy):
        decay = load_decay_config(config_path, policy_cls().decay_transform.config)
        return policy_cls(config, decay)
    return policy_cls(config)


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _changes_table(before: Ledger, after: Ledger, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Axis", style="cyan")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Band")
    table.add_column("New records", justify="right")
    for axis_id in after.axis_ids():
        added = len(after.history(axis_id)) - len(before.history(axis_id))
        band = after.band(axis_id)
        table.add_row(
            axis_id,
            f"{before.value(axis_id):g}",
            f"{after.value(axis_id):g}",
            band.name if band else "Unknown",
            str(added),
            style=None if added else "dim",
        )
    return table


def _report(before: Ledger, after: Ledger, path: Path, out: Path | None, title: str, json_output: bool) -> int:
    target = out or path
    write_ledger(after, target)
    if json_output:
        print(
            json.dumps(
                {
                    "ledger": str(target),
                    "values": dict(after.values),
                    "changes": {
                        a: [r.to_dict() for r in after.history(a)[len(before.history(a)):]] for a in after.axis_ids()
                    },
                },
                indent=2,
            )
        )
        return 0
    console.print(_changes_table(before, after, title))
    console.print(f"\n[dim]Wrote {target}[/dim]")
    return 0


# ============================================================================
# axial apply
# ============================================================================


def run_apply(
    path: Path,
    kind: str,
    events_path: Path,
    config_path: Path | None = None,
    out: Path | None = None,
    in_order: bool = False,
    json_output: bool = False,
) -> int:
    """Apply occurrences from a JSON file (one object or a list).

    Occurrences are sorted chronologically unless ``in_order`` is set.
    """
    try:
        ledger = read_ledger(path)
        policy = build_policy(kind, config_path)
        raw = _load_json(events_path)
        occurrences = [Occurrence.from_dict(item) for item in (raw if isinstance(raw, list) else [raw])]
        if in_order:
            result = ledger
            for occ in occurrences:
                result = policy.evolve(result, occ.event, occ.actor, occ.environment)
        else:
            result = policy.apply_all(ledger, occurrences)
    except (OSError, json.JSONDecodeError, LedgerError) as e:
        err.print(f"apply failed: {e}", style="bold red")
        return 1

    return _report(ledger, result, path, out, f"{kind} policy: {len(occurrences)} events", json_output)


# ============================================================================
# axial decay
# ============================================================================


def run_decay(
    path: Path,
    kind: str,
    days: float,
    actor_path: Path | None = None,
    active_path: Path | None = None,
    config_path: Path | None = None,
    out: Path | None = None,
    json_output: bool = False,
) -> int:
    """Influence and prestige decay toward zero; alignment drifts toward personality."""
    try:
        ledger = read_ledger(path)
        policy = build_policy(kind, config_path)
        actor = Actor.from_dict(_load_json(actor_path)) if actor_path else None
        active: list[Settlement] = []
        if active_path is not None:
            raw = _load_json(active_path)
            active = [s for s in (Settlement.from_dict(item) for item in raw) if s is not None]

        if isinstance(policy, AlignmentPolicy):
            result = policy.drift(ledger, actor or Actor(), days)
        elif isinstance(policy, InfluencePolicy):
            result = policy.decay(ledger, days, actor, active)
        elif isinstance(policy, PrestigePolicy):
            result = policy.decay(ledger, days, actor)
        else:
            err.print(f"No decay defined for {kind!r}", style="bold red")
            return 1
    except (OSError, json.JSONDecodeError, LedgerError) as e:
        err.print(f"decay failed: {e}", style="bold red")
        return 1

    return _report(ledger, result, path, out, f"{kind} decay over {days:g} days", json_output)

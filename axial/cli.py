"""CLI entrypoint for axial."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .ledger.migration import LEGACY_SHAPES
from .presets import PRESETS

KINDS = click.Choice(sorted(PRESETS))
FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _json_option(f):
    return click.option("--json", "json_output", is_flag=True, help="Output results as JSON")(f)


@click.group()
@click.version_option(__version__, prog_name="axial")
@click.option("--verbose", is_flag=True, help="Log policy and decay decisions to stderr")
def cli(verbose: bool) -> None:
    """axial - Immutable attribute ledgers for simulated characters.

    Create ledgers, run events and elapsed time through modifier policies,
    and inspect the results.
    """
    if verbose:
        from rich.console import Console
        from rich.logging import RichHandler

        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s: %(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


# ============================================================================
# Ledger files
# ============================================================================


@cli.command()
@click.argument("kind", type=KINDS, required=False)
@click.option("--axes", "axes_path", type=FILE, default=None, help="TOML axis set instead of a preset")
@click.option("--out", "-o", type=click.Path(dir_okay=False, path_type=Path), required=True, help="Ledger file to write")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.option("--strict", is_flag=True, help="Reject overlapping bands in --axes")
def new(kind: str | None, axes_path: Path | None, out: Path, force: bool, strict: bool) -> None:
    """Create a ledger at default values from a preset KIND or --axes FILE."""
    from .commands.ledger_cmd import run_new

    sys.exit(run_new(kind, axes_path, out, force=force, strict=strict))


@cli.command()
@click.argument("path", type=FILE)
@_json_option
def show(path: Path, json_output: bool) -> None:
    """Show current values, bands and last changes."""
    from .commands.ledger_cmd import run_show

    sys.exit(run_show(path, json_output))


@cli.command()
@click.argument("path", type=FILE)
@_json_option
def verify(path: Path, json_output: bool) -> None:
    """Check that each axis history replays to its current value."""
    from .commands.ledger_cmd import run_verify

    sys.exit(run_verify(path, json_output))


@cli.command()
@click.argument("inputs", nargs=-1, required=True, type=FILE)
@click.option("--out-dir", "-o", type=click.Path(file_okay=False, path_type=Path), required=True)
@click.option("--kind", type=click.Choice(sorted(LEGACY_SHAPES)), default=None,
              help="Legacy shape (inferred when omitted)")
@_json_option
def migrate(inputs: tuple[Path, ...], out_dir: Path, kind: str | None, json_output: bool) -> None:
    """Convert legacy manager records into ledger files.

    Records that fail are reported and skipped; the exit code is 1 if any failed.
    """
    from .commands.ledger_cmd import run_migrate

    sys.exit(run_migrate(list(inputs), out_dir, kind, json_output))


# ============================================================================
# Evolution
# ============================================================================


@cli.command()
@click.argument("path", type=FILE)
@click.argument("events", type=FILE)
@click.option("--kind", type=KINDS, required=True, help="Modifier policy to apply")
@click.option("--config", "config_path", type=FILE, default=None, help="TOML policy overrides")
@click.option("--out", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write here instead of updating PATH")
@click.option("--in-order", is_flag=True, help="Apply in file order instead of by timestamp")
@_json_option
def apply(
    path: Path,
    events: Path,
    kind: str,
    config_path: Path | None,
    out: Path | None,
    in_order: bool,
    json_output: bool,
) -> None:
    """Run the EVENTS JSON file through a modifier policy."""
    from .commands.simulate_cmd import run_apply

    sys.exit(run_apply(path, kind, events, config_path, out, in_order, json_output))


@cli.command()
@click.argument("path", type=FILE)
@click.option("--kind", type=KINDS, required=True)
@click.option("--days", type=float, required=True, help="Elapsed time in days")
@click.option("--actor", "actor_path", type=FILE, default=None, help="Actor JSON (traits, age)")
@click.option("--active", "active_path", type=FILE, default=None, help="JSON list of recently active settlements")
@click.option("--config", "config_path", type=FILE, default=None, help="TOML policy and decay overrides")
@click.option("--out", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None)
@_json_option
def decay(
    path: Path,
    kind: str,
    days: float,
    actor_path: Path | None,
    active_path: Path | None,
    config_path: Path | None,
    out: Path | None,
    json_output: bool,
) -> None:
    """Apply elapsed-time decay (alignment drifts toward personality instead)."""
    from .commands.simulate_cmd import run_decay

    sys.exit(run_decay(path, kind, days, actor_path, active_path, config_path, out, json_output))


# ============================================================================
# Analysis
# ============================================================================


@cli.command()
@click.argument("path", type=FILE)
@click.option("--window", type=float, default=30, show_default=True, help="Trend window in days")
@_json_option
def analyze(path: Path, window: float, json_output: bool) -> None:
    """Distribution and recent trends for one ledger."""
    from .commands.analyze_cmd import run_analyze

    sys.exit(run_analyze(path, window, json_output))


@cli.command()
@click.argument("a", type=FILE)
@click.argument("b", type=FILE)
@_json_option
def compat(a: Path, b: Path, json_output: bool) -> None:
    """Per-axis compatibility between two ledgers."""
    from .commands.analyze_cmd import run_compat

    sys.exit(run_compat(a, b, json_output))


@cli.command()
@click.argument("path", type=FILE)
@click.option("--settlement-type", default="town", show_default=True)
@click.option("--population", type=float, default=None)
@click.option("--name", default="")
@_json_option
def standing(path: Path, settlement_type: str, population: float | None, name: str, json_output: bool) -> None:
    """Social standing from a prestige ledger within a settlement."""
    from .commands.analyze_cmd import run_standing

    sys.exit(run_standing(path, settlement_type, population, name, json_output))


if __name__ == "__main__":
    cli()

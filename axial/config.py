"""
TOML configuration.

One file may carry any of three sections:

    [[axes]]                       # axis set
    id = "political"
    name = "Political Influence"
    min = 0
    max = 100
    default_value = 10

    [[axes.bands]]
    name = "Low"
    min = 0
    max = 33

    [clamps.political_event]       # policy overrides
    political = [-40, 40]

    [rates.political_event]
    election = 6

    [witness.heroic_act]
    divisor = 20
    cap = 3

    [decay]                        # decay overrides
    base_rate = 0.05
    [decay.band_multipliers]
    "Very High" = 2.5

Overrides are layered on top of a base configuration; anything not named
keeps its base value.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any

from .axes import AxisDefinition, find_band_overlaps
from .decay import AgeRule, DecayConfig
from .errors import AxisDefinitionError, ConfigError
from .policies.base import ClampRange, PolicyConfig, WitnessScale

logger = logging.getLogger(__name__)


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _read_toml(path: Path) -> dict[str, Any]:
    import tomllib

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: invalid TOML: {e}") from e
    except OSError as e:
        raise ConfigError(f"{path}: cannot read: {e}") from e


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where} must be a number, got {value!r}")
    return value


def load_axes(path: Path, strict: bool = False) -> list[AxisDefinition]:
    """Load an axis set.

    Overlapping bands are logged as warnings (lookup is first-match) and
    rejected when ``strict`` is set.
    """
    data = _read_toml(path)
    raw_axes = data.get("axes")
    if not isinstance(raw_axes, list) or not raw_axes:
        raise ConfigError(f"{path}: at least one [[axes]] table is required")

    axes: list[AxisDefinition] = []
    for raw in raw_axes:
        try:
            axis = AxisDefinition.from_dict(_coerce_dict(raw))
        except AxisDefinitionError as e:
            raise ConfigError(f"{path}: {e}") from e
        for first, second in find_band_overlaps(axis):
            message = f"{path}: axis {axis.id!r} bands {first!r} and {second!r} overlap"
            if strict:
                raise ConfigError(message)
            logger.warning("%s; lookup uses %r", message, first)
        axes.append(axis)
    return axes


def _clamp_range(value: Any, where: str) -> ClampRange:
    if not isinstance(value, list) or len(value) != 2:
        raise ConfigError(f"{where} must be a [low, high] pair")
    return ClampRange(_number(value[0], where), _number(value[1], where))


def parse_policy_overrides(data: dict[str, Any], base: PolicyConfig) -> PolicyConfig:
    clamps = {
        scope: {axis_id: _clamp_range(rng, f"clamps.{scope}.{axis_id}") for axis_id, rng in _coerce_dict(table).items()}
        for scope, table in _coerce_dict(data.get("clamps")).items()
    }
    rates = {
        scope: {key: _number(value, f"rates.{scope}.{key}") for key, value in _coerce_dict(table).items()}
        for scope, table in _coerce_dict(data.get("rates")).items()
    }
    witness: dict[str, WitnessScale] = {}
    for scope, table in _coerce_dict(data.get("witness")).items():
        table = _coerce_dict(table)
        witness[scope] = WitnessScale(
            _number(table.get("divisor"), f"witness.{scope}.divisor"),
            _number(table.get("cap"), f"witness.{scope}.cap"),
        )
    generic = data.get("generic_clamp")
    return base.merged(
        clamps=clamps,
        rates=rates,
        witness=witness,
        generic_clamp=_clamp_range(generic, "generic_clamp") if generic is not None else None,
    )


def load_policy_config(path: Path, base: PolicyConfig) -> PolicyConfig:
    """Layer ``[clamps.*]``, ``[rates.*]``, ``[witness.*]`` and ``generic_clamp`` onto ``base``."""
    data = _read_toml(path)
    try:
        return parse_policy_overrides(data, base)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e


_DECAY_NUMBERS = (
    "base_rate",
    "reference_period",
    "activity_discount",
    "activity_discount_cap",
    "trait_divisor",
    "trait_cap",
    "default_age",
    "materiality",
    "max_step",
)


def parse_decay_overrides(table: dict[str, Any], base: DecayConfig) -> DecayConfig:
    changes: dict[str, Any] = {}
    for key in _DECAY_NUMBERS:
        if key in table:
            changes[key] = _number(table[key], f"decay.{key}")
    if "band_multipliers" in table:
        multipliers = dict(base.band_multipliers)
        for name, value in _coerce_dict(table["band_multipliers"]).items():
            multipliers[name] = _number(value, f"decay.band_multipliers.{name}")
        changes["band_multipliers"] = multipliers
    if "age_rules" in table:
        rules = []
        for raw in table["age_rules"]:
            raw = _coerce_dict(raw)
            axis_id = str(raw.get("axis_id", "")).strip()
            if not axis_id:
                raise ConfigError("decay.age_rules entries need an axis_id")
            rules.append(
                AgeRule(
                    axis_id,
                    _number(raw.get("min_age"), f"decay.age_rules.{axis_id}.min_age"),
                    factor=raw.get("factor"),
                    per_year=raw.get("per_year"),
                )
            )
        changes["age_rules"] = tuple(rules)
    return dataclasses.replace(base, **changes)


def load_decay_config(path: Path, base: DecayConfig) -> DecayConfig:
    """Layer the ``[decay]`` table onto ``base``."""
    data = _read_toml(path)
    try:
        return parse_decay_overrides(_coerce_dict(data.get("decay")), base)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e

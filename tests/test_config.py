"""Tests for TOML axis sets and policy/decay overrides."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from axial.config import load_axes, load_decay_config, load_policy_config
from axial.errors import ConfigError
from axial.policies import INFLUENCE_CONFIG, PRESTIGE_DECAY

AXES_TOML = """
[[axes]]
id = "honor"
name = "Honor"
min = 0
max = 100
default_value = 25
decay_rate = 0.02

[[axes.bands]]
name = "Low"
min = 0
max = 49

[[axes.bands]]
name = "High"
min = 50
max = 100
decay_multiplier = 1.5

[[axes]]
id = "courage"
name = "Courage"
min = -10
max = 10
default_value = 0

[[axes.bands]]
name = "All"
min = -10
max = 10
"""

OVERLAP_TOML = """
[[axes]]
id = "social"
name = "Social"
min = 0
max = 100
default_value = 0

[[axes.bands]]
name = "Low"
min = 0
max = 60

[[axes.bands]]
name = "High"
min = 40
max = 100
"""


def _write(tmp_path: Path, text: str, name: str = "axial.toml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_load_axes(tmp_path: Path) -> None:
    honor, courage = load_axes(_write(tmp_path, AXES_TOML))

    assert honor.id == "honor"
    assert honor.default_value == 25
    assert honor.decay_rate == 0.02
    assert [b.name for b in honor.bands] == ["Low", "High"]
    assert honor.band_named("High").get("decay_multiplier") == 1.5
    assert courage.min == -10


def test_overlapping_bands_warn(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(tmp_path, OVERLAP_TOML)
    with caplog.at_level(logging.WARNING, logger="axial.config"):
        (axis,) = load_axes(path)
    assert axis.band_for(50).name == "Low"
    assert "bands 'Low' and 'High' overlap" in caplog.text


def test_overlapping_bands_rejected_in_strict_mode(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="overlap"):
        load_axes(_write(tmp_path, OVERLAP_TOML), strict=True)


@pytest.mark.parametrize(
    "text, message",
    [
        ("not = [valid", "invalid TOML"),
        ("title = 'no axes'", r"at least one \[\[axes\]\]"),
        ("[[axes]]\nid = 'x'\nname = 'X'\nmin = 0\nmax = 1\ndefault_value = 0\nbands = []", "at least one band"),
    ],
)
def test_bad_axis_files(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        load_axes(_write(tmp_path, text))


def test_missing_file_is_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="cannot read"):
        load_axes(tmp_path / "missing.toml")


def test_policy_overrides_layer_on_base(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
generic_clamp = [-2, 2]

[clamps.political_event]
political = [-40, 40]

[rates.political_event]
election = 6

[witness.political_event]
divisor = 20
cap = 3
""",
    )
    config = load_policy_config(path, INFLUENCE_CONFIG)

    assert config.clamp("political_event", "political", 100) == 40
    assert config.clamp("political_event.secondary", "social", 100) == 15
    assert config.rate("political_event", "election") == 6
    assert config.rate("political_event", "election.leader") == 15
    assert config.witness_multiplier("political_event", 20) == pytest.approx(2.0)
    assert config.generic_clamp.high == 2
    assert INFLUENCE_CONFIG.rate("political_event", "election") == 5


@pytest.mark.parametrize(
    "text, message",
    [
        ("[clamps.war]\nmoral = [1]", "low, high"),
        ("[clamps.war]\nmoral = [5, -5]", "exceeds"),
        ("[rates.war]\norder_base = 'five'", "must be a number"),
        ("[witness.war]\ndivisor = 10", "witness.war.cap"),
    ],
)
def test_bad_policy_overrides(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        load_policy_config(_write(tmp_path, text), INFLUENCE_CONFIG)


def test_decay_overrides(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
[decay]
base_rate = 0.05
max_step = 4

[decay.band_multipliers]
"Very High" = 2.5

[[decay.age_rules]]
axis_id = "honor"
min_age = 60
factor = 1.2
""",
    )
    config = load_decay_config(path, PRESTIGE_DECAY)

    assert config.base_rate == 0.05
    assert config.max_step == 4
    assert config.band_multipliers["Very High"] == 2.5
    assert config.band_multipliers["Legendary"] == 2.0
    assert [r.axis_id for r in config.age_rules] == ["honor"]
    assert config.trait_divisor == PRESTIGE_DECAY.trait_divisor


def test_missing_decay_table_keeps_base(tmp_path: Path) -> None:
    config = load_decay_config(_write(tmp_path, "[rates.war]\norder_base = 5"), PRESTIGE_DECAY)
    assert config == PRESTIGE_DECAY


def test_bad_decay_values(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="decay.base_rate"):
        load_decay_config(_write(tmp_path, "[decay]\nbase_rate = 'slow'"), PRESTIGE_DECAY)
    with pytest.raises(ConfigError, match="non-negative"):
        load_decay_config(_write(tmp_path, "[decay]\nbase_rate = -1"), PRESTIGE_DECAY)

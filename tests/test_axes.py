"""Tests for axis definitions and band lookup."""

from __future__ import annotations

import math

import pytest

from axial.axes import AxisDefinition, Band, find_band_overlaps, is_number
from axial.errors import AxisDefinitionError
from axial.presets import alignment_axes, preset_axes


def test_is_number_rejects_bools_and_non_finite() -> None:
    assert is_number(3)
    assert is_number(-2.5)
    assert not is_number(True)
    assert not is_number(math.nan)
    assert not is_number(math.inf)
    assert not is_number("4")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"name": "", "min": 0, "max": 1}, "valid name"),
        ({"name": "Low", "min": "0", "max": 1}, "numeric"),
        ({"name": "Low", "min": 5, "max": 5}, "less than max"),
    ],
)
def test_band_validation(kwargs: dict, message: str) -> None:
    with pytest.raises(AxisDefinitionError, match=message):
        Band(**kwargs)


def test_axis_requires_default_within_range() -> None:
    with pytest.raises(AxisDefinitionError, match="within min/max"):
        AxisDefinition("moral", "Moral", -50, 50, 60, (Band("All", -50, 50),))


def test_axis_requires_bands() -> None:
    with pytest.raises(AxisDefinitionError, match="at least one band"):
        AxisDefinition("moral", "Moral", -50, 50, 0, ())


def test_axis_rejects_negative_decay_rate() -> None:
    with pytest.raises(AxisDefinitionError, match="decay rate"):
        AxisDefinition("honor", "Honor", 0, 100, 0, (Band("All", 0, 100),), decay_rate=-0.1)


def test_axis_definition_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        AxisDefinition("", "Nameless", 0, 1, 0, (Band("All", 0, 1),))


def test_clamp_and_span() -> None:
    axis = alignment_axes()[0]
    assert axis.span == 100
    assert axis.clamp(75) == 50
    assert axis.clamp(-75) == -50
    assert axis.clamp(12.5) == 12.5


def test_band_for_inclusive_bounds() -> None:
    moral = alignment_axes()[0]
    assert moral.band_for(-50).name == "Evil"
    assert moral.band_for(-16).name == "Evil"
    assert moral.band_for(15).name == "Neutral"
    assert moral.band_for(50).name == "Good"


def test_value_in_band_gap_has_no_band() -> None:
    moral = alignment_axes()[0]
    assert moral.band_for(-15.5) is None


def test_overlapping_bands_first_match_wins() -> None:
    axis = AxisDefinition(
        "social",
        "Social",
        0,
        100,
        0,
        (Band("Low", 0, 60), Band("High", 40, 100)),
    )
    assert axis.band_for(50).name == "Low"
    assert find_band_overlaps(axis) == [("Low", "High")]


def test_presets_have_no_overlaps() -> None:
    for kind in ("alignment", "influence", "prestige"):
        for axis in preset_axes(kind):
            assert find_band_overlaps(axis) == []


def test_band_metadata_round_trip() -> None:
    band = Band.from_dict({"name": "Major", "min": 50, "max": 74, "decay_multiplier": 1.5, "benefits": ["Policy input"]})
    assert band.get("decay_multiplier") == 1.5
    assert band.get("benefits") == ("Policy input",)
    assert band.get("missing", 0) == 0
    assert band.to_dict() == {
        "name": "Major",
        "min": 50,
        "max": 74,
        "decay_multiplier": 1.5,
        "benefits": ["Policy input"],
    }


def test_axis_dict_round_trip_keeps_decay_rate_and_unknown_keys() -> None:
    data = {
        "id": "honor",
        "name": "Honor",
        "min": 0,
        "max": 100,
        "default_value": 25,
        "decay_rate": 0.02,
        "bands": [{"name": "All", "min": 0, "max": 100}],
        "description": "Personal honor",
    }
    axis = AxisDefinition.from_dict(data)
    assert axis.decay_rate == 0.02
    assert axis.metadata["description"] == "Personal honor"
    assert AxisDefinition.from_dict(axis.to_dict()) == axis


def test_axis_from_dict_requires_band_list() -> None:
    with pytest.raises(AxisDefinitionError, match="list of bands"):
        AxisDefinition.from_dict({"id": "x", "name": "X", "min": 0, "max": 1, "default_value": 0})


def test_unknown_preset_raises() -> None:
    with pytest.raises(ValueError, match="Unknown preset"):
        preset_axes("reputation")

"""Pytest configuration and fixtures."""

import pytest

from axial.axes import AxisDefinition, Band
from axial.ledger import Ledger
from axial.policies import Environment, Settlement


def _flat_axis(axis_id: str, low: float = 0, high: float = 100, default: float = 0) -> AxisDefinition:
    """Axis with a single band covering the whole range."""
    return AxisDefinition(axis_id, axis_id.title(), low, high, default, (Band("All", low, high),))


@pytest.fixture
def political_axis() -> AxisDefinition:
    """Political axis, 0..100, default 10, top band "Very High"."""
    return AxisDefinition(
        "political",
        "Political Influence",
        0,
        100,
        10,
        (
            Band("Low", 0, 24),
            Band("Medium", 25, 49),
            Band("High", 50, 74),
            Band("Very High", 75, 100),
        ),
    )


@pytest.fixture
def political_ledger(political_axis: AxisDefinition) -> Ledger:
    return Ledger([political_axis])


@pytest.fixture
def domain_ledger() -> Ledger:
    """Every influence domain at zero, one band each."""
    return Ledger([_flat_axis(a) for a in ("political", "social", "economic", "military", "religious")])


@pytest.fixture
def track_ledger() -> Ledger:
    """Every prestige track at zero, one band each."""
    return Ledger([_flat_axis(a) for a in ("military", "political", "wealth", "cultural", "social", "honor")])


@pytest.fixture
def city() -> Settlement:
    return Settlement(
        id="riverton",
        name="Riverton",
        type="city",
        population=5000,
        prosperity=60,
        stability=70,
        dominant_culture="river_folk",
        features=frozenset({"market"}),
    )


@pytest.fixture
def in_city(city: Settlement) -> Environment:
    return Environment(settlement=city)

"""Tests for time-based decay."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from axial.axes import AxisDefinition, Band
from axial.decay import AgeRule, DecayConfig, DecayTransform
from axial.errors import ConfigError
from axial.ledger import Ledger
from axial.policies import Actor, Settlement
from axial.policies.influence import INFLUENCE_DECAY
from axial.policies.prestige import PRESTIGE_DECAY
from axial.presets import new_ledger

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _at(days: float) -> datetime:
    return BASE_TIME + timedelta(days=days)


def _flat_axis(axis_id: str, low: float = 0, high: float = 100, default: float = 0) -> AxisDefinition:
    return AxisDefinition(axis_id, axis_id.title(), low, high, default, (Band("All", low, high),))


@pytest.fixture
def influence_decay() -> DecayTransform:
    return DecayTransform(INFLUENCE_DECAY, name="influence_decay")


def test_top_band_decays_faster(political_axis: AxisDefinition, influence_decay: DecayTransform) -> None:
    high = Ledger([political_axis], values={"political": 85})
    low = Ledger([political_axis], values={"political": 15})

    high_delta = influence_decay.compute_deltas(high, 1)[0]
    low_delta = influence_decay.compute_deltas(low, 1)[0]

    assert high_delta.amount == pytest.approx(-8.5)
    assert low_delta.amount == pytest.approx(-0.75)
    assert abs(high_delta.amount) > abs(low_delta.amount)


def test_zero_elapsed_returns_same_ledger(political_ledger: Ledger, influence_decay: DecayTransform) -> None:
    assert influence_decay.apply(political_ledger, 0) is political_ledger
    assert influence_decay.apply(political_ledger, -5) is political_ledger
    assert influence_decay.compute_deltas(political_ledger, 0) == []


def test_decay_records_reason_and_context(political_ledger: Ledger, influence_decay: DecayTransform) -> None:
    decayed = influence_decay.apply(political_ledger, 1, timestamp=_at(3))
    record = decayed.last_change("political")

    assert decayed.value("political") == pytest.approx(9.5)
    assert record.reason == "Natural decay over 1 days"
    assert record.timestamp == _at(3)
    assert record.context["source"] == "influence_decay"
    assert record.context["elapsed"] == 1
    assert record.context["rate"] == pytest.approx(0.05)


def test_decay_never_crosses_zero(political_axis: AxisDefinition) -> None:
    transform = DecayTransform(DecayConfig(base_rate=0.5, reference_period=1))
    ledger = Ledger([political_axis], values={"political": 40})
    assert transform.apply(ledger, 100).value("political") == 0


def test_negative_values_decay_upward() -> None:
    transform = DecayTransform(DecayConfig(base_rate=0.1, reference_period=1))
    ledger = new_ledger("alignment").with_change("moral", -20, "Cruelty")
    decayed = transform.apply(ledger, 1)
    assert decayed.value("moral") == pytest.approx(-18)
    assert decayed.history("ethical") == ()


def test_step_cap_limits_large_decay(political_axis: AxisDefinition, influence_decay: DecayTransform) -> None:
    ledger = Ledger([political_axis], values={"political": 90})
    (delta,) = influence_decay.compute_deltas(ledger, 30)
    assert delta.amount == -10


def test_immaterial_decay_is_dropped(political_axis: AxisDefinition, influence_decay: DecayTransform) -> None:
    ledger = Ledger([political_axis], values={"political": 1})
    assert influence_decay.compute_deltas(ledger, 1) == []
    assert influence_decay.apply(ledger, 1) == ledger


def test_relevant_active_settlements_slow_decay(political_ledger: Ledger, influence_decay: DecayTransform) -> None:
    capital = Settlement(id="crown", name="Crownhold", type="capital")
    village = Settlement(id="hamlet", name="Hamlet", type="village")

    base = influence_decay.rate_for(political_ledger, "political")
    shielded = influence_decay.rate_for(political_ledger, "political", active=[capital, capital])
    unrelated = influence_decay.rate_for(political_ledger, "political", active=[village])

    assert base == pytest.approx(0.05)
    assert shielded == pytest.approx(0.05 * 0.6)
    assert unrelated == pytest.approx(base)


def test_activity_discount_is_capped(political_ledger: Ledger, influence_decay: DecayTransform) -> None:
    capitals = [Settlement(id=f"c{i}", name=f"C{i}", type="capital") for i in range(10)]
    rate = influence_decay.rate_for(political_ledger, "political", active=capitals)
    assert rate == pytest.approx(0.05 * 0.2)


def test_traits_slow_prestige_decay() -> None:
    transform = DecayTransform(PRESTIGE_DECAY)
    ledger = new_ledger("prestige")
    charming = Actor(charisma=40, social_skill=60)

    plain = transform.rate_for(ledger, "honor")
    skilled = transform.rate_for(ledger, "honor", actor=charming)

    assert plain == pytest.approx(0.02)
    assert skilled == pytest.approx(0.02 * 0.6)


def test_axis_decay_rate_and_per_call_override() -> None:
    transform = DecayTransform(PRESTIGE_DECAY)
    ledger = new_ledger("prestige")
    assert transform.rate_for(ledger, "social") == pytest.approx(0.03)
    assert transform.rate_for(ledger, "social", rates={"social": 0.1}) == pytest.approx(0.1)


def test_prestige_decay_is_normalized_per_month() -> None:
    transform = DecayTransform(PRESTIGE_DECAY)
    (honor, social) = transform.compute_deltas(new_ledger("prestige"), 30)
    assert honor.axis_id == "honor"
    assert honor.amount == pytest.approx(-25 * 0.02)
    assert social.amount == pytest.approx(-20 * 0.03)


def test_band_metadata_overrides_name_multiplier() -> None:
    transform = DecayTransform(DecayConfig(base_rate=0.01, reference_period=1, band_multipliers={"Dominant": 5}))
    ledger = new_ledger("influence").with_change("political", 80, "Rise")
    assert ledger.band("political").name == "Dominant"
    assert transform.rate_for(ledger, "political") == pytest.approx(0.02)


def test_age_rules() -> None:
    config = DecayConfig(
        base_rate=0.1,
        reference_period=1,
        age_rules=(AgeRule("physical", 40, per_year=0.01), AgeRule("wisdom", 50, factor=0.8)),
    )
    transform = DecayTransform(config)
    ledger = Ledger([_flat_axis("physical"), _flat_axis("wisdom")])

    assert transform.rate_for(ledger, "physical", actor=Actor(age=30)) == pytest.approx(0.1)
    assert transform.rate_for(ledger, "physical", actor=Actor(age=50)) == pytest.approx(0.11)
    assert transform.rate_for(ledger, "wisdom", actor=Actor(age=60)) == pytest.approx(0.08)
    assert transform.rate_for(ledger, "wisdom") == pytest.approx(0.1)


def test_age_rule_needs_exactly_one_form() -> None:
    with pytest.raises(ConfigError):
        AgeRule("physical", 40)
    with pytest.raises(ConfigError):
        AgeRule("physical", 40, factor=0.8, per_year=0.01)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_rate": -0.1},
        {"base_rate": 0.1, "reference_period": 0},
        {"base_rate": 0.1, "activity_discount_cap": 1.5},
        {"base_rate": 0.1, "trait_divisor": 0},
        {"base_rate": 0.1, "max_step": -1},
        {"base_rate": 0.1, "band_multipliers": {"High": -1}},
    ],
)
def test_invalid_decay_config(kwargs: dict) -> None:
    with pytest.raises(ConfigError):
        DecayConfig(**kwargs)

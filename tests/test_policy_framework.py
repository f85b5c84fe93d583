"""Tests for the shared modifier policy framework."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from axial.errors import ConfigError, EventValidationError
from axial.ledger import Delta, Ledger
from axial.policies import (
    AlignmentPolicy,
    ClampRange,
    Environment,
    Event,
    InfluencePolicy,
    Occurrence,
    PolicyConfig,
    PolicyInput,
    WitnessScale,
)
from axial.presets import new_ledger

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _at(days: float) -> datetime:
    return BASE_TIME + timedelta(days=days)


@pytest.fixture
def alignment() -> AlignmentPolicy:
    return AlignmentPolicy()


def test_clamp_range_validation() -> None:
    with pytest.raises(ConfigError):
        ClampRange(5, -5)
    assert ClampRange.symmetric(3).apply(10) == 3
    assert ClampRange(0, 20).apply(-4) == 0


def test_witness_scale() -> None:
    scale = WitnessScale(10, 0.5)
    assert scale.multiplier(0) == 1.0
    assert scale.multiplier(-3) == 1.0
    assert scale.multiplier(2) == pytest.approx(1.2)
    assert scale.multiplier(1000) == pytest.approx(1.5)
    assert scale.multiplier(5, weight=2) == pytest.approx(2.0)
    assert scale.multiplier(1000, weight=-1) == 1.0
    with pytest.raises(ConfigError):
        WitnessScale(0, 1)


def test_config_clamp_fallback_order() -> None:
    config = PolicyConfig(
        clamps={"war": {"moral": ClampRange.symmetric(10), "*": ClampRange.symmetric(4)}},
        generic_clamp=ClampRange.symmetric(2),
    )
    assert config.clamp("war", "moral", 50) == 10
    assert config.clamp("war", "ethical", 50) == 4
    assert config.clamp("plague", "moral", 50) == 2


def test_config_missing_rate_raises() -> None:
    with pytest.raises(ConfigError, match="war.order_base"):
        PolicyConfig().rate("war", "order_base")


def test_config_merged_layers_per_scope() -> None:
    base = PolicyConfig(
        clamps={"war": {"moral": ClampRange.symmetric(10)}},
        rates={"war": {"toward_neutral": 2, "toward_extreme": 3}},
    )
    merged = base.merged(rates={"war": {"toward_extreme": 6}}, witness={"war": WitnessScale(5, 1)})

    assert merged.rate("war", "toward_neutral") == 2
    assert merged.rate("war", "toward_extreme") == 6
    assert merged.clamp("war", "moral", 50) == 10
    assert merged.witness_multiplier("war", 5) == pytest.approx(2.0)
    assert base.rate("war", "toward_extreme") == 3


def test_unknown_category_uses_generic_handler(alignment: AlignmentPolicy) -> None:
    event = Event("festival", "A harvest festival", impact={"moral": 10, "ethical": -1})
    deltas = alignment.compute_deltas(new_ledger("alignment"), event)
    assert [(d.axis_id, d.amount) for d in deltas] == [("moral", 3), ("ethical", -1)]
    assert deltas[0].reason == "Event impact: A harvest festival"


def test_zero_and_unknown_axis_deltas_are_dropped(alignment: AlignmentPolicy) -> None:
    ledger = new_ledger("alignment")
    event = Event("festival", "Nothing much", impact={"moral": 0, "charisma": 5})
    assert alignment.compute_deltas(ledger, event) == []
    assert alignment.evolve(ledger, event) is ledger


def test_evolve_returns_new_ledger_with_provenance(alignment: AlignmentPolicy) -> None:
    ledger = new_ledger("alignment")
    event = Event("festival", "Gave alms", subtype="charity", impact={"moral": 2}, timestamp=_at(1))
    updated = alignment.evolve(ledger, event)

    assert ledger.value("moral") == 0
    assert updated.value("moral") == 2
    record = updated.last_change("moral")
    assert record.timestamp == _at(1)
    assert dict(record.context) == {
        "policy": "alignment",
        "category": "festival",
        "description": "Gave alms",
        "subtype": "charity",
    }


@pytest.mark.parametrize(
    "event, message",
    [
        (Event("", "No category"), "valid category"),
        (Event("war", ""), "description"),
    ],
)
def test_evolve_validates_required_fields(alignment: AlignmentPolicy, event: Event, message: str) -> None:
    with pytest.raises(EventValidationError, match=message):
        alignment.evolve(new_ledger("alignment"), event)


def test_evolve_rejects_non_events(alignment: AlignmentPolicy) -> None:
    with pytest.raises(EventValidationError, match="expected Event"):
        alignment.evolve(new_ledger("alignment"), {"category": "war"})  # type: ignore[arg-type]


def test_with_handler_extends_a_copy(alignment: AlignmentPolicy) -> None:
    def blessing(inp: PolicyInput) -> list[Delta]:
        return [Delta("moral", 7, f"Blessing: {inp.event.description}")]

    extended = alignment.with_handler("blessing", blessing)
    event = Event("blessing", "Temple blessing")

    assert "blessing" in extended.categories()
    assert "blessing" not in alignment.categories()
    assert extended.evolve(new_ledger("alignment"), event).value("moral") == 7
    assert alignment.compute_deltas(new_ledger("alignment"), event) == []


def test_with_config_keeps_handlers(alignment: AlignmentPolicy) -> None:
    narrow = alignment.with_config(alignment.config.merged(generic_clamp=ClampRange.symmetric(1)))
    event = Event("festival", "Feast", impact={"moral": 10})
    assert narrow.compute_deltas(new_ledger("alignment"), event)[0].amount == 1
    assert narrow.categories() == alignment.categories()


def test_handlers_view_is_read_only(alignment: AlignmentPolicy) -> None:
    with pytest.raises(TypeError):
        alignment.handlers["blessing"] = lambda inp: []  # type: ignore[index]


def _election(day: float, description: str) -> Occurrence:
    return Occurrence(Event("political_event", description, subtype="election", timestamp=_at(day)))


def test_apply_all_sorts_out_of_order_batch(political_ledger: Ledger, in_city: Environment) -> None:
    policy = InfluencePolicy()
    events = [_election(3, "third"), _election(1, "first"), _election(2, "second")]
    ordered = sorted(events, key=lambda o: o.timestamp)

    shuffled_result = policy.apply_all(political_ledger, events, environment=in_city)
    sorted_result = policy.apply_all(political_ledger, ordered, environment=in_city)

    assert shuffled_result == sorted_result
    reasons = [r.reason for r in shuffled_result.history("political")]
    assert reasons == [
        "Political event in Riverton: first",
        "Political event in Riverton: second",
        "Political event in Riverton: third",
    ]


def test_apply_all_requires_timestamps(political_ledger: Ledger, in_city: Environment) -> None:
    events = [_election(1, "dated"), Occurrence(Event("political_event", "undated", subtype="election"))]
    with pytest.raises(EventValidationError, match="Occurrence 1 has no timestamp"):
        InfluencePolicy().apply_all(political_ledger, events, environment=in_city)


def test_event_from_dict_aliases() -> None:
    event = Event.from_dict(
        {"type": "plague", "description": "Red fever", "severity": 3, "timestamp": "2024-03-01T12:00:00Z"}
    )
    assert event.category == "plague"
    assert event.magnitude == 3
    assert event.timestamp == _at(0)


def test_event_from_dict_bad_timestamp() -> None:
    with pytest.raises(EventValidationError, match="timestamp"):
        Event.from_dict({"category": "war", "timestamp": "last spring"})


def test_occurrence_from_dict() -> None:
    occ = Occurrence.from_dict(
        {
            "event": {"category": "social_event", "description": "Gala", "subtype": "festival"},
            "actor": {"name": "Mira", "charisma": 3, "military_rank": 2},
            "environment": {"settlement": {"id": "r", "name": "Riverton"}, "witnesses": 40},
        }
    )
    assert occ.actor.charisma == 3
    assert occ.actor.rank == 2
    assert occ.environment.settlement.name == "Riverton"
    assert occ.environment.witnesses == 40
    assert occ.timestamp is None

    with pytest.raises(EventValidationError):
        Occurrence.from_dict({"actor": {}})

"""Tests for prestige achievements, social interactions, decay and social standing."""

from __future__ import annotations

import pytest

from axial.errors import EventValidationError
from axial.ledger import Ledger
from axial.policies import Actor, Environment, Event, PrestigePolicy, Settlement, social_standing
from axial.presets import new_ledger


@pytest.fixture
def policy() -> PrestigePolicy:
    return PrestigePolicy()


def _amounts(deltas) -> dict[str, float]:
    return {d.axis_id: d.amount for d in deltas}


def test_military_victory_primary_and_conditional_tracks(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    skirmish = Event("military_victory", "Won a skirmish")
    assert _amounts(policy.compute_deltas(track_ledger, skirmish)) == {"military": 15}

    heroic = Event("military_victory", "Held the pass", subtype="heroic_battle")
    general = Actor(role="leader")
    assert _amounts(policy.compute_deltas(track_ledger, heroic, general)) == {
        "military": 15,
        "honor": 12,
        "political": 8,
    }


def test_witnesses_raise_achievements_up_to_a_cap(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    victory = Event("military_victory", "Won a battle")

    def military(witnesses: float) -> float:
        deltas = policy.compute_deltas(track_ledger, victory, environment=Environment(witnesses=witnesses))
        return _amounts(deltas)["military"]

    assert military(0) == 15
    assert military(100) == pytest.approx(30)
    assert military(200) == pytest.approx(45)
    assert military(10_000) == pytest.approx(45)
    assert military(0) <= military(50) <= military(100) <= military(200)


def test_achievement_deltas_are_clamped_one_sided(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    grand = Event("heroic_act", "Slew the wyrm", magnitude=10, setting="battle")
    assert _amounts(policy.compute_deltas(track_ledger, grand)) == {"honor": 70, "social": 50, "military": 40}

    negative = Event("heroic_act", "Fled the wyrm", magnitude=-1)
    assert policy.compute_deltas(track_ledger, negative) == []
    assert policy.evolve(track_ledger, negative) is track_ledger


def test_noble_witnesses_count_extra_for_political_success(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    treaty = Event("political_success", "Signed the treaty", subtype="diplomatic_success")
    deltas = policy.compute_deltas(track_ledger, treaty, environment=Environment(noble_witnesses=10))
    assert _amounts(deltas) == {"political": pytest.approx(28.8), "social": pytest.approx(16)}


def test_cultural_relevance_weights_the_audience(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    epic = Event("cultural_contribution", "Wrote an epic")
    env = Environment(witnesses=60, cultural_relevance=0.5)
    assert _amounts(policy.compute_deltas(track_ledger, epic, environment=env)) == {
        "cultural": pytest.approx(21),
        "social": pytest.approx(9),
    }


@pytest.mark.parametrize("relevance", [-1.0, 0, 0.5, 1.0, None])
def test_more_witnesses_never_lower_cultural_prestige(
    policy: PrestigePolicy, track_ledger: Ledger, relevance: float | None
) -> None:
    epic = Event("cultural_contribution", "Wrote an epic")

    def cultural(witnesses: float) -> float:
        env = Environment(witnesses=witnesses, cultural_relevance=relevance)
        return _amounts(policy.compute_deltas(track_ledger, epic, environment=env))["cultural"]

    assert cultural(0) <= cultural(60) <= cultural(120)


def test_cultural_relevance_edge_values(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    epic = Event("cultural_contribution", "Wrote an epic")

    def cultural(relevance: float | None) -> float:
        env = Environment(witnesses=120, cultural_relevance=relevance)
        return _amounts(policy.compute_deltas(track_ledger, epic, environment=env))["cultural"]

    assert cultural(-1.0) == 14
    assert cultural(0) == pytest.approx(42)
    assert cultural(None) == pytest.approx(42)


def test_social_interaction_scales_with_counterpart(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    notable = track_ledger.with_change("social", 50, "Setup")
    duke = Actor(name="Duke Arvel", prestige=100)
    insult = Event("social_interaction", "Mocked at the feast", subtype="public_insult")

    updated = policy.evolve(notable, insult, environment=Environment(counterpart=duke))
    record = updated.last_change("social")
    assert updated.value("social") == 30
    assert record.reason == "Public insult from Duke Arvel"
    assert record.context["other_character_name"] == "Duke Arvel"
    assert record.context["other_character_prestige"] == 100


def test_social_interaction_clamps_per_interaction(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    king = Actor(name="King Oren", prestige=1000)
    endorse = Event("social_interaction", "Royal favor", subtype="public_endorsement", magnitude=3)
    deltas = policy.compute_deltas(track_ledger, endorse, environment=Environment(counterpart=king))
    assert _amounts(deltas) == {"social": 35}

    alliance = Event("social_interaction", "Pact", subtype="alliance_formed")
    deltas = policy.compute_deltas(track_ledger, alliance)
    assert deltas[0].reason == "Alliance with notable figure"
    assert _amounts(deltas) == {"political": 8}


def test_unknown_interaction_has_no_effect(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    wink = Event("social_interaction", "Winked", subtype="wink")
    assert policy.evolve(track_ledger, wink) is track_ledger


def test_social_interaction_requires_subtype(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    with pytest.raises(EventValidationError, match="interaction type"):
        policy.evolve(track_ledger, Event("social_interaction", "Met someone"))


def test_generic_fallback_is_witness_scaled(policy: PrestigePolicy, track_ledger: Ledger) -> None:
    boast = Event("tournament", "Won the joust", impact={"honor": 4, "military": 8})
    deltas = policy.compute_deltas(track_ledger, boast, environment=Environment(witnesses=50))
    assert _amounts(deltas) == {"honor": pytest.approx(6), "military": 10}


def test_achievement_provenance(policy: PrestigePolicy, track_ledger: Ledger, city: Settlement) -> None:
    env = Environment(settlement=city, witnesses=20, noble_witnesses=2, allies_present=3)
    updated = policy.evolve(track_ledger, Event("social_deed", "Fed the poor", subtype="selfless_act"), environment=env)
    context = updated.last_change("honor").context

    assert context["witness_count"] == 20
    assert context["settlement_id"] == "riverton"
    assert context["witness_data"]["nobles"] == 2
    assert context["social_connections"]["allies"] == 3


def test_prestige_decay(policy: PrestigePolicy) -> None:
    ledger = new_ledger("prestige")
    decayed = policy.decay(ledger, 30)
    assert decayed.value("honor") == pytest.approx(24.5)
    assert decayed.value("social") == pytest.approx(19.4)

    charming = policy.decay(ledger, 30, Actor(charisma=50, social_skill=50))
    assert charming.value("honor") == pytest.approx(25 - 0.3)


def test_legendary_honor_decays_faster(policy: PrestigePolicy) -> None:
    ledger = new_ledger("prestige").with_change("honor", 55, "Legend")
    assert ledger.band("honor").name == "Legendary"
    rate = policy.decay_transform.rate_for(ledger, "honor")
    assert rate == pytest.approx(0.04)


def test_social_standing_in_a_town() -> None:
    ledger = new_ledger("prestige")
    standing = social_standing(ledger, Settlement(id="t", name="Millbrook", type="town"))

    assert standing.overall_rank == pytest.approx(22.5)
    assert standing.social_class == "lower_class"
    assert standing.political_power == 2
    assert standing.settlement_rank == pytest.approx(33.75)

    honor = standing.track_standings["honor"]
    assert honor.level_name == "Respectable"
    assert honor.rank == pytest.approx(25)
    assert honor.percentile == pytest.approx(25)
    assert honor.relative_position == "below_average"
    assert standing.to_dict()["track_standings"]["social"]["level_name"] == "Commoner"


def test_settlement_type_weights_tracks() -> None:
    ledger = new_ledger("prestige").with_change("social", 60, "Famous")
    town = social_standing(ledger, Settlement(id="t", name="T", type="town"))
    capital = social_standing(ledger, Settlement(id="c", name="C", type="capital"))
    assert capital.overall_rank > town.overall_rank


def test_social_standing_requires_settlement(policy: PrestigePolicy) -> None:
    with pytest.raises(EventValidationError, match="requires a settlement"):
        policy.standing(new_ledger("prestige"), None)

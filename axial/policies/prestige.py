"""
Prestige evolution.

Achievements raise reputation tracks (military, political, wealth,
cultural, social, honor). Achievement deltas are one-sided: they are
clamped into ``[0, cap]``. Each category has a primary track and
conditional secondary tracks, all scaled by the same witness
multiplier.

Social interactions with another character (alliances, endorsements,
rivalries, insults) scale with the counterpart's own prestige and may
be negative.

Also here: prestige decay configuration and the social standing report.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from ..axes import AxisDefinition, Band
from ..decay import AgeRule, DecayConfig, DecayTransform
from ..errors import EventValidationError
from ..ledger.ledger import Ledger
from ..ledger.records import Delta
from .base import (
    ClampRange,
    HandlerFn,
    ModifierPolicy,
    PolicyConfig,
    PolicyInput,
    WitnessScale,
    generic_impact_handler,
)
from .inputs import Actor, Environment, Event, Settlement


def _one_sided(high: float) -> ClampRange:
    return ClampRange(0, high)


PRESTIGE_CONFIG = PolicyConfig(
    clamps={
        "military_victory": {"military": _one_sided(50), "honor": _one_sided(40), "political": _one_sided(25)},
        "political_success": {"political": _one_sided(60), "social": _one_sided(35)},
        "economic_achievement": {"wealth": _one_sided(45), "social": _one_sided(30)},
        "cultural_contribution": {"cultural": _one_sided(50), "social": _one_sided(25)},
        "social_deed": {"social": _one_sided(55), "honor": _one_sided(35)},
        "heroic_act": {"honor": _one_sided(70), "social": _one_sided(50), "military": _one_sided(40)},
        "social_interaction.alliance_formed": {"political": _one_sided(25)},
        "social_interaction.public_endorsement": {"social": _one_sided(35)},
        "social_interaction.rivalry_declared": {"honor": _one_sided(15)},
        "social_interaction.public_insult": {"social": ClampRange(-30, 0)},
    },
    rates={
        "military_victory": {"military": 15, "honor": 12, "political": 8, "min_rank": 5},
        "political_success": {"political": 18, "social": 10, "noble_weight": 3},
        "economic_achievement": {"wealth": 12, "social": 8},
        "cultural_contribution": {"cultural": 14, "social": 6},
        "social_deed": {"social": 16, "honor": 10},
        "heroic_act": {"honor": 20, "social": 15, "military": 12},
        "social_interaction": {
            "alliance_formed": 8,
            "public_endorsement": 12,
            "rivalry_declared": 5,
            "public_insult": -10,
        },
    },
    witness={
        "military_victory": WitnessScale(100, 2),
        "political_success": WitnessScale(50, 2.5),
        "economic_achievement": WitnessScale(75, 1.8),
        "cultural_contribution": WitnessScale(60, 2),
        "social_deed": WitnessScale(40, 2.2),
        "heroic_act": WitnessScale(30, 3),
        "social_interaction": WitnessScale(100, 1),
        "generic": WitnessScale(100, 1),
    },
    generic_clamp=ClampRange.symmetric(10),
)


Condition = Callable[[PolicyInput], bool]


def _always(inp: PolicyInput) -> bool:
    return True


def _subtype_is(subtype: str) -> Condition:
    return lambda inp: inp.event.subtype == subtype


def _leader_or_ranked(inp: PolicyInput) -> bool:
    return inp.actor.role == "leader" or inp.actor.rank > inp.rate("military_victory", "min_rank")


def _in_battle(inp: PolicyInput) -> bool:
    return inp.event.setting == "battle"


@dataclass(frozen=True)
class TrackEffect:
    """One track an achievement raises, with the label and condition for it."""

    axis_id: str
    label: str
    when: Condition = _always


def _witness_count(inp: PolicyInput, category: str) -> float:
    env = inp.environment
    noble_weight = inp.config.rates.get(category, {}).get("noble_weight", 0)
    return env.witnesses + env.noble_witnesses * noble_weight


def achievement_handler(category: str, effects: Iterable[TrackEffect]) -> HandlerFn:
    """Build a handler: ``rate[track] * magnitude * witness multiplier``, clamped per track."""
    effects = tuple(effects)

    def handler(inp: PolicyInput) -> list[Delta]:
        weight = 1.0
        if category == "cultural_contribution":
            relevance = inp.environment.cultural_relevance
            weight = max(relevance, 0.0) if relevance else 1.0
        multiplier = inp.config.witness_multiplier(category, _witness_count(inp, category), weight)
        deltas: list[Delta] = []
        for effect in effects:
            if not inp.has(effect.axis_id) or not effect.when(inp):
                continue
            amount = inp.rate(category, effect.axis_id) * inp.event.magnitude * multiplier
            deltas.append(
                Delta(
                    effect.axis_id,
                    inp.clamp(category, effect.axis_id, amount),
                    f"{effect.label}: {inp.event.description}",
                )
            )
        return deltas

    return handler


ACHIEVEMENTS: dict[str, tuple[TrackEffect, ...]] = {
    "military_victory": (
        TrackEffect("military", "Military achievement"),
        TrackEffect("honor", "Honorable military conduct", _subtype_is("heroic_battle")),
        TrackEffect("political", "Political impact of military success", _leader_or_ranked),
    ),
    "political_success": (
        TrackEffect("political", "Political achievement"),
        TrackEffect("social", "Social impact of diplomatic success", _subtype_is("diplomatic_success")),
    ),
    "economic_achievement": (
        TrackEffect("wealth", "Economic achievement"),
        TrackEffect("social", "Social impact of charitable act", _subtype_is("charitable_donation")),
    ),
    "cultural_contribution": (
        TrackEffect("cultural", "Cultural achievement"),
        TrackEffect("social", "Social recognition of cultural contribution"),
    ),
    "social_deed": (
        TrackEffect("social", "Social achievement"),
        TrackEffect("honor", "Honorable social deed", _subtype_is("selfless_act")),
    ),
    "heroic_act": (
        TrackEffect("honor", "Heroic achievement"),
        TrackEffect("social", "Social recognition of heroic act"),
        TrackEffect("military", "Military heroism", _in_battle),
    ),
}

INTERACTIONS: dict[str, tuple[str, str]] = {
    "alliance_formed": ("political", "Alliance with"),
    "public_endorsement": ("social", "Public endorsement from"),
    "rivalry_declared": ("honor", "Rivalry with"),
    "public_insult": ("social", "Public insult from"),
}


def _social_interaction(inp: PolicyInput) -> list[Delta]:
    """``event.subtype`` names the interaction; ``environment.counterpart`` is the other party."""
    interaction = inp.event.subtype or ""
    if interaction not in INTERACTIONS:
        return []
    axis_id, label = INTERACTIONS[interaction]
    if not inp.has(axis_id):
        return []
    other = inp.environment.counterpart or Actor()
    multiplier = inp.config.witness_multiplier("social_interaction", other.prestige)
    amount = inp.rate("social_interaction", interaction) * inp.event.magnitude * multiplier
    return [
        Delta(
            axis_id,
            inp.clamp(f"social_interaction.{interaction}", axis_id, amount),
            f"{label} {other.name or 'notable figure'}",
        )
    ]


PRESTIGE_HANDLERS: dict[str, HandlerFn] = {
    category: achievement_handler(category, effects) for category, effects in ACHIEVEMENTS.items()
}
PRESTIGE_HANDLERS["social_interaction"] = _social_interaction


PRESTIGE_DECAY = DecayConfig(
    base_rate=0.02,
    reference_period=30,
    band_multipliers={"High": 1.4, "Very High": 1.8, "Legendary": 2.0},
    trait_divisor=200,
    trait_cap=0.4,
    age_rules=(
        AgeRule("physical", 40, per_year=0.01),
        AgeRule("wisdom", 50, factor=0.8),
    ),
)


# --- Social standing ---

SOCIAL_CLASSES = (
    (80, "nobility"),
    (60, "upper_class"),
    (40, "middle_class"),
    (20, "lower_class"),
)

POSITIONS = (
    (90, "exceptional"),
    (75, "high"),
    (60, "above_average"),
    (40, "average"),
    (25, "below_average"),
)

SETTLEMENT_WEIGHTS: dict[str, dict[str, float]] = {
    "military_base": {"military": 2.0, "honor": 1.5},
    "fortress": {"military": 2.0, "honor": 1.5},
    "capital": {"political": 2.0, "social": 1.5},
    "trade_hub": {"wealth": 2.0, "social": 1.3},
    "cultural_center": {"cultural": 2.0, "social": 1.3},
}

EXPECTATION_FACTORS: dict[str, float] = {"capital": 1.3, "major_city": 1.3, "village": 0.8}

COMPOSITES: dict[str, dict[str, float]] = {
    "social_influence": {"social": 0.4, "political": 0.3, "wealth": 0.2, "cultural": 0.1},
    "economic_standing": {"wealth": 0.6, "political": 0.2, "social": 0.2},
    "cultural_status": {"cultural": 0.5, "social": 0.3, "honor": 0.2},
}


@dataclass(frozen=True)
class TrackStanding:
    rank: float
    percentile: float
    level_name: str
    relative_position: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "percentile": self.percentile,
            "level_name": self.level_name,
            "relative_position": self.relative_position,
        }


@dataclass(frozen=True)
class SocialStanding:
    overall_rank: float
    social_class: str
    political_power: float
    social_influence: float
    economic_standing: float
    cultural_status: float
    settlement_rank: float
    track_standings: Mapping[str, TrackStanding] = field(default_factory=dict)
    privileges: tuple[str, ...] = ()
    responsibilities: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_rank": self.overall_rank,
            "social_class": self.social_class,
            "political_power": self.political_power,
            "social_influence": self.social_influence,
            "economic_standing": self.economic_standing,
            "cultural_status": self.cultural_status,
            "settlement_rank": self.settlement_rank,
            "track_standings": {k: v.to_dict() for k, v in self.track_standings.items()},
            "privileges": list(self.privileges),
            "responsibilities": list(self.responsibilities),
        }


def _first_at_or_above(value: float, table: tuple[tuple[float, str], ...], fallback: str) -> str:
    for threshold, name in table:
        if value >= threshold:
            return name
    return fallback


def _percentile(value: float, axis: AxisDefinition, settlement: Settlement) -> float:
    expectation = (axis.min + axis.max) / 2 * EXPECTATION_FACTORS.get(settlement.type, 1.0)
    normalized_value = (value - axis.min) / axis.span
    normalized_expectation = (expectation - axis.min) / axis.span
    if normalized_expectation <= 0:
        return 100.0 if normalized_value > 0 else 0.0
    return min(max(normalized_value / normalized_expectation * 50, 0.0), 100.0)


def _track_standing(ledger: Ledger, axis_id: str, settlement: Settlement) -> TrackStanding:
    axis = ledger.axis(axis_id)
    value = ledger.value(axis_id)
    level = ledger.band(axis_id)
    rank = (value - axis.min) / axis.span * 100
    return TrackStanding(
        rank=rank,
        percentile=_percentile(value, axis, settlement),
        level_name=level.name if level else "Unknown",
        relative_position=_first_at_or_above(rank, POSITIONS, "low"),
    )


def _composite(ledger: Ledger, weights: Mapping[str, float]) -> float:
    total = sum(ledger.value(axis_id) * w for axis_id, w in weights.items() if ledger.has_axis(axis_id))
    return min(total, 100.0)


def _level_list(level: Band, *keys: str) -> list[str]:
    for key in keys:
        items = level.get(key)
        if items:
            return [str(item) for item in items]
    return []


def social_standing(ledger: Ledger, settlement: Settlement | None) -> SocialStanding:
    """Where a character stands socially in ``settlement``, from their prestige ledger."""
    if settlement is None:
        raise EventValidationError("Social standing requires a settlement")
    weights = SETTLEMENT_WEIGHTS.get(settlement.type, {})

    weighted_total = 0.0
    total_weight = 0.0
    political_power = 0.0
    privileges: list[str] = []
    responsibilities: list[str] = []
    tracks: dict[str, TrackStanding] = {}
    for axis_id in ledger.axis_ids():
        tracks[axis_id] = _track_standing(ledger, axis_id, settlement)
        weight = weights.get(axis_id, 1.0)
        weighted_total += ledger.value(axis_id) * weight
        total_weight += weight

        level = ledger.band(axis_id)
        if level is not None:
            power = level.get("political_power", 0)
            if isinstance(power, (int, float)):
                political_power += power
            privileges.extend(_level_list(level, "social_benefits", "benefits"))
            responsibilities.extend(_level_list(level, "responsibilities"))

    overall = weighted_total / total_weight if total_weight else 0.0
    population = settlement.population if settlement.population and settlement.population > 0 else 1000
    settlement_rank = min(overall * (1 + math.log10(population / 100) / 2), 100.0)

    return SocialStanding(
        overall_rank=overall,
        social_class=_first_at_or_above(overall, SOCIAL_CLASSES, "commoner"),
        political_power=political_power,
        social_influence=_composite(ledger, COMPOSITES["social_influence"]),
        economic_standing=_composite(ledger, COMPOSITES["economic_standing"]),
        cultural_status=_composite(ledger, COMPOSITES["cultural_status"]),
        settlement_rank=settlement_rank,
        track_standings=tracks,
        privileges=tuple(dict.fromkeys(privileges)),
        responsibilities=tuple(dict.fromkeys(responsibilities)),
    )


class PrestigePolicy(ModifierPolicy):
    def __init__(self, config: PolicyConfig = PRESTIGE_CONFIG, decay: DecayConfig = PRESTIGE_DECAY):
        super().__init__(
            "prestige",
            PRESTIGE_HANDLERS,
            generic_impact_handler("Achievement impact", witness_scope="generic"),
            config,
        )
        self.decay_transform = DecayTransform(decay, name="prestige_decay")

    def validate(self, event: Event, actor: Actor | None, environment: Environment | None) -> None:
        super().validate(event, actor, environment)
        if event.category == "social_interaction" and not event.subtype:
            raise EventValidationError("Social interaction must have a valid interaction type (subtype)")

    def provenance(self, event: Event, actor: Actor, environment: Environment) -> dict[str, Any]:
        context = super().provenance(event, actor, environment)
        context["witness_count"] = environment.witnesses
        if event.category == "social_interaction":
            other = environment.counterpart or Actor()
            context["other_character_name"] = other.name or "Unknown"
            context["other_character_prestige"] = other.prestige
            context["social_connections"] = {
                "mutual_friends": environment.mutual_friends,
                "social_rivals": environment.social_rivals,
            }
            return context
        if environment.settlement is not None:
            context["settlement_id"] = environment.settlement.id
            context["settlement_name"] = environment.settlement.name
        context["witness_data"] = {
            "nobles": environment.noble_witnesses,
            "commoners": environment.commoner_witnesses,
            "foreigners": environment.foreign_witnesses,
        }
        context["social_connections"] = {
            "allies": environment.allies_present,
            "rivals": environment.rivals_present,
            "neutrals": environment.neutrals_present,
        }
        return context

    def decay(
        self,
        ledger: Ledger,
        elapsed: float,
        actor: Actor | None = None,
        rates: Mapping[str, float] | None = None,
        **kwargs: Any,
    ) -> Ledger:
        """Monthly-normalized prestige decay using each track's decay rate."""
        return self.decay_transform.apply(ledger, elapsed, actor, (), rates, **kwargs)

    def standing(self, ledger: Ledger, settlement: Settlement | None) -> SocialStanding:
        return social_standing(ledger, settlement)

"""
Influence evolution.

Settlement events move a character's political, economic, social,
military, religious and cultural standing. Every influence event
happens somewhere: ``evolve`` requires ``environment.settlement`` with an
id and a name, and records settlement data as provenance.

Base amounts live in ``INFLUENCE_CONFIG.rates[<category>]`` keyed by
subtype, with optional qualified keys:

- ``"<subtype>.<role>"`` replaces the base for actors with that role
- ``"<subtype>.per_<driver>"`` adds ``driver * rate`` (rank, charisma)

Unknown or dotted subtypes fall back to ``"default"``. Thresholds live in
their own ``"<category>.thresholds"`` scope.
"""

from __future__ import annotations

from typing import Any, Iterable

from ..decay import DecayConfig, DecayTransform
from ..errors import EventValidationError
from ..ledger.ledger import Ledger
from ..ledger.records import Delta
from .base import ClampRange, HandlerFn, ModifierPolicy, PolicyConfig, PolicyInput, generic_impact_handler
from .inputs import Actor, Environment, Event, Settlement

INFLUENCE_CONFIG = PolicyConfig(
    clamps={
        "political_event": {"political": ClampRange.symmetric(30)},
        "political_event.secondary": {"social": ClampRange.symmetric(15)},
        "economic_event": {"economic": ClampRange.symmetric(25)},
        "social_event": {"social": ClampRange.symmetric(20)},
        "military_event": {"military": ClampRange.symmetric(30)},
        "military_event.secondary": {"political": ClampRange.symmetric(15)},
        "cultural_event": {"social": ClampRange.symmetric(10), "religious": ClampRange.symmetric(12)},
        "character_action": {"*": ClampRange.symmetric(15)},
        "character_action.secondary": {"political": ClampRange.symmetric(8)},
    },
    rates={
        "political_event": {
            "election": 5,
            "election.leader": 15,
            "policy_change": 3,
            "policy_change.advisor": 10,
            "scandal": -2,
            "scandal.politician": -20,
            "default": 2,
        },
        "political_event.secondary": {"leader": 5, "default": 2, "min_intensity": 1},
        "economic_event": {
            "trade_boom": 8,
            "trade_boom.merchant": 20,
            "market_crash": -5,
            "market_crash.wealthy": -15,
            "new_trade_route": 4,
            "new_trade_route.trader": 12,
            "resource_discovery": 6,
            "default": 3,
        },
        "economic_event.thresholds": {"wealthy": 100},
        "social_event": {
            "festival": 5,
            "festival.per_charisma": 1,
            "public_speech": 8,
            "public_speech.per_charisma": 2,
            "social_scandal": -10,
            "social_scandal.per_charisma": -1,
            "community_service": 6,
            "community_service.per_charisma": 1,
            "default": 2,
            "default.per_charisma": 0.5,
        },
        "military_event": {
            "battle_victory": 10,
            "battle_victory.per_rank": 5,
            "battle_defeat": -8,
            "battle_defeat.per_rank": -3,
            "military_promotion": 15,
            "defense_success": 12,
            "defense_success.per_rank": 2,
            "default": 2,
            "default.soldier": 5,
        },
        "military_event.secondary": {"battle_victory": 8, "default": -4, "min_rank": 5},
        "cultural_event": {"social": 4, "religious": 6, "same_culture": 1.5, "other_culture": 0.8},
        "character_action": {"success": 8, "failure": -3},
        "character_action.secondary": {"public_speech": 3},
    },
    generic_clamp=ClampRange.symmetric(5),
)

ACTION_DOMAINS: dict[str, str] = {
    "political_negotiation": "political",
    "diplomatic_mission": "political",
    "trade_deal": "economic",
    "merchant_activity": "economic",
    "public_speech": "social",
    "social_gathering": "social",
    "military_command": "military",
    "religious_ceremony": "religious",
}


def _subtype_amount(inp: PolicyInput, scope: str, qualifiers: Iterable[str] = (), drivers: dict[str, float] | None = None) -> float:
    """Base amount for the event subtype, qualified by role and scaled by drivers."""
    rates = inp.config.rates.get(scope, {})
    subtype = inp.event.subtype
    if not subtype or "." in subtype or subtype not in rates:
        subtype = "default"
    base = rates.get(subtype, 0)
    for qualifier in qualifiers:
        key = f"{subtype}.{qualifier}"
        if key in rates:
            base = rates[key]
            break
    for driver, value in (drivers or {}).items():
        base += rates.get(f"{subtype}.per_{driver}", 0) * value
    return base * inp.event.magnitude


def _where(inp: PolicyInput) -> str:
    settlement = inp.environment.settlement
    return settlement.name if settlement and settlement.name else "unknown settlement"


def _political(inp: PolicyInput) -> list[Delta]:
    scope = "political_event"
    deltas: list[Delta] = []
    if inp.has("political"):
        amount = _subtype_amount(inp, scope, [inp.actor.role])
        if amount:
            deltas.append(
                Delta(
                    "political",
                    inp.clamp(scope, "political", amount),
                    f"Political event in {_where(inp)}: {inp.event.description}",
                )
            )

    secondary = f"{scope}.secondary"
    intensity = inp.event.magnitude
    if inp.has("social") and abs(intensity) > inp.rate(secondary, "min_intensity"):
        key = "leader" if inp.actor.role == "leader" else "default"
        amount = intensity * inp.rate(secondary, key)
        deltas.append(
            Delta(
                "social",
                inp.clamp(secondary, "social", amount),
                f"Social impact of political event: {inp.event.description}",
            )
        )
    return deltas


def _economic(inp: PolicyInput) -> list[Delta]:
    scope = "economic_event"
    if not inp.has("economic"):
        return []
    qualifiers = [inp.actor.role]
    if inp.actor.wealth > inp.rate(f"{scope}.thresholds", "wealthy"):
        qualifiers.insert(0, "wealthy")
    amount = _subtype_amount(inp, scope, qualifiers)
    if not amount:
        return []
    return [
        Delta(
            "economic",
            inp.clamp(scope, "economic", amount),
            f"Economic event in {_where(inp)}: {inp.event.description}",
        )
    ]


def _social(inp: PolicyInput) -> list[Delta]:
    scope = "social_event"
    if not inp.has("social"):
        return []
    amount = _subtype_amount(inp, scope, drivers={"charisma": inp.actor.charisma})
    if not amount:
        return []
    return [
        Delta(
            "social",
            inp.clamp(scope, "social", amount),
            f"Social event in {_where(inp)}: {inp.event.description}",
        )
    ]


def _military(inp: PolicyInput) -> list[Delta]:
    scope = "military_event"
    deltas: list[Delta] = []
    actor = inp.actor
    if inp.has("military"):
        amount = _subtype_amount(inp, scope, [actor.role], drivers={"rank": actor.rank})
        if amount:
            deltas.append(
                Delta(
                    "military",
                    inp.clamp(scope, "military", amount),
                    f"Military event in {_where(inp)}: {inp.event.description}",
                )
            )

    secondary = f"{scope}.secondary"
    if inp.has("political") and (actor.role == "leader" or actor.rank > inp.rate(secondary, "min_rank")):
        key = "battle_victory" if inp.event.subtype == "battle_victory" else "default"
        amount = inp.event.magnitude * inp.rate(secondary, key)
        deltas.append(
            Delta(
                "political",
                inp.clamp(secondary, "political", amount),
                f"Political impact of military event: {inp.event.description}",
            )
        )
    return deltas


def _cultural(inp: PolicyInput) -> list[Delta]:
    scope = "cultural_event"
    settlement = inp.environment.settlement
    settlement_culture = settlement.dominant_culture if settlement else "unknown"
    alignment = inp.rate(scope, "same_culture" if inp.actor.culture == settlement_culture else "other_culture")
    intensity = inp.event.magnitude

    deltas: list[Delta] = []
    if inp.has("social"):
        amount = inp.rate(scope, "social") * intensity * alignment
        deltas.append(
            Delta(
                "social",
                inp.clamp(scope, "social", amount),
                f"Cultural event in {_where(inp)}: {inp.event.description}",
            )
        )
    if inp.has("religious") and inp.event.subtype == "religious_ceremony":
        amount = inp.rate(scope, "religious") * intensity * alignment
        deltas.append(
            Delta(
                "religious",
                inp.clamp(scope, "religious", amount),
                f"Religious cultural event: {inp.event.description}",
            )
        )
    return deltas


def _character_action(inp: PolicyInput) -> list[Delta]:
    """An action the character performed; ``event.subtype`` is the action type."""
    scope = "character_action"
    action = inp.event.subtype or ""
    success = inp.event.success
    intensity = inp.event.magnitude

    deltas: list[Delta] = []
    domain = ACTION_DOMAINS.get(action)
    if domain and inp.has(domain):
        amount = inp.rate(scope, "success" if success else "failure") * intensity
        outcome = "Successful" if success else "Failed"
        deltas.append(
            Delta(domain, inp.clamp(scope, domain, amount), f"{outcome} {action}: {inp.event.description}")
        )

    secondary = f"{scope}.secondary"
    follow_up = inp.config.rates.get(secondary, {}).get(action)
    if success and follow_up is not None and inp.has("political"):
        deltas.append(
            Delta(
                "political",
                inp.clamp(secondary, "political", follow_up * intensity),
                f"Political impact of successful {action.replace('_', ' ')}",
            )
        )
    return deltas


INFLUENCE_HANDLERS: dict[str, HandlerFn] = {
    "political_event": _political,
    "economic_event": _economic,
    "social_event": _social,
    "military_event": _military,
    "cultural_event": _cultural,
    "character_action": _character_action,
}


def settlement_relevant(settlement: Settlement, axis_id: str) -> bool:
    """Whether being active in ``settlement`` maintains influence on ``axis_id``."""
    kind = settlement.type
    if axis_id == "political":
        return kind in ("capital", "city") or settlement.has("government")
    if axis_id == "economic":
        return kind in ("trade_hub", "city") or settlement.has("market")
    if axis_id == "military":
        return kind in ("fortress", "military_base") or settlement.has("barracks")
    if axis_id == "religious":
        return settlement.has("temple") or settlement.has("shrine") or kind == "holy_site"
    if axis_id == "social":
        return (settlement.population or 0) > 100
    return False


INFLUENCE_DECAY = DecayConfig(
    base_rate=0.05,
    reference_period=1,
    band_multipliers={"High": 1.5, "Very High": 2.0},
    max_step=10,
    relevance=settlement_relevant,
)


class InfluencePolicy(ModifierPolicy):
    def __init__(self, config: PolicyConfig = INFLUENCE_CONFIG, decay: DecayConfig = INFLUENCE_DECAY):
        super().__init__(
            "influence",
            INFLUENCE_HANDLERS,
            generic_impact_handler("Event impact"),
            config,
        )
        self.decay_transform = DecayTransform(decay, name="influence_decay")

    def validate(self, event: Event, actor: Actor | None, environment: Environment | None) -> None:
        super().validate(event, actor, environment)
        settlement = environment.settlement if environment is not None else None
        if settlement is None:
            raise EventValidationError("Influence events require a settlement")
        if not settlement.id:
            raise EventValidationError("Settlement must have a valid id")
        if not settlement.name:
            raise EventValidationError("Settlement must have a valid name")
        if event.category == "character_action" and not event.subtype:
            raise EventValidationError("Character action must have a valid action type (subtype)")

    def provenance(self, event: Event, actor: Actor, environment: Environment) -> dict[str, Any]:
        context = super().provenance(event, actor, environment)
        settlement = environment.settlement
        if settlement is None:
            return context
        context["settlement_id"] = settlement.id
        context["settlement_name"] = settlement.name
        if event.category == "character_action":
            context["action_success"] = event.success
            context["settlement_data"] = {
                "population": settlement.population,
                "relationship_level": settlement.relationship_level,
            }
        else:
            context["settlement_type"] = settlement.type
            context["settlement_data"] = {
                "population": settlement.population,
                "prosperity": settlement.prosperity,
                "stability": settlement.stability,
            }
        return context

    def decay(
        self,
        ledger: Ledger,
        elapsed: float,
        actor: Actor | None = None,
        active: Iterable[Settlement] = (),
        **kwargs: Any,
    ) -> Ledger:
        """Per-day influence decay, shielded by relevant active settlements."""
        return self.decay_transform.apply(ledger, elapsed, actor, active, **kwargs)

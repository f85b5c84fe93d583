"""
Alignment evolution.

Historical events (war, plague, political change, cultural shift) and
personal moral choices move a character along the moral and ethical
axes. Personality traits (``actor.traits``) shape each response:
pragmatism, authority, compassion, order, rebellion, adaptability,
willpower, volatility, selfishness.

Over quiet stretches of time alignment also drifts toward a
personality-derived target (``AlignmentPolicy.drift``).
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Iterable

from ..ledger.ledger import Ledger
from ..axes import is_number
from ..ledger.records import Delta, as_utc, utc_now
from .base import (
    ClampRange,
    HandlerFn,
    ModifierPolicy,
    PolicyConfig,
    PolicyInput,
    WitnessScale,
    generic_impact_handler,
    sign,
)
from .inputs import Actor, Environment, Event

logger = logging.getLogger(__name__)


ALIGNMENT_CONFIG = PolicyConfig(
    clamps={
        "war": {"moral": ClampRange.symmetric(10), "ethical": ClampRange.symmetric(15)},
        "plague": {"moral": ClampRange.symmetric(8), "ethical": ClampRange(-10, 5)},
        "political_change": {"ethical": ClampRange.symmetric(12)},
        "cultural_shift": {"*": ClampRange.symmetric(5)},
        "moral_choice": {"*": ClampRange.symmetric(20)},
        "drift": {"*": ClampRange.symmetric(2)},
        "experience": {"*": ClampRange.symmetric(5)},
    },
    rates={
        "war": {"toward_neutral": 2, "toward_extreme": 3, "order_base": 5, "authority_weight": 2},
        "plague": {"compassionate": 3, "selfish": -2, "orderly": -1, "disorderly": -4},
        "political_change": {
            "revolution": -5,
            "rebellion_weight": 2,
            "law_establishment": 4,
            "order_weight": 2,
            "corruption_lawful": -3,
            "corruption_other": 2,
        },
        "cultural_shift": {"pull": 0.1, "adaptability_base": 0.5, "adaptability_weight": 0.5, "min_shift": 0.5},
        "moral_choice": {
            "willpower_weight": 0.2,
            "volatility_weight": 0.3,
            "extreme_threshold": 0.7,
            "extreme_resistance": 0.5,
            "cultural_weight": 0.3,
        },
        "drift": {
            "rate": 0.1,
            "materiality": 0.1,
            "compassion": 30,
            "selfishness": 30,
            "order": 40,
            "rebellion": 40,
        },
        "experience": {"half_life": 30},
    },
    witness={"moral_choice": WitnessScale(10, 0.5)},
    generic_clamp=ClampRange.symmetric(3),
)


def _war(inp: PolicyInput) -> list[Delta]:
    deltas: list[Delta] = []
    intensity = inp.event.magnitude
    traits = inp.actor
    if inp.has("moral"):
        current = inp.value("moral")
        if traits.trait("pragmatism") > 0:
            shift = -sign(current) * intensity * inp.rate("war", "toward_neutral")
        else:
            shift = sign(current) * intensity * inp.rate("war", "toward_extreme")
        deltas.append(Delta("moral", inp.clamp("war", "moral", shift), f"War event: {inp.event.description}"))
    if inp.has("ethical"):
        shift = (inp.rate("war", "order_base") + traits.trait("authority") * inp.rate("war", "authority_weight")) * intensity
        deltas.append(
            Delta("ethical", inp.clamp("war", "ethical", shift), f"War demands order: {inp.event.description}")
        )
    return deltas


def _plague(inp: PolicyInput) -> list[Delta]:
    deltas: list[Delta] = []
    severity = inp.event.magnitude
    if inp.has("moral"):
        key = "compassionate" if inp.actor.trait("compassion") > 0 else "selfish"
        shift = inp.rate("plague", key) * severity
        deltas.append(Delta("moral", inp.clamp("plague", "moral", shift), f"Plague response: {inp.event.description}"))
    if inp.has("ethical"):
        key = "orderly" if inp.actor.trait("order") > 0 else "disorderly"
        shift = inp.rate("plague", key) * severity
        deltas.append(
            Delta("ethical", inp.clamp("plague", "ethical", shift), f"Social breakdown: {inp.event.description}")
        )
    return deltas


def _political_change(inp: PolicyInput) -> list[Delta]:
    if not inp.has("ethical"):
        return []
    scope = "political_change"
    subtype = inp.event.subtype
    if subtype == "revolution":
        shift = inp.rate(scope, "revolution") - inp.actor.trait("rebellion") * inp.rate(scope, "rebellion_weight")
    elif subtype == "law_establishment":
        shift = inp.rate(scope, "law_establishment") + inp.actor.trait("order") * inp.rate(scope, "order_weight")
    elif subtype == "corruption_exposed":
        # Lawful characters become disillusioned.
        key = "corruption_lawful" if inp.value("ethical") > 0 else "corruption_other"
        shift = inp.rate(scope, key)
    else:
        return []
    return [Delta("ethical", inp.clamp(scope, "ethical", shift), f"Political event: {inp.event.description}")]


def _cultural_shift(inp: PolicyInput) -> list[Delta]:
    scope = "cultural_shift"
    influence = inp.event.magnitude
    adaptability = inp.rate(scope, "adaptability_base") + inp.actor.trait("adaptability") * inp.rate(
        scope, "adaptability_weight"
    )
    deltas: list[Delta] = []
    for axis_id in inp.ledger.axis_ids():
        difference = inp.environment.cultural_norm(axis_id) - inp.value(axis_id)
        shift = difference * inp.rate(scope, "pull") * influence * adaptability
        if abs(shift) > inp.rate(scope, "min_shift"):
            deltas.append(Delta(axis_id, inp.clamp(scope, axis_id, shift), f"Cultural shift: {inp.event.description}"))
    return deltas


def _moral_choice(inp: PolicyInput) -> list[Delta]:
    """Impact map scaled by personality, then by publicity and cultural relevance."""
    scope = "moral_choice"
    traits = inp.actor
    env = inp.environment
    resistance = 1 - traits.trait("willpower") * inp.rate(scope, "willpower_weight")
    volatility = 1 + traits.trait("volatility") * inp.rate(scope, "volatility_weight")
    publicity = inp.config.witness_multiplier(scope, env.witnesses)
    relevance = env.cultural_relevance or 0
    cultural = 1 + relevance * inp.rate(scope, "cultural_weight") if relevance > 0 else 1.0

    deltas: list[Delta] = []
    for axis_id, impact in inp.event.impact.items():
        if not inp.has(axis_id) or not is_number(impact) or impact == 0:
            continue
        axis = inp.ledger.axis(axis_id)
        current = inp.value(axis_id)
        amount = impact * resistance * volatility
        extremeness = abs(current) / (axis.span / 2)
        if extremeness > inp.rate(scope, "extreme_threshold") and sign(amount) != sign(current):
            amount *= inp.rate(scope, "extreme_resistance")
        amount *= publicity * cultural
        deltas.append(Delta(axis_id, inp.clamp(scope, axis_id, amount), f"Moral choice: {inp.event.description}"))
    return deltas


ALIGNMENT_HANDLERS: dict[str, HandlerFn] = {
    "war": _war,
    "plague": _plague,
    "political_change": _political_change,
    "cultural_shift": _cultural_shift,
    "moral_choice": _moral_choice,
}


def personality_target(axis_id: str, actor: Actor, config: PolicyConfig = ALIGNMENT_CONFIG) -> float:
    """Where an axis settles for this personality when nothing happens."""
    if axis_id == "moral":
        return actor.trait("compassion") * config.rate("drift", "compassion") - actor.trait(
            "selfishness"
        ) * config.rate("drift", "selfishness")
    if axis_id == "ethical":
        return actor.trait("order") * config.rate("drift", "order") - actor.trait("rebellion") * config.rate(
            "drift", "rebellion"
        )
    return 0.0


class AlignmentPolicy(ModifierPolicy):
    def __init__(self, config: PolicyConfig = ALIGNMENT_CONFIG):
        super().__init__(
            "alignment",
            ALIGNMENT_HANDLERS,
            generic_impact_handler("Event impact"),
            config,
        )

    def provenance(self, event: Event, actor: Actor, environment: Environment) -> dict[str, Any]:
        context = super().provenance(event, actor, environment)
        if environment.witnesses:
            context["witnesses"] = environment.witnesses
        if environment.cultural_values:
            context["cultural_values"] = dict(environment.cultural_values)
        return context

    def drift_deltas(
        self,
        ledger: Ledger,
        actor: Actor,
        elapsed: float,
        experiences: Iterable[Event] = (),
        *,
        now: datetime | None = None,
    ) -> list[Delta]:
        """Personality drift over ``elapsed`` days plus recency-weighted life experiences."""
        if elapsed <= 0:
            return []
        cfg = self.config
        deltas: list[Delta] = []
        for axis_id in ledger.axis_ids():
            target = personality_target(axis_id, actor, cfg)
            amount = (target - ledger.value(axis_id)) * cfg.rate("drift", "rate") * elapsed
            if abs(amount) > cfg.rate("drift", "materiality"):
                deltas.append(
                    Delta(axis_id, cfg.clamp("drift", axis_id, amount), "Natural personality drift over time")
                )

        now = as_utc(now) if now is not None else utc_now()
        half_life = cfg.rate("experience", "half_life")
        for experience in experiences:
            recency = 1.0
            if experience.timestamp is not None:
                days = (now - as_utc(experience.timestamp)).total_seconds() / 86400
                recency = math.exp(-days / half_life)
            for axis_id, impact in experience.impact.items():
                if not ledger.has_axis(axis_id) or not is_number(impact) or impact == 0:
                    continue
                amount = cfg.clamp("experience", axis_id, impact * recency * experience.magnitude)
                if amount:
                    deltas.append(Delta(axis_id, amount, f"Life experience: {experience.description}"))
        return deltas

    def drift(
        self,
        ledger: Ledger,
        actor: Actor,
        elapsed: float,
        experiences: Iterable[Event] = (),
        *,
        now: datetime | None = None,
        timestamp: datetime | None = None,
    ) -> Ledger:
        """Apply personality drift; ``elapsed <= 0`` returns ``ledger`` itself."""
        if elapsed <= 0:
            return ledger
        deltas = self.drift_deltas(ledger, actor, elapsed, experiences, now=now)
        logger.debug("alignment drift: %g days -> %d deltas", elapsed, len(deltas))
        return ledger.with_deltas(deltas, {"source": "drift", "elapsed": elapsed}, timestamp=timestamp)

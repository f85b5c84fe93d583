"""
Time-based decay.

Standing erodes when it is not maintained. For each axis with a non-zero
value the transform derives a rate, scales it, and proposes one delta
toward zero:

    rate   = per-call override | axis decay_rate | config base_rate
    rate  *= 1 - min(relevant_active * activity_discount, activity_discount_cap)
    rate  *= 1 - min((charisma + social_skill) / trait_divisor, trait_cap)
    rate  *= band multiplier (high standing is costlier to keep)
    rate  *= age rule multiplier
    delta  = -value * rate * elapsed / reference_period

The delta never carries the value past zero, is optionally capped per
step, and is dropped when its magnitude does not exceed the
materiality threshold.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, Mapping

from .axes import AxisDefinition
from .errors import ConfigError
from .ledger.ledger import Ledger
from .ledger.records import Delta

if TYPE_CHECKING:
    from .policies.inputs import Actor, Settlement

logger = logging.getLogger(__name__)

RelevanceFn = Callable[["Settlement", str], bool]

BAND_MULTIPLIER_KEY = "decay_multiplier"


@dataclass(frozen=True)
class AgeRule:
    """Age-dependent decay multiplier for one axis.

    Past ``min_age`` the rate is multiplied either by a fixed ``factor`` or
    by ``1 + (age - min_age) * per_year``.
    """

    axis_id: str
    min_age: float
    factor: float | None = None
    per_year: float | None = None

    def __post_init__(self) -> None:
        if (self.factor is None) == (self.per_year is None):
            raise ConfigError(f"Age rule for {self.axis_id!r} needs exactly one of factor or per_year")

    def multiplier(self, age: float) -> float:
        if age <= self.min_age:
            return 1.0
        if self.per_year is not None:
            return 1.0 + (age - self.min_age) * self.per_year
        return self.factor  # type: ignore[return-value]


@dataclass(frozen=True)
class DecayConfig:
    base_rate: float
    reference_period: float = 30.0
    activity_discount: float = 0.2
    activity_discount_cap: float = 0.8
    band_multipliers: Mapping[str, float] = field(default_factory=dict)
    trait_divisor: float | None = None
    trait_cap: float = 0.4
    age_rules: tuple[AgeRule, ...] = ()
    default_age: float = 30
    materiality: float = 0.1
    max_step: float | None = None
    relevance: RelevanceFn | None = None

    def __post_init__(self) -> None:
        if self.base_rate < 0:
            raise ConfigError("Decay base rate must be non-negative")
        if self.reference_period <= 0:
            raise ConfigError("Decay reference period must be positive")
        if not 0 <= self.activity_discount_cap <= 1 or self.activity_discount < 0:
            raise ConfigError("Activity discount must be non-negative and its cap within [0, 1]")
        if self.trait_divisor is not None and self.trait_divisor <= 0:
            raise ConfigError("Trait divisor must be positive")
        if not 0 <= self.trait_cap <= 1:
            raise ConfigError("Trait cap must be within [0, 1]")
        if self.max_step is not None and self.max_step <= 0:
            raise ConfigError("Decay step cap must be positive")
        for name, multiplier in self.band_multipliers.items():
            if multiplier < 0:
                raise ConfigError(f"Band multiplier for {name!r} must be non-negative")


class DecayTransform:
    """Turns elapsed time into decay deltas."""

    def __init__(self, config: DecayConfig, name: str = "decay"):
        self.config = config
        self.name = name

    def __repr__(self) -> str:
        return f"DecayTransform(name={self.name!r}, base_rate={self.config.base_rate})"

    def _band_multiplier(self, ledger: Ledger, axis: AxisDefinition) -> float:
        band = ledger.band(axis.id)
        if band is None:
            return 1.0
        override = band.get(BAND_MULTIPLIER_KEY)
        if isinstance(override, (int, float)) and not isinstance(override, bool):
            return float(override)
        return self.config.band_multipliers.get(band.name, 1.0)

    def rate_for(
        self,
        ledger: Ledger,
        axis_id: str,
        actor: "Actor | None" = None,
        active: Iterable["Settlement"] = (),
        rates: Mapping[str, float] | None = None,
    ) -> float:
        """Effective decay rate for one axis."""
        cfg = self.config
        axis = ledger.axis(axis_id)

        if rates and axis_id in rates:
            rate = rates[axis_id]
        elif axis.decay_rate is not None:
            rate = axis.decay_rate
        else:
            rate = cfg.base_rate

        if cfg.relevance is not None:
            relevant = sum(1 for s in active if cfg.relevance(s, axis_id))
            if relevant:
                rate *= 1 - min(relevant * cfg.activity_discount, cfg.activity_discount_cap)

        if cfg.trait_divisor is not None and actor is not None:
            skill = max(actor.charisma + actor.social_skill, 0)
            rate *= 1 - min(skill / cfg.trait_divisor, cfg.trait_cap)

        rate *= self._band_multiplier(ledger, axis)

        age = actor.age if actor is not None else cfg.default_age
        for rule in cfg.age_rules:
            if rule.axis_id == axis_id:
                rate *= rule.multiplier(age)

        return max(rate, 0.0)

    def compute_deltas(
        self,
        ledger: Ledger,
        elapsed: float,
        actor: "Actor | None" = None,
        active: Iterable["Settlement"] = (),
        rates: Mapping[str, float] | None = None,
    ) -> list[Delta]:
        if elapsed <= 0:
            return []
        cfg = self.config
        active = tuple(active)
        deltas: list[Delta] = []
        for axis_id in ledger.axis_ids():
            value = ledger.value(axis_id)
            if value == 0:
                continue
            rate = self.rate_for(ledger, axis_id, actor, active, rates)
            amount = -value * rate * elapsed / cfg.reference_period
            if abs(amount) > abs(value):
                amount = -value
            if cfg.max_step is not None:
                amount = max(-cfg.max_step, min(cfg.max_step, amount))
            if abs(amount) <= cfg.materiality:
                continue
            deltas.append(
                Delta(
                    axis_id,
                    amount,
                    f"Natural decay over {elapsed:g} days",
                    {"source": self.name, "elapsed": elapsed, "rate": rate},
                )
            )
        logger.debug("%s: %g days -> %d deltas", self.name, elapsed, len(deltas))
        return deltas

    def apply(
        self,
        ledger: Ledger,
        elapsed: float,
        actor: "Actor | None" = None,
        active: Iterable["Settlement"] = (),
        rates: Mapping[str, float] | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> Ledger:
        """Return a decayed ledger; ``elapsed <= 0`` returns ``ledger`` itself."""
        if elapsed <= 0:
            return ledger
        deltas = self.compute_deltas(ledger, elapsed, actor, active, rates)
        return ledger.with_deltas(deltas, timestamp=timestamp)

"""
Modifier policy framework.

A modifier policy turns (ledger, event, actor, environment) into an
ordered list of clamped axis deltas. The shape is shared by every
concrete policy:

- dispatch by ``event.category`` through a registry of pure handlers,
  with a generic fallback for unknown categories
- one clamp range per axis per category scope, held in ``PolicyConfig``
- witness multipliers of the form ``1 + min(count / K, cap)``
- zero deltas and axes the ledger does not define are dropped

Policies hold no state beyond their handler table and configuration.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from ..axes import is_number
from ..errors import ConfigError, EventValidationError
from ..ledger.ledger import Ledger
from ..ledger.records import Delta
from .inputs import Actor, Environment, Event, Occurrence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClampRange:
    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ConfigError(f"Clamp range low ({self.low}) exceeds high ({self.high})")

    def apply(self, value: float) -> float:
        return max(self.low, min(self.high, value))

    @classmethod
    def symmetric(cls, bound: float) -> "ClampRange":
        return cls(-bound, bound)


@dataclass(frozen=True)
class WitnessScale:
    """Capped, monotonic audience multiplier: ``1 + min(count / divisor, cap) * weight``.

    Negative weights count as 0.
    """

    divisor: float
    cap: float

    def __post_init__(self) -> None:
        if self.divisor <= 0 or self.cap < 0:
            raise ConfigError("Witness scale needs a positive divisor and a non-negative cap")

    def multiplier(self, count: float, weight: float = 1.0) -> float:
        if count <= 0:
            return 1.0
        return 1.0 + min(count / self.divisor, self.cap) * max(weight, 0.0)


@dataclass(frozen=True)
class PolicyConfig:
    """Per-policy constants.

    ``clamps[scope][axis_id]`` bounds a delta computed by the handler for
    ``scope`` (a category name, or ``"<category>.secondary"`` for
    conditional follow-up effects). ``rates[scope][key]`` holds base
    amounts, ``witness[scope]`` the audience scale.
    """

    clamps: Mapping[str, Mapping[str, ClampRange]] = field(default_factory=dict)
    rates: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    witness: Mapping[str, WitnessScale] = field(default_factory=dict)
    generic_clamp: ClampRange = ClampRange(-3, 3)

    def clamp(self, scope: str, axis_id: str, value: float) -> float:
        """Clamp by the axis range, then the scope's ``"*"`` range, then the generic one."""
        ranges = self.clamps.get(scope, {})
        rng = ranges.get(axis_id) or ranges.get("*") or self.generic_clamp
        return rng.apply(value)

    def rate(self, scope: str, key: str) -> float:
        try:
            return self.rates[scope][key]
        except KeyError:
            raise ConfigError(f"Missing rate {scope}.{key}") from None

    def witness_multiplier(self, scope: str, count: float, weight: float = 1.0) -> float:
        scale = self.witness.get(scope)
        if scale is None:
            return 1.0
        return scale.multiplier(count, weight)

    def merged(
        self,
        *,
        clamps: Mapping[str, Mapping[str, ClampRange]] | None = None,
        rates: Mapping[str, Mapping[str, float]] | None = None,
        witness: Mapping[str, WitnessScale] | None = None,
        generic_clamp: ClampRange | None = None,
    ) -> "PolicyConfig":
        """Return a copy with per-scope overrides layered on top."""

        def layer(base: Mapping[str, Mapping[str, Any]], extra: Mapping[str, Mapping[str, Any]] | None):
            out = {scope: dict(values) for scope, values in base.items()}
            for scope, values in (extra or {}).items():
                out.setdefault(scope, {}).update(values)
            return out

        return PolicyConfig(
            clamps=layer(self.clamps, clamps),
            rates=layer(self.rates, rates),
            witness={**self.witness, **(witness or {})},
            generic_clamp=generic_clamp or self.generic_clamp,
        )


@dataclass(frozen=True)
class PolicyInput:
    """Everything a handler may read. Actor and environment are never None."""

    ledger: Ledger
    event: Event
    actor: Actor
    environment: Environment
    config: PolicyConfig

    def has(self, axis_id: str) -> bool:
        return self.ledger.has_axis(axis_id)

    def value(self, axis_id: str) -> float:
        return self.ledger.value(axis_id)

    def clamp(self, scope: str, axis_id: str, value: float) -> float:
        return self.config.clamp(scope, axis_id, value)

    def rate(self, scope: str, key: str) -> float:
        return self.config.rate(scope, key)


HandlerFn = Callable[[PolicyInput], list[Delta]]


def sign(value: float) -> int:
    return (value > 0) - (value < 0)


def generic_impact_handler(reason: str, witness_scope: str | None = None) -> HandlerFn:
    """Build a fallback handler that reads ``event.impact``.

    Each non-zero entry for a known axis is optionally witness-scaled,
    then clamped into the policy's narrow generic range.
    """

    def handler(inp: PolicyInput) -> list[Delta]:
        deltas: list[Delta] = []
        multiplier = 1.0
        if witness_scope is not None:
            multiplier = inp.config.witness_multiplier(witness_scope, inp.environment.witnesses)
        for axis_id, impact in inp.event.impact.items():
            if not inp.has(axis_id) or not is_number(impact) or impact == 0:
                continue
            amount = inp.config.generic_clamp.apply(impact * multiplier)
            deltas.append(Delta(axis_id, amount, f"{reason}: {inp.event.description}"))
        return deltas

    return handler


class ModifierPolicy:
    """Registry-dispatched event classifier.

    Subclasses supply the handler table and may extend ``validate`` and
    ``provenance``; they never keep per-ledger state.
    """

    def __init__(
        self,
        name: str,
        handlers: Mapping[str, HandlerFn],
        generic: HandlerFn,
        config: PolicyConfig,
    ):
        self.name = name
        self._handlers = dict(handlers)
        self._generic = generic
        self.config = config

    def __repr__(self) -> str:
        return f"{type(self).__name__}(categories={self.categories()!r})"

    @property
    def handlers(self) -> Mapping[str, HandlerFn]:
        return MappingProxyType(self._handlers)

    def categories(self) -> list[str]:
        return sorted(self._handlers)

    def with_handler(self, category: str, fn: HandlerFn) -> "ModifierPolicy":
        """Return a policy that also handles ``category``."""
        policy = copy.copy(self)
        policy._handlers = {**self._handlers, category: fn}
        return policy

    def with_config(self, config: PolicyConfig) -> "ModifierPolicy":
        policy = copy.copy(self)
        policy.config = config
        return policy

    # --- Computation ---

    def compute_deltas(
        self,
        ledger: Ledger,
        event: Event,
        actor: Actor | None = None,
        environment: Environment | None = None,
    ) -> list[Delta]:
        """Classify ``event`` into ordered, clamped, non-zero deltas."""
        inp = PolicyInput(
            ledger=ledger,
            event=event,
            actor=actor or Actor(),
            environment=environment or Environment(),
            config=self.config,
        )
        handler = self._handlers.get(event.category)
        if handler is None:
            logger.debug("%s: no handler for %r, using generic", self.name, event.category)
            handler = self._generic

        deltas = [d for d in handler(inp) if d.amount != 0 and ledger.has_axis(d.axis_id)]
        logger.debug("%s: %r -> %d deltas", self.name, event.category, len(deltas))
        return deltas

    # --- Service entry points ---

    def validate(self, event: Event, actor: Actor | None, environment: Environment | None) -> None:
        """Fail fast on inputs the service contract requires."""
        if not isinstance(event, Event):
            raise EventValidationError(f"Invalid event: expected Event, got {type(event).__name__}")
        if not event.category or not isinstance(event.category, str):
            raise EventValidationError("Event must have a valid category")
        if not event.description or not isinstance(event.description, str):
            raise EventValidationError("Event must have a description")

    def provenance(self, event: Event, actor: Actor, environment: Environment) -> dict[str, Any]:
        """Context attached to every change record this event produces."""
        context: dict[str, Any] = {
            "policy": self.name,
            "category": event.category,
            "description": event.description,
        }
        if event.subtype:
            context["subtype"] = event.subtype
        return context

    def evolve(
        self,
        ledger: Ledger,
        event: Event,
        actor: Actor | None = None,
        environment: Environment | None = None,
    ) -> Ledger:
        """Validate, compute, and apply one event. Returns a new ledger."""
        self.validate(event, actor, environment)
        actor = actor or Actor()
        environment = environment or Environment()
        deltas = self.compute_deltas(ledger, event, actor, environment)
        if not deltas:
            return ledger
        context = self.provenance(event, actor, environment)
        return ledger.with_deltas(deltas, context, timestamp=event.timestamp)

    def apply_all(
        self,
        ledger: Ledger,
        occurrences: Iterable[Occurrence],
        actor: Actor | None = None,
        environment: Environment | None = None,
    ) -> Ledger:
        """Apply occurrences oldest first, one at a time.

        ``actor`` and ``environment`` fill in for occurrences that carry
        none. Ties keep input order.
        """
        items = list(occurrences)
        for index, item in enumerate(items):
            if item.event.timestamp is None:
                raise EventValidationError(f"Occurrence {index} has no timestamp; batch order is undefined")
        for item in sorted(items, key=lambda o: o.event.timestamp):
            ledger = self.evolve(
                ledger,
                item.event,
                item.actor or actor,
                item.environment or environment,
            )
        return ledger

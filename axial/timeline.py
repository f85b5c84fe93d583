"""
Chronological folding of policy events and decay over one ledger.

Later clamps see the already-updated value, so the order of application
matters. ``chronological_fold`` sorts steps by timestamp (stable for
ties) and applies them strictly left to right; ``fold_in_order`` applies
them exactly as given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping, Protocol, Sequence

from .decay import DecayTransform
from .errors import EventValidationError
from .ledger.ledger import Ledger
from .ledger.records import as_utc
from .policies.base import ModifierPolicy
from .policies.inputs import Actor, Occurrence, Settlement


class Step(Protocol):
    @property
    def timestamp(self) -> datetime | None: ...

    def apply(self, ledger: Ledger) -> Ledger: ...


@dataclass(frozen=True)
class PolicyStep:
    """One occurrence to run through a policy."""

    policy: ModifierPolicy
    occurrence: Occurrence

    @property
    def timestamp(self) -> datetime | None:
        return self.occurrence.timestamp

    def apply(self, ledger: Ledger) -> Ledger:
        occ = self.occurrence
        return self.policy.evolve(ledger, occ.event, occ.actor, occ.environment)


@dataclass(frozen=True)
class DecayStep:
    """Decay for ``elapsed`` days, recorded at ``at``."""

    transform: DecayTransform
    elapsed: float
    at: datetime
    actor: Actor | None = None
    active: tuple[Settlement, ...] = ()
    rates: Mapping[str, float] | None = field(default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "at", as_utc(self.at))

    @property
    def timestamp(self) -> datetime | None:
        return self.at

    def apply(self, ledger: Ledger) -> Ledger:
        return self.transform.apply(
            ledger, self.elapsed, self.actor, self.active, self.rates, timestamp=self.at
        )


def fold_in_order(ledger: Ledger, steps: Iterable[Step]) -> Ledger:
    """Apply steps exactly in the given order."""
    for step in steps:
        ledger = step.apply(ledger)
    return ledger


def chronological_fold(ledger: Ledger, steps: Iterable[Step]) -> Ledger:
    """Sort steps by timestamp, then fold them one at a time."""
    ordered: Sequence[Step] = list(steps)
    for index, step in enumerate(ordered):
        if step.timestamp is None:
            raise EventValidationError(f"Step {index} has no timestamp; chronological order is undefined")
    return fold_in_order(ledger, sorted(ordered, key=lambda s: s.timestamp))

"""
Change records: the unit of the per-axis audit trail.

A record captures one applied delta: the requested amount, the clamped
value it produced, why, and optional structured provenance.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from ..axes import is_number
from ..errors import LedgerValidationError
from ..provenance import Provenance, context_from_dict, context_to_dict, freeze_context


def as_utc(ts: datetime) -> datetime:
    """Attach UTC to naive timestamps; aware timestamps are kept."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChangeRecord:
    """A single applied delta.

    ``delta`` is the requested amount; ``resulting_value`` is the value
    after clamping to the axis bounds. ``context`` is frozen on
    construction, so later changes to the caller's dict are not seen.
    """

    timestamp: datetime
    delta: float
    resulting_value: float
    reason: str
    context: Provenance | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.timestamp, datetime):
            raise LedgerValidationError("Change record timestamp must be a datetime")
        if not is_number(self.delta):
            raise LedgerValidationError(f"Change record delta must be a finite number, got {self.delta!r}")
        if not is_number(self.resulting_value):
            raise LedgerValidationError(
                f"Change record resulting value must be a finite number, got {self.resulting_value!r}"
            )
        if not isinstance(self.reason, str):
            raise LedgerValidationError("Change record reason must be a string")
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))
        object.__setattr__(self, "context", freeze_context(self.context))

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "delta": self.delta,
            "resulting_value": self.resulting_value,
            "reason": self.reason,
            "context": context_to_dict(self.context),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChangeRecord":
        """Reconstruct from JSON dict."""
        if not isinstance(data, Mapping):
            raise LedgerValidationError("Change record must be an object")
        missing = [k for k in ("timestamp", "delta", "resulting_value", "reason") if k not in data]
        if missing:
            raise LedgerValidationError(f"Change record missing fields: {', '.join(missing)}")
        try:
            timestamp = datetime.fromisoformat(data["timestamp"])
        except (TypeError, ValueError) as e:
            raise LedgerValidationError(f"Invalid change record timestamp: {data['timestamp']!r}") from e
        return cls(
            timestamp=timestamp,
            delta=data["delta"],
            resulting_value=data["resulting_value"],
            reason=data["reason"],
            context=context_from_dict(data.get("context")),
        )


@dataclass(frozen=True)
class Delta:
    """One proposed change to one axis, before clamping."""

    axis_id: str
    amount: float
    reason: str
    context: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"axis_id": self.axis_id, "amount": self.amount, "reason": self.reason}

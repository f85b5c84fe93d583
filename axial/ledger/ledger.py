"""
Immutable multi-axis ledger.

A ledger holds, for a fixed set of axes, the current value of each axis
and its ordered change history. It is never modified in place: every
change returns a new ledger, and the caller keeps the reference to the
latest version. Keeping the previous reference is the undo.

Invariant: for ledgers built through ``with_change``, replaying an axis's
history from its default value (clamping after every delta) reproduces
the current value exactly.
"""

from __future__ import annotations

import json
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..axes import AxisDefinition, Band, is_number
from ..errors import LedgerValidationError, UnknownAxisError
from .records import ChangeRecord, utc_now

if TYPE_CHECKING:
    from .records import Delta


class Ledger:
    """Versioned snapshot of axis values plus per-axis audit history."""

    __slots__ = ("_axes", "_axes_by_id", "_values", "_history")

    def __init__(
        self,
        axes: Iterable[AxisDefinition],
        values: Mapping[str, float] | None = None,
        history: Mapping[str, Iterable[ChangeRecord]] | None = None,
    ):
        axes = tuple(axes)
        if not axes:
            raise LedgerValidationError("Ledger must have at least one axis")

        axes_by_id: dict[str, AxisDefinition] = {}
        for axis in axes:
            if not isinstance(axis, AxisDefinition):
                raise LedgerValidationError(f"Expected AxisDefinition, got {type(axis).__name__}")
            if axis.id in axes_by_id:
                raise LedgerValidationError(f"Duplicate axis id: {axis.id!r}")
            axes_by_id[axis.id] = axis

        values = dict(values or {})
        history = dict(history or {})
        for key in list(values) + list(history):
            if key not in axes_by_id:
                raise UnknownAxisError(key)

        current: dict[str, float] = {}
        records: dict[str, tuple[ChangeRecord, ...]] = {}
        for axis in axes:
            value = values.get(axis.id, axis.default_value)
            if not is_number(value):
                raise LedgerValidationError(f"Value for axis {axis.id!r} must be a number")
            if not axis.min <= value <= axis.max:
                raise LedgerValidationError(
                    f"Value for axis {axis.id!r} must be between {axis.min} and {axis.max}"
                )
            current[axis.id] = value

            entries = tuple(history.get(axis.id, ()))
            for entry in entries:
                if not isinstance(entry, ChangeRecord):
                    raise LedgerValidationError(f"History for axis {axis.id!r} must contain ChangeRecords")
            records[axis.id] = entries

        object.__setattr__(self, "_axes", axes)
        object.__setattr__(self, "_axes_by_id", axes_by_id)
        object.__setattr__(self, "_values", current)
        object.__setattr__(self, "_history", records)

    @classmethod
    def _derive(
        cls,
        source: "Ledger",
        values: dict[str, float],
        history: dict[str, tuple[ChangeRecord, ...]],
    ) -> "Ledger":
        # Axes and untouched histories are already validated; share them.
        ledger = object.__new__(cls)
        object.__setattr__(ledger, "_axes", source._axes)
        object.__setattr__(ledger, "_axes_by_id", source._axes_by_id)
        object.__setattr__(ledger, "_values", values)
        object.__setattr__(ledger, "_history", history)
        return ledger

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Ledger is immutable; use with_change()")

    # --- Read API ---

    @property
    def axes(self) -> tuple[AxisDefinition, ...]:
        return self._axes

    @property
    def values(self) -> Mapping[str, float]:
        return MappingProxyType(self._values)

    def axis_ids(self) -> list[str]:
        return [axis.id for axis in self._axes]

    def has_axis(self, axis_id: str) -> bool:
        return axis_id in self._axes_by_id

    def axis(self, axis_id: str) -> AxisDefinition:
        try:
            return self._axes_by_id[axis_id]
        except KeyError:
            raise UnknownAxisError(axis_id) from None

    def value(self, axis_id: str) -> float:
        try:
            return self._values[axis_id]
        except KeyError:
            raise UnknownAxisError(axis_id) from None

    def band(self, axis_id: str) -> Band | None:
        return self.axis(axis_id).band_for(self.value(axis_id))

    def history(self, axis_id: str) -> tuple[ChangeRecord, ...]:
        """Change records for one axis, oldest first."""
        self.axis(axis_id)
        return self._history[axis_id]

    def last_change(self, axis_id: str) -> ChangeRecord | None:
        entries = self.history(axis_id)
        return entries[-1] if entries else None

    def summary(self) -> dict[str, dict[str, Any]]:
        """Per-axis value, band name, and last change."""
        out: dict[str, dict[str, Any]] = {}
        for axis_id in self.axis_ids():
            band = self.band(axis_id)
            out[axis_id] = {
                "value": self.value(axis_id),
                "band": band.name if band else None,
                "last_change": self.last_change(axis_id),
            }
        return out

    # --- Transitions ---

    def with_change(
        self,
        axis_id: str,
        amount: float,
        reason: str,
        context: Mapping[str, Any] | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> "Ledger":
        """Return a new ledger with ``amount`` applied to ``axis_id``.

        The result is clamped to the axis bounds; the record stores the
        clamped value and a frozen copy of ``context``. The receiver is
        left untouched.
        """
        axis = self.axis(axis_id)
        if not is_number(amount):
            raise LedgerValidationError(f"Change amount must be a finite number, got {amount!r}")
        if not reason or not isinstance(reason, str):
            raise LedgerValidationError("Change reason is required")

        new_value = axis.clamp(self._values[axis_id] + amount)
        record = ChangeRecord(
            timestamp=timestamp or utc_now(),
            delta=amount,
            resulting_value=new_value,
            reason=reason,
            context=context,  # type: ignore[arg-type]
        )

        values = dict(self._values)
        values[axis_id] = new_value
        history = dict(self._history)
        history[axis_id] = self._history[axis_id] + (record,)
        return Ledger._derive(self, values, history)

    def with_deltas(
        self,
        deltas: Iterable["Delta"],
        context: Mapping[str, Any] | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> "Ledger":
        """Fold an ordered list of deltas through ``with_change``.

        A delta's own context takes precedence over ``context``.
        """
        ledger = self
        for delta in deltas:
            ledger = ledger.with_change(
                delta.axis_id,
                delta.amount,
                delta.reason,
                delta.context if delta.context is not None else context,
                timestamp=timestamp,
            )
        return ledger

    # --- Replay ---

    def replay(self, axis_id: str) -> float:
        """Recompute an axis value from its default and history."""
        axis = self.axis(axis_id)
        value = axis.default_value
        for record in self._history[axis_id]:
            value = axis.clamp(value + record.delta)
        return value

    def inconsistent_axes(self) -> list[str]:
        """Axes whose replayed value differs from the current value."""
        return [axis_id for axis_id in self.axis_ids() if self.replay(axis_id) != self._values[axis_id]]

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        return {
            "axes": [axis.to_dict() for axis in self._axes],
            "values": dict(self._values),
            "history": {
                axis_id: [record.to_dict() for record in self._history[axis_id]]
                for axis_id in self.axis_ids()
            },
        }

    def to_json(self, indent: int | None = None) -> str:
        if indent is None:
            return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Ledger":
        if not isinstance(data, Mapping):
            raise LedgerValidationError("Invalid ledger data: must be an object")
        axes = data.get("axes")
        if not isinstance(axes, list):
            raise LedgerValidationError("Invalid ledger data: 'axes' must be a list")
        values = data.get("values") or {}
        history = data.get("history") or {}
        if not isinstance(values, Mapping) or not isinstance(history, Mapping):
            raise LedgerValidationError("Invalid ledger data: 'values' and 'history' must be objects")

        records: dict[str, list[ChangeRecord]] = {}
        for axis_id, entries in history.items():
            if not isinstance(entries, list):
                raise LedgerValidationError(f"History for axis {axis_id!r} must be a list")
            records[axis_id] = [ChangeRecord.from_dict(e) for e in entries]

        return cls([AxisDefinition.from_dict(a) for a in axes], values, records)

    @classmethod
    def from_json(cls, text: str) -> "Ledger":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise LedgerValidationError(f"Invalid ledger JSON: {e}") from e
        return cls.from_dict(data)

    # --- Value semantics ---

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return self.to_json() == other.to_json()

    def __hash__(self) -> int:
        return hash(self.to_json())

    def __str__(self) -> str:
        parts = []
        for axis_id in self.axis_ids():
            band = self.band(axis_id)
            parts.append(f"{axis_id}: {self.value(axis_id)} ({band.name if band else 'Unknown'})")
        return f"Ledger {{ {', '.join(parts)} }}"

    def __repr__(self) -> str:
        return f"Ledger(axes={self.axis_ids()!r}, values={self._values!r})"

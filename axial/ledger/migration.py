"""
Legacy import boundary.

Older character data comes from mutable per-category managers with a
camelCase shape::

    {"axes": [...], "playerAlignment": {...}, "history": {...}}       # alignment
    {"domains": [...], "playerInfluence": {...}, "history": {...}}    # influence
    {"tracks": [...], "playerPrestige": {...}, "history": {...}}      # prestige
    {"axes": [...], "playerValues": {...}, "history": {...}}          # generic

The shape is decided once, here, by ``detect_format``; everything past
this module only ever sees a ``Ledger``. Failures are raised as
``MigrationError`` with the original exception chained, so batch tooling
can count them without losing the underlying traceback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Union

from ..axes import AxisDefinition, Band
from ..errors import LedgerError, MigrationError
from .ledger import Ledger
from .records import ChangeRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyShape:
    """Field names used by one kind of legacy manager."""

    kind: str
    axes_key: str
    values_key: str
    bands_key: str
    context_key: str


LEGACY_SHAPES: dict[str, LegacyShape] = {
    "alignment": LegacyShape("alignment", "axes", "playerAlignment", "zones", "historicalContext"),
    "influence": LegacyShape("influence", "domains", "playerInfluence", "tiers", "settlementContext"),
    "prestige": LegacyShape("prestige", "tracks", "playerPrestige", "levels", "socialContext"),
    "generic": LegacyShape("generic", "axes", "playerValues", "bands", "context"),
}


@dataclass(frozen=True)
class LegacyFormat:
    """Data from an old mutable manager."""

    shape: LegacyShape
    data: Mapping[str, Any]


@dataclass(frozen=True)
class CurrentFormat:
    """Data already in the ``{axes, values, history}`` serialized form."""

    data: Mapping[str, Any]


LedgerSource = Union[LegacyFormat, CurrentFormat]


def detect_format(data: Mapping[str, Any], kind: str | None = None) -> LedgerSource:
    """Decide which shape ``data`` has.

    Serialized ledgers are always recognized. For legacy data ``kind``
    pins the shape; otherwise it is inferred from the player-values key.
    """
    if not isinstance(data, Mapping):
        raise MigrationError("Ledger data must be an object", kind=kind)

    if "values" in data and "axes" in data:
        return CurrentFormat(data)

    if kind is not None:
        shape = LEGACY_SHAPES.get(kind)
        if shape is None:
            raise MigrationError(f"Unknown legacy kind: {kind!r}", kind=kind)
        return LegacyFormat(shape, data)
    for shape in LEGACY_SHAPES.values():
        if shape.values_key in data:
            return LegacyFormat(shape, data)
    raise MigrationError("Unrecognized ledger data: no values or player values field", kind=kind)


def _legacy_band(raw: Mapping[str, Any]) -> Band:
    return Band.from_dict(raw)


def _legacy_axis(raw: Mapping[str, Any], shape: LegacyShape) -> AxisDefinition:
    if not isinstance(raw, Mapping):
        raise MigrationError(f"Legacy {shape.kind} axis must be an object", kind=shape.kind)
    bands = raw.get(shape.bands_key)
    if bands is None:
        raise MigrationError(
            f"Legacy {shape.kind} axis {raw.get('id')!r} missing {shape.bands_key!r}", kind=shape.kind
        )
    skip = {"id", "name", "min", "max", "defaultValue", "decayRate", shape.bands_key}
    return AxisDefinition(
        id=raw.get("id", ""),
        name=raw.get("name", ""),
        min=raw.get("min"),  # type: ignore[arg-type]
        max=raw.get("max"),  # type: ignore[arg-type]
        default_value=raw.get("defaultValue"),  # type: ignore[arg-type]
        bands=tuple(_legacy_band(b) for b in bands),
        decay_rate=raw.get("decayRate"),
        metadata={k: v for k, v in raw.items() if k not in skip},  # type: ignore[arg-type]
    )


def _legacy_record(raw: Mapping[str, Any], shape: LegacyShape) -> ChangeRecord:
    missing = [k for k in ("timestamp", "change", "newValue", "reason") if k not in raw]
    if missing:
        raise MigrationError(
            f"Legacy {shape.kind} history entry missing fields: {', '.join(missing)}", kind=shape.kind
        )
    timestamp = raw["timestamp"]
    if not isinstance(timestamp, datetime):
        timestamp = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
    return ChangeRecord(
        timestamp=timestamp,
        delta=raw["change"],
        resulting_value=raw["newValue"],
        reason=raw["reason"],
        context=raw.get(shape.context_key),
    )


def import_legacy(source: LegacyFormat) -> Ledger:
    """Wrap legacy manager data into an immutable ledger.

    Every history entry is preserved. Missing required fields raise
    ``MigrationError`` rather than producing a partial ledger.
    """
    shape = source.shape
    data = source.data
    try:
        axes_raw = data.get(shape.axes_key)
        if not isinstance(axes_raw, list) or not axes_raw:
            raise MigrationError(f"Legacy {shape.kind} data missing {shape.axes_key!r}", kind=shape.kind)
        values = data.get(shape.values_key)
        if not isinstance(values, Mapping):
            raise MigrationError(f"Legacy {shape.kind} data missing {shape.values_key!r}", kind=shape.kind)
        history_raw = data.get("history") or {}
        if not isinstance(history_raw, Mapping):
            raise MigrationError(f"Legacy {shape.kind} history must be an object", kind=shape.kind)

        axes = [_legacy_axis(a, shape) for a in axes_raw]
        history = {
            axis_id: [_legacy_record(entry, shape) for entry in entries]
            for axis_id, entries in history_raw.items()
        }
        return Ledger(axes, values, history)
    except MigrationError:
        raise
    except (LedgerError, TypeError, ValueError, AttributeError) as e:
        raise MigrationError(
            f"Failed to migrate {shape.kind} data: {e}", kind=shape.kind, cause=e
        ) from e


def load_ledger(data: Mapping[str, Any], kind: str | None = None) -> Ledger:
    """Build a ledger from either serialized or legacy data."""
    source = detect_format(data, kind)
    if isinstance(source, LegacyFormat):
        return import_legacy(source)
    try:
        return Ledger.from_dict(source.data)
    except (LedgerError, TypeError, ValueError) as e:
        raise MigrationError(f"Failed to load ledger data: {e}", kind=kind, cause=e) from e


@dataclass
class MigrationReport:
    """Outcome of a batch migration."""

    ledgers: list[Ledger] = field(default_factory=list)
    failures: list[MigrationError] = field(default_factory=list)

    @property
    def migrated(self) -> int:
        return len(self.ledgers)

    @property
    def failed(self) -> int:
        return len(self.failures)


def migrate_batch(records: Iterable[Mapping[str, Any]], kind: str | None = None) -> MigrationReport:
    """Migrate many records, collecting failures instead of stopping."""
    report = MigrationReport()
    for index, data in enumerate(records):
        try:
            report.ledgers.append(load_ledger(data, kind))
        except MigrationError as e:
            e.index = index
            logger.warning("Migration of record %d failed: %s", index, e)
            report.failures.append(e)
    return report

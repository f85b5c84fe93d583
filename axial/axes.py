"""
Axis definitions and band lookup.

An axis is one independently tracked numeric scale (e.g. "moral",
"political", "honor"). Its bands (zones, tiers, levels) are named
sub-ranges used for classification and decay tuning.

Bands may leave gaps: a value in a gap has no band, which callers render
as "Unknown". Overlapping bands are not rejected here; lookup returns the
first matching band in declaration order, and ``find_band_overlaps``
exists for authoring tools that want to warn.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import AxisDefinitionError
from .provenance import Provenance, freeze, thaw

_BAND_KEYS = ("name", "min", "max")
_AXIS_KEYS = ("id", "name", "min", "max", "default_value", "bands", "decay_rate", "metadata")


def is_number(value: Any) -> bool:
    """True for finite ints and floats (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class Band:
    """A named, inclusive sub-range of an axis."""

    name: str
    min: float
    max: float
    metadata: Provenance = field(default_factory=Provenance)

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise AxisDefinitionError("Band must have a valid name")
        if not is_number(self.min) or not is_number(self.max):
            raise AxisDefinitionError(f"Band {self.name!r} must have numeric min and max values")
        if self.min >= self.max:
            raise AxisDefinitionError(f"Band {self.name!r} min value must be less than max value")
        object.__setattr__(self, "metadata", freeze(self.metadata or {}))

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def get(self, key: str, default: Any = None) -> Any:
        """Read a metadata entry (e.g. ``political_power``)."""
        return self.metadata.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name, "min": self.min, "max": self.max}
        d.update(thaw(self.metadata))
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Band":
        if not isinstance(data, Mapping):
            raise AxisDefinitionError("Band must be an object")
        metadata = {k: v for k, v in data.items() if k not in _BAND_KEYS}
        return cls(
            name=data.get("name", ""),
            min=data.get("min"),  # type: ignore[arg-type]
            max=data.get("max"),  # type: ignore[arg-type]
            metadata=metadata,  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class AxisDefinition:
    """Static schema for one tracked axis."""

    id: str
    name: str
    min: float
    max: float
    default_value: float
    bands: tuple[Band, ...]
    decay_rate: float | None = None
    metadata: Provenance = field(default_factory=Provenance)

    def __post_init__(self) -> None:
        if not self.id or not isinstance(self.id, str):
            raise AxisDefinitionError("Axis must have a valid id")
        if not self.name or not isinstance(self.name, str):
            raise AxisDefinitionError(f"Axis {self.id!r} must have a valid name")
        if not is_number(self.min) or not is_number(self.max):
            raise AxisDefinitionError(f"Axis {self.id!r} must have numeric min and max values")
        if self.min >= self.max:
            raise AxisDefinitionError(f"Axis {self.id!r} min value must be less than max value")
        if not is_number(self.default_value):
            raise AxisDefinitionError(f"Axis {self.id!r} must have a numeric default value")
        if not self.min <= self.default_value <= self.max:
            raise AxisDefinitionError(f"Axis {self.id!r} default value must be within min/max range")
        if self.decay_rate is not None and (not is_number(self.decay_rate) or self.decay_rate < 0):
            raise AxisDefinitionError(f"Axis {self.id!r} decay rate must be a non-negative number")

        bands = tuple(b if isinstance(b, Band) else Band.from_dict(b) for b in (self.bands or ()))
        if not bands:
            raise AxisDefinitionError(f"Axis {self.id!r} must have at least one band")
        object.__setattr__(self, "bands", bands)
        object.__setattr__(self, "metadata", freeze(self.metadata or {}))

    @property
    def span(self) -> float:
        return self.max - self.min

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))

    def band_for(self, value: float) -> Band | None:
        """First band containing ``value``, or None when it falls in a gap."""
        for band in self.bands:
            if band.contains(value):
                return band
        return None

    def band_named(self, name: str) -> Band | None:
        for band in self.bands:
            if band.name == name:
                return band
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "min": self.min,
            "max": self.max,
            "default_value": self.default_value,
            "bands": [b.to_dict() for b in self.bands],
        }
        if self.decay_rate is not None:
            d["decay_rate"] = self.decay_rate
        if self.metadata:
            d["metadata"] = thaw(self.metadata)
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AxisDefinition":
        if not isinstance(data, Mapping):
            raise AxisDefinitionError("Axis must be an object")
        bands = data.get("bands")
        if not isinstance(bands, (list, tuple)):
            raise AxisDefinitionError(f"Axis {data.get('id')!r} must have a list of bands")
        metadata = dict(data.get("metadata") or {})
        for key, value in data.items():
            if key not in _AXIS_KEYS:
                metadata.setdefault(key, value)
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            min=data.get("min"),  # type: ignore[arg-type]
            max=data.get("max"),  # type: ignore[arg-type]
            default_value=data.get("default_value"),  # type: ignore[arg-type]
            bands=tuple(Band.from_dict(b) for b in bands),
            decay_rate=data.get("decay_rate"),
            metadata=metadata,  # type: ignore[arg-type]
        )


def find_band_overlaps(axis: AxisDefinition) -> list[tuple[str, str]]:
    """Pairs of band names whose ranges overlap (authoring check)."""
    overlaps: list[tuple[str, str]] = []
    bands = axis.bands
    for i, a in enumerate(bands):
        for b in bands[i + 1:]:
            if a.min <= b.max and b.min <= a.max:
                overlaps.append((a.name, b.name))
    return overlaps

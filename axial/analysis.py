"""
Read-only queries over ledger snapshots.

- distribution: totals, dominant and weak axes, balance, band counts
- trends: recent movement per axis inside a time window
- compatibility: per-axis similarity between two ledgers
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Mapping

from .ledger.ledger import Ledger
from .ledger.records import ChangeRecord, as_utc, utc_now

UNKNOWN_BAND = "Unknown"


@dataclass(frozen=True)
class AxisValue:
    axis_id: str
    value: float
    band: str

    def to_dict(self) -> dict[str, Any]:
        return {"axis_id": self.axis_id, "value": self.value, "band": self.band}


@dataclass(frozen=True)
class DistributionReport:
    total: float
    average: float
    dominant: tuple[AxisValue, ...]
    weak: tuple[AxisValue, ...]
    balance_score: float
    band_counts: Mapping[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "average": self.average,
            "dominant": [a.to_dict() for a in self.dominant],
            "weak": [a.to_dict() for a in self.weak],
            "balance_score": self.balance_score,
            "band_counts": dict(self.band_counts),
        }


def _band_name(ledger: Ledger, axis_id: str) -> str:
    band = ledger.band(axis_id)
    return band.name if band else UNKNOWN_BAND


def analyze_distribution(ledger: Ledger) -> DistributionReport:
    """Balance score is the population standard deviation of axis values."""
    entries = [AxisValue(a, ledger.value(a), _band_name(ledger, a)) for a in ledger.axis_ids()]
    values = [e.value for e in entries]
    total = sum(values)
    average = total / len(values)
    variance = sum((v - average) ** 2 for v in values) / len(values)

    ranked = sorted(entries, key=lambda e: e.value, reverse=True)
    third = math.ceil(len(ranked) / 3)

    counts: dict[str, int] = {}
    for entry in entries:
        counts[entry.band] = counts.get(entry.band, 0) + 1

    return DistributionReport(
        total=total,
        average=average,
        dominant=tuple(ranked[:third]),
        weak=tuple(ranked[-third:]),
        balance_score=math.sqrt(variance),
        band_counts=counts,
    )


@dataclass(frozen=True)
class AxisTrend:
    trend: str
    total_change: float
    change_count: int
    average_change: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "trend": self.trend,
            "total_change": self.total_change,
            "change_count": self.change_count,
            "average_change": self.average_change,
        }


@dataclass(frozen=True)
class SignificantChange:
    axis_id: str
    record: ChangeRecord

    def to_dict(self) -> dict[str, Any]:
        return {"axis_id": self.axis_id, **self.record.to_dict()}


@dataclass(frozen=True)
class TrendReport:
    window_days: float
    overall: str
    axes: Mapping[str, AxisTrend]
    significant: tuple[SignificantChange, ...]
    projected_decay: Mapping[str, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_days": self.window_days,
            "overall": self.overall,
            "axes": {k: v.to_dict() for k, v in self.axes.items()},
            "significant": [s.to_dict() for s in self.significant],
            "projected_decay": dict(self.projected_decay),
        }


def analyze_trends(
    ledger: Ledger,
    window_days: float = 30,
    now: datetime | None = None,
    threshold: float = 5,
    significance: float = 10,
    top_n: int = 5,
) -> TrendReport:
    """Classify each axis as rising, declining or stable over the window.

    Axes with no changes inside the window are omitted from ``axes``.
    ``projected_decay`` is ``value * decay_rate * window_days`` for axes
    that define a decay rate.
    """
    now = as_utc(now) if now is not None else utc_now()
    cutoff = now - timedelta(days=window_days)

    axes: dict[str, AxisTrend] = {}
    recent: list[SignificantChange] = []
    projected: dict[str, float] = {}
    for axis_id in ledger.axis_ids():
        records = [r for r in ledger.history(axis_id) if r.timestamp >= cutoff]
        if records:
            total = sum(r.delta for r in records)
            if total > threshold:
                trend = "rising"
            elif total < -threshold:
                trend = "declining"
            else:
                trend = "stable"
            axes[axis_id] = AxisTrend(trend, total, len(records), total / len(records))
            recent.extend(SignificantChange(axis_id, r) for r in records)

        axis = ledger.axis(axis_id)
        if axis.decay_rate is not None:
            projected[axis_id] = ledger.value(axis_id) * axis.decay_rate * window_days

    rising = sum(1 for t in axes.values() if t.trend == "rising")
    declining = sum(1 for t in axes.values() if t.trend == "declining")
    overall = "rising" if rising > declining else "declining" if declining > rising else "stable"

    recent.sort(key=lambda s: abs(s.record.delta), reverse=True)
    significant = tuple(s for s in recent if abs(s.record.delta) > significance)[:top_n]

    return TrendReport(
        window_days=window_days,
        overall=overall,
        axes=axes,
        significant=significant,
        projected_decay=projected,
    )


@dataclass(frozen=True)
class AxisCompatibility:
    score: float
    difference: float
    band_a: str
    band_b: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "difference": self.difference,
            "band_a": self.band_a,
            "band_b": self.band_b,
        }


@dataclass(frozen=True)
class CompatibilityReport:
    overall: float
    axes: Mapping[str, AxisCompatibility]
    conflict: tuple[str, ...]
    harmonious: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "axes": {k: v.to_dict() for k, v in self.axes.items()},
            "conflict": list(self.conflict),
            "harmonious": list(self.harmonious),
        }


def analyze_compatibility(
    a: Ledger,
    b: Ledger,
    conflict_below: float = 0.3,
    harmony_above: float = 0.7,
) -> CompatibilityReport:
    """Per shared axis, ``1 - |va - vb| / range`` using ``a``'s axis range."""
    axes: dict[str, AxisCompatibility] = {}
    for axis_id in a.axis_ids():
        if not b.has_axis(axis_id):
            continue
        axis = a.axis(axis_id)
        difference = abs(a.value(axis_id) - b.value(axis_id))
        score = max(0.0, 1 - difference / axis.span)
        axes[axis_id] = AxisCompatibility(score, difference, _band_name(a, axis_id), _band_name(b, axis_id))

    overall = sum(c.score for c in axes.values()) / len(axes) if axes else 0.0
    return CompatibilityReport(
        overall=overall,
        axes=axes,
        conflict=tuple(k for k, c in axes.items() if c.score < conflict_below),
        harmonious=tuple(k for k, c in axes.items() if c.score > harmony_above),
    )

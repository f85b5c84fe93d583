"""
Inputs to modifier policies: the event, the acting character, and where
it happened.

Every field has an explicit default so that a sparse event stream never
fails at computation time. Only the service entry points (``evolve``)
insist on required fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from ..errors import EventValidationError
from ..ledger.records import as_utc

_MAGNITUDE_KEYS = ("magnitude", "intensity", "severity", "influence")


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError as e:
        raise EventValidationError(f"Invalid event timestamp: {value!r}") from e


def _number(data: Mapping[str, Any], *keys: str, default: float = 0) -> float:
    for key in keys:
        value = data.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return default


@dataclass(frozen=True)
class Event:
    """A domain event to be classified into axis deltas.

    ``magnitude`` is the single base-magnitude field; serialized events may
    carry it as magnitude, intensity, severity or influence.
    ``impact`` is the free-form per-axis map read by generic handlers.
    """

    category: str
    description: str = ""
    subtype: str | None = None
    magnitude: float = 1.0
    timestamp: datetime | None = None
    impact: Mapping[str, float] = field(default_factory=dict)
    setting: str | None = None
    success: bool = False
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.timestamp is not None:
            object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    def attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "category": self.category,
            "description": self.description,
            "magnitude": self.magnitude,
        }
        if self.subtype:
            d["subtype"] = self.subtype
        if self.timestamp is not None:
            d["timestamp"] = self.timestamp.isoformat()
        if self.impact:
            d["impact"] = dict(self.impact)
        if self.setting:
            d["setting"] = self.setting
        if self.success:
            d["success"] = True
        if self.attributes:
            d["attributes"] = dict(self.attributes)
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        if not isinstance(data, Mapping):
            raise EventValidationError("Invalid event: must be an object")
        impact = data.get("impact") or {}
        if not isinstance(impact, Mapping):
            raise EventValidationError("Event impact must be an object")
        return cls(
            category=str(data.get("category") or data.get("type") or ""),
            description=str(data.get("description") or ""),
            subtype=data.get("subtype"),
            magnitude=_number(data, *_MAGNITUDE_KEYS, default=1),
            timestamp=_parse_timestamp(data.get("timestamp")),
            impact=dict(impact),
            setting=data.get("setting"),
            success=bool(data.get("success", False)),
            attributes=dict(data.get("attributes") or {}),
        )


@dataclass(frozen=True)
class Actor:
    """The character an event happens to (or the counterpart in an interaction)."""

    name: str = ""
    role: str = "citizen"
    rank: float = 0
    wealth: float = 0
    charisma: float = 0
    social_skill: float = 0
    culture: str = "unknown"
    age: float = 30
    prestige: float = 0
    traits: Mapping[str, float] = field(default_factory=dict)

    def trait(self, name: str) -> float:
        """Personality trait value, 0 when absent."""
        value = self.traits.get(name, 0)
        return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Actor":
        data = data or {}
        return cls(
            name=str(data.get("name") or ""),
            role=str(data.get("role") or "citizen"),
            rank=_number(data, "rank", "military_rank"),
            wealth=_number(data, "wealth"),
            charisma=_number(data, "charisma"),
            social_skill=_number(data, "social_skill"),
            culture=str(data.get("culture") or "unknown"),
            age=_number(data, "age", default=30),
            prestige=_number(data, "prestige", "prestige_level"),
            traits=dict(data.get("traits") or {}),
        )


@dataclass(frozen=True)
class Settlement:
    """Where an event happened. ``features`` holds flags such as market or temple."""

    id: str = ""
    name: str = ""
    type: str = "town"
    population: float | None = None
    prosperity: float = 0
    stability: float = 0
    dominant_culture: str = "unknown"
    relationship_level: float = 0
    features: frozenset[str] = frozenset()

    def has(self, feature: str) -> bool:
        return feature in self.features

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Settlement | None":
        if data is None:
            return None
        if not isinstance(data, Mapping):
            raise EventValidationError("Invalid settlement: must be an object")
        population = data.get("population")
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            type=str(data.get("type") or "town"),
            population=population if isinstance(population, (int, float)) else None,
            prosperity=_number(data, "prosperity"),
            stability=_number(data, "stability"),
            dominant_culture=str(data.get("dominant_culture") or "unknown"),
            relationship_level=_number(data, "relationship_level"),
            features=frozenset(data.get("features") or ()),
        )


@dataclass(frozen=True)
class Environment:
    """Social surroundings of an event: audience, location, cultural norms."""

    settlement: Settlement | None = None
    witnesses: float = 0
    noble_witnesses: float = 0
    commoner_witnesses: float = 0
    foreign_witnesses: float = 0
    allies_present: float = 0
    rivals_present: float = 0
    neutrals_present: float = 0
    mutual_friends: float = 0
    social_rivals: float = 0
    cultural_relevance: float | None = None
    cultural_values: Mapping[str, float] = field(default_factory=dict)
    counterpart: Actor | None = None

    def cultural_norm(self, axis_id: str) -> float:
        value = self.cultural_values.get(axis_id, 0)
        return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Environment":
        data = data or {}
        relevance = data.get("cultural_relevance")
        counterpart = data.get("counterpart")
        return cls(
            settlement=Settlement.from_dict(data.get("settlement")),
            witnesses=_number(data, "witnesses"),
            noble_witnesses=_number(data, "noble_witnesses"),
            commoner_witnesses=_number(data, "commoner_witnesses"),
            foreign_witnesses=_number(data, "foreign_witnesses"),
            allies_present=_number(data, "allies_present"),
            rivals_present=_number(data, "rivals_present"),
            neutrals_present=_number(data, "neutrals_present"),
            mutual_friends=_number(data, "mutual_friends"),
            social_rivals=_number(data, "social_rivals"),
            cultural_relevance=relevance if isinstance(relevance, (int, float)) else None,
            cultural_values=dict(data.get("cultural_values") or {}),
            counterpart=Actor.from_dict(counterpart) if counterpart is not None else None,
        )


@dataclass(frozen=True)
class Occurrence:
    """An event together with who it happened to and where."""

    event: Event
    actor: Actor | None = None
    environment: Environment | None = None

    @property
    def timestamp(self) -> datetime | None:
        return self.event.timestamp

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Occurrence":
        """Accepts ``{"event": {...}, "actor": {...}, "environment": {...}}``."""
        if not isinstance(data, Mapping) or "event" not in data:
            raise EventValidationError("Occurrence must be an object with an 'event'")
        actor = data.get("actor")
        environment = data.get("environment")
        return cls(
            event=Event.from_dict(data["event"]),
            actor=Actor.from_dict(actor) if actor is not None else None,
            environment=Environment.from_dict(environment) if environment is not None else None,
        )

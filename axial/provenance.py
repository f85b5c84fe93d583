"""
Frozen provenance for change records.

A change record's context is a free-form bag of key/value pairs (which
settlement, how many witnesses, ...). Nested groupings are allowed. Once
a record accepts a context, the caller must not be able to mutate it, so
every context is deep-copied into immutable values at acceptance time:

- mappings become ``Provenance`` (an ordered, read-only mapping)
- lists, tuples and sets become tuples
- scalars (str, int, float, bool, None) are kept as-is

Serialization keeps nested mappings as explicit ordered key/value lists
(``{"__map__": [[key, value], ...]}``) so their keys and order survive
transport through JSON.
"""

from __future__ import annotations

from collections.abc import Mapping, Set
from datetime import date, datetime
from typing import Any, Iterable, Iterator

from .errors import LedgerValidationError

MAP_TAG = "__map__"

_SCALARS = (str, int, float, bool, type(None))


class Provenance(Mapping):
    """Read-only, insertion-ordered mapping of frozen values."""

    __slots__ = ("_items", "_index")

    def __init__(self, items: Iterable[tuple[Any, Any]] = ()):
        pairs = tuple(items)
        index: dict[Any, Any] = {}
        for key, value in pairs:
            if key in index:
                raise LedgerValidationError(f"Duplicate provenance key: {key!r}")
            index[key] = value
        self._items = pairs
        self._index = index

    def __getitem__(self, key: Any) -> Any:
        return self._index[key]

    def __iter__(self) -> Iterator[Any]:
        return (key for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k!r}: {v!r}" for k, v in self._items)
        return f"Provenance({{{inner}}})"

    def pairs(self) -> tuple[tuple[Any, Any], ...]:
        """Ordered (key, value) pairs."""
        return self._items


def _freeze_key(key: Any) -> Any:
    if isinstance(key, _SCALARS):
        return key
    raise LedgerValidationError(f"Provenance keys must be scalars, got {type(key).__name__}")


def freeze(value: Any) -> Any:
    """Deep-copy ``value`` into immutable provenance values."""
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, Provenance):
        return value
    if isinstance(value, Mapping):
        return Provenance((_freeze_key(k), freeze(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, Set):
        return tuple(sorted((freeze(v) for v in value), key=repr))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise LedgerValidationError(f"Unsupported provenance value type: {type(value).__name__}")


def freeze_context(context: Mapping[str, Any] | None) -> Provenance | None:
    """Freeze a top-level context bag. Top-level keys must be strings."""
    if context is None:
        return None
    if not isinstance(context, Mapping):
        raise LedgerValidationError(f"Context must be a mapping, got {type(context).__name__}")
    for key in context:
        if not isinstance(key, str):
            raise LedgerValidationError(f"Context keys must be strings, got {key!r}")
    return freeze(context)


def thaw(value: Any) -> Any:
    """Convert frozen provenance into plain dicts and lists (for display)."""
    if isinstance(value, Provenance):
        return {k: thaw(v) for k, v in value.pairs()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


# --- Serialization ---


def _encode(value: Any) -> Any:
    if isinstance(value, Provenance):
        return {MAP_TAG: [[k, _encode(v)] for k, v in value.pairs()]}
    if isinstance(value, tuple):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {MAP_TAG}:
            entries = value[MAP_TAG]
            if not isinstance(entries, list) or not all(isinstance(e, list) and len(e) == 2 for e in entries):
                raise LedgerValidationError("Malformed ordered map in context")
            return Provenance((_freeze_key(k), _decode(v)) for k, v in entries)
        return Provenance((_freeze_key(k), _decode(v)) for k, v in value.items())
    if isinstance(value, list):
        return tuple(_decode(v) for v in value)
    return value


def context_to_dict(context: Provenance | None) -> dict[str, Any] | None:
    """Serialize a frozen context to JSON-compatible data."""
    if context is None:
        return None
    return {k: _encode(v) for k, v in context.pairs()}


def context_from_dict(data: Any) -> Provenance | None:
    """Reconstruct a frozen context from serialized data."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise LedgerValidationError(f"Serialized context must be an object, got {type(data).__name__}")
    return Provenance((str(k), _decode(v)) for k, v in data.items())

"""
Exception hierarchy for attribute ledgers.

Two tiers:
- Validation errors (malformed axes, bad service inputs, unknown axis ids)
  fail fast and are never absorbed.
- Migration errors wrap the underlying cause so batch tooling can count
  failures without losing the original traceback.

Computation-time gaps (unknown event category, missing optional attribute)
are not errors and have no exception type.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""


class AxisDefinitionError(LedgerError, ValueError):
    """An axis or band definition is malformed."""


class LedgerValidationError(LedgerError, ValueError):
    """Ledger state, a change request, or serialized data is invalid."""


class EventValidationError(LedgerError, ValueError):
    """A required event, actor, or environment field is missing at a service entry point."""


class ConfigError(LedgerError, ValueError):
    """A configuration file or override table is malformed."""


class UnknownAxisError(LedgerError, LookupError):
    """An axis id is not part of the ledger's axis set."""

    def __init__(self, axis_id: str):
        super().__init__(f"Unknown axis: {axis_id!r}")
        self.axis_id = axis_id


class MigrationError(LedgerError):
    """Legacy data could not be wrapped into a ledger.

    The original exception is chained as ``__cause__`` and also kept on
    ``cause`` for reporting.
    """

    def __init__(self, message: str, *, kind: str | None = None, index: int | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.kind = kind
        self.index = index
        self.cause = cause

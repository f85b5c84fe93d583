"""
Immutable attribute ledgers.

Components:
- records: ChangeRecord, the per-axis audit entry
- ledger: Ledger snapshot, value-returning transitions, serialization
- migration: legacy manager data -> Ledger boundary

Design principles:
- Append-only: history entries are never rewritten
- Value-returning: every change yields a new ledger
- Replayable: history reproduces the current values
"""

from .records import ChangeRecord, Delta
from .ledger import Ledger
from .migration import (
    CurrentFormat,
    LegacyFormat,
    MigrationReport,
    detect_format,
    import_legacy,
    load_ledger,
    migrate_batch,
)

__all__ = [
    "ChangeRecord",
    "Delta",
    "Ledger",
    "CurrentFormat",
    "LegacyFormat",
    "MigrationReport",
    "detect_format",
    "import_legacy",
    "load_ledger",
    "migrate_batch",
]

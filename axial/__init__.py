"""axial - immutable multi-axis attribute ledgers for simulated characters."""

__version__ = "0.1.0"

from .axes import AxisDefinition, Band
from .errors import (
    AxisDefinitionError,
    ConfigError,
    EventValidationError,
    LedgerError,
    LedgerValidationError,
    MigrationError,
    UnknownAxisError,
)
from .ledger import ChangeRecord, Delta, Ledger
from .presets import new_ledger, preset_axes

__all__ = [
    "__version__",
    "AxisDefinition",
    "Band",
    "AxisDefinitionError",
    "ConfigError",
    "EventValidationError",
    "LedgerError",
    "LedgerValidationError",
    "MigrationError",
    "UnknownAxisError",
    "ChangeRecord",
    "Delta",
    "Ledger",
    "new_ledger",
    "preset_axes",
]

"""Domain models for the patrimony manager.

Plain frozen dataclasses shared by the import pipeline, the reconciliation
engine and the storage backends.
"""

from .audit import AuditAction, AuditEntity, AuditEntry
from .error_record import ErrorRecord
from .item import ItemStatus, PatrimonyItem
from .registry import Location, Supplier
from .record import NormalizedRecord, ParseResult, SkippedRow
from .report import ItemDifference, ReconciliationReport

__all__ = [
    # Import pipeline
    "NormalizedRecord",
    "ParseResult",
    "SkippedRow",
    "ErrorRecord",
    # Stored entities
    "PatrimonyItem",
    "ItemStatus",
    "AuditEntry",
    "AuditAction",
    "AuditEntity",
    # Registries
    "Supplier",
    "Location",
    # Comparison
    "ItemDifference",
    "ReconciliationReport",
]

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from patrimony.config.loader import ItemDefaults
from patrimony.importing.rows import parse_rows_with_diagnostics
from patrimony.logging.error_log import ErrorLogBuffer
from patrimony.models.audit import AuditAction, AuditEntity, AuditEntry
from patrimony.models.error_record import ErrorRecord
from patrimony.models.item import PatrimonyItem
from patrimony.sources import TEXT_SHEET_NAME, TEXT_SUFFIXES, read_grid
from patrimony.storage.base import PatrimonyStore, check_new_asset_tags

from .progress import ProgressTracker
from .reconciliation import records_to_items

"""Import a spreadsheet / CSV file into the configured store.

file -> source adapter -> cell grid -> row parser -> items -> store

Rows the parser drops are written to the diagnostics log (one ErrorRecord
each); the caller only sees counts. Every asset tag of the file is checked
against the store before the first insert so a rejected import leaves the
store untouched.
"""

__all__ = [
    "ImportResult",
    "ImportValidationError",
    "import_file",
]

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class ImportValidationError(Exception):
    """Raised when an import request is invalid before any file is read."""


@dataclass(frozen=True)
class ImportResult:
    file_name: str
    found: int  # records that passed validation
    imported: int  # records stored
    skipped: int  # data rows dropped (header excluded)
    header_detected: bool
    elapsed_seconds: float
    items: list[PatrimonyItem] = field(default_factory=list)


def import_file(
    path: Path,
    store: PatrimonyStore,
    *,
    location: str,
    defaults: ItemDefaults,
    has_header: bool | None = None,
    delimiter: str | None = None,
    error_log: ErrorLogBuffer | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    user_name: str = "system",
    require_registered_location: bool = False,
) -> ImportResult:
    """Parse `path` and store its rows as new items at `location`.

    Raises:
        ImportValidationError: empty location, unregistered location (when
            `require_registered_location`) or non-positive batch size
        SourceError: the file is empty, unreadable or unsupported
        DuplicateAssetTagError: an asset tag exists already or repeats in the file
        StorageError: the backend failed
    """
    if not location or not location.strip():
        raise ImportValidationError("location is required for import")
    if batch_size < 1:
        raise ImportValidationError(f"batch size must be positive: {batch_size}")
    location = location.strip()
    if require_registered_location:
        registered = store.get_location_by_name(location)
        if registered is None:
            raise ImportValidationError(f"location not registered: {location}")
        location = registered.name

    start = datetime.now(UTC)
    grid = read_grid(path, delimiter=delimiter)
    parsed = parse_rows_with_diagnostics(grid, has_header=has_header)

    sheet = TEXT_SHEET_NAME if path.suffix.lower() in TEXT_SUFFIXES else "<FIRST_SHEET>"
    dropped = parsed.skipped_data_rows
    if error_log is not None:
        for s in dropped:
            error_log.append(
                ErrorRecord.create(
                    file=path.name,
                    sheet=sheet,
                    row=s.row_number,
                    error_type=s.reason,
                    message=f"row dropped: {list(s.cells)}",
                )
            )
    logger.info(f"{path.name}: {parsed.found} items found, {len(dropped)} rows skipped")

    items = records_to_items(
        parsed.records,
        defaults,
        location=location,
        description=f"Imported from file: {path.name}",
    )
    check_new_asset_tags((i.asset_tag for i in store.list_all()), items)

    stored: list[PatrimonyItem] = []
    with ProgressTracker(len(items), description=f"Importing {path.name}") as progress:
        for offset in range(0, len(items), batch_size):
            batch = items[offset:offset + batch_size]
            stored.extend(store.insert_many(batch))
            progress.advance(len(batch))
            progress.set_postfix(stored=len(stored))

    if stored:
        store.append_audit(
            AuditEntry.create(
                AuditAction.IMPORT,
                AuditEntity.PATRIMONY,
                f"Imported {len(stored)} items from {path.name} into {location}",
                user_name=user_name,
            )
        )

    elapsed = (datetime.now(UTC) - start).total_seconds()
    return ImportResult(
        file_name=path.name,
        found=parsed.found,
        imported=len(stored),
        skipped=len(dropped),
        header_detected=parsed.header_detected,
        elapsed_seconds=elapsed,
        items=stored,
    )

from __future__ import annotations

from pathlib import Path

from patrimony.models.record import RawCellGrid

from .delimited import read_delimited_file, read_delimited_text
from .errors import EmptySourceError, SourceDecodeError, SourceError, UnsupportedSourceError
from .workbook import read_workbook

"""Source adapters: turn an import file into a grid of cell text."""

__all__ = [
    "read_grid",
    "read_delimited_file",
    "read_delimited_text",
    "read_workbook",
    "SourceError",
    "EmptySourceError",
    "SourceDecodeError",
    "UnsupportedSourceError",
    "TEXT_SUFFIXES",
    "WORKBOOK_SUFFIXES",
    "TEXT_SHEET_NAME",
]

TEXT_SUFFIXES = {".csv", ".txt"}
WORKBOOK_SUFFIXES = {".xlsx", ".xlsm", ".xls"}

# sheet label used in diagnostics for delimited files
TEXT_SHEET_NAME = "<TEXT>"


def read_grid(path: Path, *, delimiter: str | None = None, sheet: str | None = None) -> RawCellGrid:
    """Read any supported import file into a cell grid (dispatch on suffix)."""
    suffix = path.suffix.lower()
    if not path.exists():
        raise SourceDecodeError(f"file not found: {path}")
    if suffix in TEXT_SUFFIXES:
        return read_delimited_file(path, delimiter=delimiter)
    if suffix in WORKBOOK_SUFFIXES:
        return read_workbook(path, sheet=sheet)
    raise UnsupportedSourceError(
        f"{path.name}: unsupported file type '{suffix}' (expected .csv, .xlsx or .xls)"
    )

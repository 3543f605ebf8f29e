from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from patrimony.models.record import RawCellGrid

from .errors import EmptySourceError, SourceDecodeError

"""Spreadsheet workbook adapter.

Reads one sheet (the first by default) without a header and renders every
cell as text so the workbook and CSV paths feed the same row parser:

- empty cells -> ""
- integral floats -> "1001" (not "1001.0")
- date cells -> ISO "YYYY-MM-DD"
- fully empty rows are dropped
"""

__all__ = [
    "cell_to_text",
    "read_workbook",
]


def cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, pd.Timestamp)):
        if pd.isna(value):
            return ""
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        return str(value)
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def read_workbook(path: Path, *, sheet: str | None = None) -> RawCellGrid:
    """Read one workbook sheet into a cell grid.

    Parameters
    ----------
    path: .xlsx / .xlsm / .xls file
    sheet: sheet name (None = first sheet)

    Raises:
        SourceDecodeError: the workbook cannot be opened or the sheet is missing
        EmptySourceError: the sheet has no non-empty row
    """
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:  # corrupt zip, missing engine, unreadable file
        raise SourceDecodeError(f"{path.name}: cannot open workbook: {e}") from e

    with xls:
        names = [str(n) for n in xls.sheet_names]
        if not names:
            raise EmptySourceError(f"{path.name}: workbook has no sheets")
        target = names[0] if sheet is None else sheet
        if target not in names:
            raise SourceDecodeError(f"{path.name}: sheet not found: {target}")
        try:
            df = xls.parse(target, header=None, dtype=object)
        except Exception as e:
            raise SourceDecodeError(f"{path.name}: cannot read sheet '{target}': {e}") from e

    grid: RawCellGrid = []
    for _, raw in df.iterrows():
        if raw.isna().all():
            continue
        grid.append([cell_to_text(v) for v in raw.tolist()])

    if not grid:
        raise EmptySourceError(f"{path.name}: empty sheet '{target}'")
    return grid

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import date

from patrimony.models.record import NormalizedRecord, ParseResult, SkippedRow

from .dates import is_numeric_text, normalize_date

"""Tabular row parsing.

Input is a grid of cell text where the first three columns are
asset tag | acquisition date | item name, with an optional header row.
Invalid rows are dropped, never raised: callers that need to know why use
parse_rows_with_diagnostics().

Header detection: unless the caller says otherwise, row 0 is a header when it
has at least 3 columns and its first cell is not numeric. A data row whose
first cell is not numeric cannot be told apart from a header and is dropped
either way (as HEADER when it is row 0, as INVALID_ASSET_TAG elsewhere).
"""

__all__ = [
    "parse_rows",
    "parse_rows_with_diagnostics",
    "clean_cell",
    "detect_header",
    "parse_asset_tag",
]

logger = logging.getLogger(__name__)

MIN_COLUMNS = 3

# reason codes for SkippedRow
HEADER = "HEADER"
TOO_FEW_COLUMNS = "TOO_FEW_COLUMNS"
MISSING_ASSET_TAG = "MISSING_ASSET_TAG"
INVALID_ASSET_TAG = "INVALID_ASSET_TAG"
MISSING_DATE = "MISSING_DATE"
MISSING_NAME = "MISSING_NAME"

_QUOTES = ("'", '"')
_ASSET_TAG_RE = re.compile(r"^[+-]?\d+(\.0+)?$")


def clean_cell(cell: object) -> str:
    """Strip whitespace and one pair of enclosing quotes."""
    if cell is None:
        return ""
    text = str(cell).strip()
    if len(text) >= 1 and text[0] in _QUOTES:
        text = text[1:]
    if len(text) >= 1 and text[-1] in _QUOTES:
        text = text[:-1]
    return text.strip()


def detect_header(first_row: Sequence[object]) -> bool:
    return len(first_row) >= MIN_COLUMNS and not is_numeric_text(clean_cell(first_row[0]))


def parse_asset_tag(text: str) -> int | None:
    """Parse an asset tag; None unless it is a positive integer.

    Integral floats ("1001.0", as rendered by some spreadsheet exports) are
    accepted. Only ASCII digits count: "1_001" and non-ASCII digits are invalid.
    """
    text = text.strip()
    if not text.isascii() or _ASSET_TAG_RE.match(text) is None:
        return None
    tag = int(text.split(".")[0])
    return tag if tag > 0 else None


def _parse_row(
    row: Sequence[object], row_number: int, today: date | None
) -> NormalizedRecord | SkippedRow:
    cells = tuple(clean_cell(c) for c in row)
    if len(cells) < MIN_COLUMNS:
        return SkippedRow(row_number, TOO_FEW_COLUMNS, cells)
    tag_text, date_text, name = cells[0], cells[1], cells[2]
    if not tag_text:
        return SkippedRow(row_number, MISSING_ASSET_TAG, cells)
    tag = parse_asset_tag(tag_text)
    if tag is None:
        return SkippedRow(row_number, INVALID_ASSET_TAG, cells)
    if not date_text:
        return SkippedRow(row_number, MISSING_DATE, cells)
    if not name:
        return SkippedRow(row_number, MISSING_NAME, cells)
    return NormalizedRecord(
        asset_tag=tag,
        acquisition_date=normalize_date(date_text, today=today),
        item_name=name,
    )


def parse_rows_with_diagnostics(
    grid: Sequence[Sequence[object]],
    *,
    has_header: bool | None = None,
    today: date | None = None,
) -> ParseResult:
    """Parse a cell grid into records, describing every dropped row.

    Parameters
    ----------
    grid: rows x columns of cell text
    has_header: True/False to state whether row 0 is a header;
        None to use the first-cell heuristic
    today: fallback date for unparseable dates (default: date.today())
    """
    if not grid:
        return ParseResult()

    header = detect_header(grid[0]) if has_header is None else has_header
    records: list[NormalizedRecord] = []
    skipped: list[SkippedRow] = []
    start = 0
    if header:
        skipped.append(SkippedRow(1, HEADER, tuple(clean_cell(c) for c in grid[0])))
        start = 1

    for index in range(start, len(grid)):
        outcome = _parse_row(grid[index], index + 1, today)
        if isinstance(outcome, SkippedRow):
            logger.debug("skipped %s", outcome.describe())
            skipped.append(outcome)
        else:
            records.append(outcome)

    logger.debug(
        "parsed rows=%d records=%d skipped=%d header=%s",
        len(grid), len(records), len(skipped), header,
    )
    return ParseResult(records=records, skipped=skipped, header_detected=header)


def parse_rows(
    grid: Sequence[Sequence[object]],
    *,
    has_header: bool | None = None,
    today: date | None = None,
) -> list[NormalizedRecord]:
    """Parse a cell grid into records, silently dropping invalid rows."""
    return parse_rows_with_diagnostics(grid, has_header=has_header, today=today).records

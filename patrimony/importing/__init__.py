"""Import normalization: date normalization and tabular row parsing."""

from .dates import normalize_date
from .rows import parse_rows, parse_rows_with_diagnostics

__all__ = [
    "normalize_date",
    "parse_rows",
    "parse_rows_with_diagnostics",
]

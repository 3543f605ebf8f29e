from __future__ import annotations

from pathlib import Path

from patrimony.models.record import RawCellGrid

from .errors import EmptySourceError, SourceDecodeError

"""Delimited text (CSV) adapter.

The delimiter is detected per line: `;` wins over tab, tab wins over `,`.
A line whose text contains a `;` (an address, a description) therefore splits
on `;` even when the rest of the file uses commas. Pass `delimiter=` to use one
delimiter for the whole file instead.
"""

__all__ = [
    "detect_delimiter",
    "split_line",
    "read_delimited_text",
    "read_delimited_file",
]

_DELIMITER_PRIORITY = (";", "\t")
DEFAULT_DELIMITER = ","


def detect_delimiter(line: str) -> str:
    for candidate in _DELIMITER_PRIORITY:
        if candidate in line:
            return candidate
    return DEFAULT_DELIMITER


def split_line(line: str, delimiter: str | None = None) -> list[str]:
    """Split one line into raw fields; quote and whitespace cleanup is left to the row parser."""
    return line.split(delimiter or detect_delimiter(line))


def read_delimited_text(text: str, *, delimiter: str | None = None) -> RawCellGrid:
    """Split text into a cell grid, dropping blank lines.

    Raises:
        EmptySourceError: no non-blank line
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise EmptySourceError("empty file")
    return [split_line(line, delimiter) for line in lines]


def read_delimited_file(
    path: Path, *, delimiter: str | None = None, encoding: str = "utf-8-sig"
) -> RawCellGrid:
    try:
        text = path.read_text(encoding=encoding)
    except UnicodeDecodeError as e:
        raise SourceDecodeError(f"{path.name}: not valid {encoding} text: {e}") from e
    except OSError as e:
        raise SourceDecodeError(f"{path.name}: cannot read file: {e}") from e
    try:
        return read_delimited_text(text, delimiter=delimiter)
    except EmptySourceError as e:
        raise EmptySourceError(f"{path.name}: {e}") from e

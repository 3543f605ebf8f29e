from __future__ import annotations

from dataclasses import dataclass, field

"""Records produced by the tabular row parser.

A grid row either fully normalizes into a NormalizedRecord or is dropped and
described by a SkippedRow. There is no partially valid record.
"""

__all__ = [
    "RawCellGrid",
    "NormalizedRecord",
    "SkippedRow",
    "ParseResult",
]

# rows x columns of cell text, as produced by a source adapter
RawCellGrid = list[list[str]]


@dataclass(frozen=True)
class NormalizedRecord:
    """One imported row after validation.

    Attributes:
        asset_tag: Asset tag number ("chapa"), always > 0
        acquisition_date: Canonical YYYY-MM-DD date
        item_name: Trimmed, non-empty item name
    """
    asset_tag: int
    acquisition_date: str
    item_name: str


@dataclass(frozen=True)
class SkippedRow:
    """Diagnostics entry for a grid row that did not produce a record."""
    row_number: int  # 1-based position in the grid
    reason: str  # UPPER_SNAKE reason code
    cells: tuple[str, ...] = ()

    def describe(self) -> str:
        return f"row {self.row_number}: {self.reason} {list(self.cells)}"


@dataclass(frozen=True)
class ParseResult:
    records: list[NormalizedRecord] = field(default_factory=list)
    skipped: list[SkippedRow] = field(default_factory=list)
    header_detected: bool = False

    @property
    def found(self) -> int:
        return len(self.records)

    @property
    def skipped_data_rows(self) -> list[SkippedRow]:
        """Skipped rows excluding the header row."""
        return [s for s in self.skipped if s.reason != "HEADER"]

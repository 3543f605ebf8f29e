from __future__ import annotations

from dataclasses import dataclass, field

from .item import PatrimonyItem

"""Reconciliation report model.

The four buckets partition the union of both compared collections by asset
tag: a tag present on one side only lands in `only_in_a` / `only_in_b`, a tag
present on both sides lands in `differing` or `identical`.
"""

__all__ = [
    "ItemDifference",
    "ReconciliationReport",
]


@dataclass(frozen=True)
class ItemDifference:
    item_a: PatrimonyItem
    item_b: PatrimonyItem
    field_differences: list[str]  # e.g. 'Name: "Desk" vs "Table"'


@dataclass(frozen=True)
class ReconciliationReport:
    only_in_a: list[PatrimonyItem] = field(default_factory=list)
    only_in_b: list[PatrimonyItem] = field(default_factory=list)
    differing: list[ItemDifference] = field(default_factory=list)
    identical: list[PatrimonyItem] = field(default_factory=list)

    @property
    def total_differences(self) -> int:
        return len(self.only_in_a) + len(self.only_in_b) + len(self.differing)

    @property
    def is_clean(self) -> bool:
        return self.total_differences == 0

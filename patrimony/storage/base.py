from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from patrimony.models.audit import AuditEntry
from patrimony.models.item import FIRST_ASSET_TAG, PatrimonyItem
from patrimony.models.registry import Location, Supplier

"""Storage service interface shared by the local and PostgreSQL backends."""

__all__ = [
    "StorageError",
    "DuplicateAssetTagError",
    "ItemNotFoundError",
    "DuplicateLocationError",
    "PatrimonyStore",
    "check_new_asset_tags",
    "next_asset_tag_after",
    "location_key",
]


class StorageError(Exception):
    pass


class DuplicateAssetTagError(StorageError):
    """Raised when an asset tag is used twice (in storage or within a batch)."""

    def __init__(self, tags: Iterable[int]) -> None:
        self.tags = sorted(set(tags))
        super().__init__(
            "asset tags already in use: " + ", ".join(str(t) for t in self.tags)
        )


class ItemNotFoundError(StorageError):
    pass


class DuplicateLocationError(StorageError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"location already registered: {name}")


class PatrimonyStore(Protocol):
    def insert(self, item: PatrimonyItem) -> PatrimonyItem: ...

    def insert_many(self, items: Sequence[PatrimonyItem]) -> list[PatrimonyItem]: ...

    def update(self, item_id: str, changes: dict[str, Any]) -> PatrimonyItem: ...

    def delete(self, item_id: str) -> None: ...

    def list_all(self) -> list[PatrimonyItem]: ...

    def get_by_asset_tag(self, asset_tag: int) -> PatrimonyItem | None: ...

    def next_asset_tag(self) -> int: ...

    def append_audit(self, entry: AuditEntry) -> None: ...

    def list_audit(self) -> list[AuditEntry]: ...

    def insert_supplier(self, supplier: Supplier) -> Supplier: ...

    def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> Supplier: ...

    def delete_supplier(self, supplier_id: str) -> None: ...

    def get_supplier(self, supplier_id: str) -> Supplier | None: ...

    def list_suppliers(self) -> list[Supplier]: ...

    def insert_location(self, location: Location) -> Location: ...

    def delete_location(self, location_id: str) -> None: ...

    def get_location_by_name(self, name: str) -> Location | None: ...

    def list_locations(self) -> list[Location]: ...


def check_new_asset_tags(existing: Iterable[int], new_items: Sequence[PatrimonyItem]) -> None:
    """Reject tags already stored and tags repeated inside `new_items`.

    Raises:
        DuplicateAssetTagError
    """
    taken = set(existing)
    seen: set[int] = set()
    dupes: list[int] = []
    for item in new_items:
        if item.asset_tag in taken or item.asset_tag in seen:
            dupes.append(item.asset_tag)
        seen.add(item.asset_tag)
    if dupes:
        raise DuplicateAssetTagError(dupes)


def next_asset_tag_after(tags: Iterable[int]) -> int:
    return max(tags, default=FIRST_ASSET_TAG - 1) + 1


def location_key(name: str) -> str:
    """Comparison key for location names (trimmed, case-insensitive)."""
    return " ".join(name.split()).casefold()

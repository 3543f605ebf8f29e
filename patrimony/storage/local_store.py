from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from patrimony.models.audit import AuditEntry
from patrimony.models.item import PatrimonyItem
from patrimony.models.registry import Location, Supplier

from .base import (
    DuplicateLocationError,
    ItemNotFoundError,
    StorageError,
    check_new_asset_tags,
    location_key,
    next_asset_tag_after,
)

"""Local document store.

Each table is one JSON array in `<directory>/patrimony_system_<table>.json`.
Listing a table that cannot be parsed logs the problem and yields no rows.
Every read that is followed by a write is strict instead: a damaged table
raises StorageError and is left untouched on disk.
"""

__all__ = [
    "LocalStore",
    "TABLE_PREFIX",
]

logger = logging.getLogger(__name__)

TABLE_PREFIX = "patrimony_system_"
ITEMS_TABLE = "items"
AUDIT_TABLE = "logs"
SUPPLIERS_TABLE = "suppliers"
LOCATIONS_TABLE = "locations"


def _now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class LocalStore:
    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    # table primitives
    def _table_path(self, table: str) -> Path:
        return self.directory / f"{TABLE_PREFIX}{table}.json"

    def read_table(self, table: str, *, strict: bool = False) -> list[dict[str, Any]]:
        """Rows of `table`; a missing table is empty.

        Raises:
            StorageError: strict mode and the table exists but is unreadable
        """
        path = self._table_path(table)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            if strict:
                raise StorageError(f"cannot read table {table} from {path}: {e}") from e
            logger.error("cannot read table %s from %s: %s", table, path, e)
            return []
        if not isinstance(data, list):
            if strict:
                raise StorageError(f"table {table} in {path} is not a list")
            logger.error("table %s in %s is not a list; ignoring", table, path)
            return []
        return data

    def write_table(self, table: str, rows: list[dict[str, Any]]) -> None:
        path = self._table_path(table)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise StorageError(f"cannot write table {table} to {path}: {e}") from e

    def clear(self, table: str) -> None:
        self._table_path(table).unlink(missing_ok=True)

    def clear_all(self) -> None:
        for p in self.directory.glob(f"{TABLE_PREFIX}*.json"):
            p.unlink()

    # items
    def _load_items(self, *, strict: bool = True) -> list[PatrimonyItem]:
        return [PatrimonyItem.from_dict(row) for row in self.read_table(ITEMS_TABLE, strict=strict)]

    def _save_items(self, items: list[PatrimonyItem]) -> None:
        self.write_table(ITEMS_TABLE, [i.to_dict() for i in items])

    def insert(self, item: PatrimonyItem) -> PatrimonyItem:
        return self.insert_many([item])[0]

    def insert_many(self, items: Sequence[PatrimonyItem]) -> list[PatrimonyItem]:
        current = self._load_items()
        check_new_asset_tags((i.asset_tag for i in current), items)
        stored = [i if i.id else replace(i, id=uuid.uuid4().hex) for i in items]
        self._save_items(current + stored)
        logger.debug("local insert_many count=%d", len(stored))
        return stored

    def update(self, item_id: str, changes: dict[str, Any]) -> PatrimonyItem:
        items = self._load_items()
        for idx, item in enumerate(items):
            if item.id == item_id:
                if "asset_tag" in changes and changes["asset_tag"] != item.asset_tag:
                    others = (i.asset_tag for i in items if i.id != item_id)
                    check_new_asset_tags(others, [item.with_changes(asset_tag=changes["asset_tag"])])
                items[idx] = item.with_changes(**changes)
                self._save_items(items)
                return items[idx]
        raise ItemNotFoundError(f"item not found: {item_id}")

    def delete(self, item_id: str) -> None:
        items = self._load_items()
        kept = [i for i in items if i.id != item_id]
        if len(kept) == len(items):
            raise ItemNotFoundError(f"item not found: {item_id}")
        self._save_items(kept)

    def list_all(self) -> list[PatrimonyItem]:
        return sorted(self._load_items(strict=False), key=lambda i: i.asset_tag)

    def get_by_asset_tag(self, asset_tag: int) -> PatrimonyItem | None:
        for item in self._load_items(strict=False):
            if item.asset_tag == asset_tag:
                return item
        return None

    def next_asset_tag(self) -> int:
        return next_asset_tag_after(i.asset_tag for i in self._load_items())

    # audit log
    def append_audit(self, entry: AuditEntry) -> None:
        rows = self.read_table(AUDIT_TABLE, strict=True)
        rows.append(entry.to_dict())
        self.write_table(AUDIT_TABLE, rows)

    def list_audit(self) -> list[AuditEntry]:
        """Audit entries, newest first."""
        entries = [AuditEntry.from_dict(r) for r in self.read_table(AUDIT_TABLE)]
        return list(reversed(entries))

    # suppliers
    def _load_suppliers(self, *, strict: bool = True) -> list[Supplier]:
        return [Supplier.from_dict(r) for r in self.read_table(SUPPLIERS_TABLE, strict=strict)]

    def _save_suppliers(self, suppliers: list[Supplier]) -> None:
        self.write_table(SUPPLIERS_TABLE, [s.to_dict() for s in suppliers])

    def insert_supplier(self, supplier: Supplier) -> Supplier:
        suppliers = self._load_suppliers()
        stored = replace(supplier, id=supplier.id or uuid.uuid4().hex, created_at=_now())
        self._save_suppliers(suppliers + [stored])
        return stored

    def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> Supplier:
        unknown = set(changes) - {"name", "address", "phone", "id", "created_at"}
        if unknown:
            raise StorageError(f"unknown supplier field: {', '.join(sorted(unknown))}")
        suppliers = self._load_suppliers()
        for idx, supplier in enumerate(suppliers):
            if supplier.id == supplier_id:
                suppliers[idx] = supplier.with_changes(**changes)
                self._save_suppliers(suppliers)
                return suppliers[idx]
        raise ItemNotFoundError(f"supplier not found: {supplier_id}")

    def delete_supplier(self, supplier_id: str) -> None:
        suppliers = self._load_suppliers()
        kept = [s for s in suppliers if s.id != supplier_id]
        if len(kept) == len(suppliers):
            raise ItemNotFoundError(f"supplier not found: {supplier_id}")
        self._save_suppliers(kept)

    def get_supplier(self, supplier_id: str) -> Supplier | None:
        for supplier in self._load_suppliers(strict=False):
            if supplier.id == supplier_id:
                return supplier
        return None

    def list_suppliers(self) -> list[Supplier]:
        return sorted(self._load_suppliers(strict=False), key=lambda s: s.name.casefold())

    # locations
    def _load_locations(self, *, strict: bool = True) -> list[Location]:
        return [Location.from_dict(r) for r in self.read_table(LOCATIONS_TABLE, strict=strict)]

    def insert_location(self, location: Location) -> Location:
        locations = self._load_locations()
        key = location_key(location.name)
        if any(location_key(loc.name) == key for loc in locations):
            raise DuplicateLocationError(location.name)
        stored = replace(location, id=location.id or uuid.uuid4().hex, created_at=_now())
        self.write_table(LOCATIONS_TABLE, [loc.to_dict() for loc in locations + [stored]])
        return stored

    def delete_location(self, location_id: str) -> None:
        locations = self._load_locations()
        kept = [loc for loc in locations if loc.id != location_id]
        if len(kept) == len(locations):
            raise ItemNotFoundError(f"location not found: {location_id}")
        self.write_table(LOCATIONS_TABLE, [loc.to_dict() for loc in kept])

    def get_location_by_name(self, name: str) -> Location | None:
        key = location_key(name)
        for location in self._load_locations(strict=False):
            if location_key(location.name) == key:
                return location
        return None

    def list_locations(self) -> list[Location]:
        return sorted(self._load_locations(strict=False), key=lambda loc: loc.name.casefold())

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from patrimony.models.audit import AuditAction, AuditEntity, AuditEntry
from patrimony.models.item import ItemStatus, PatrimonyItem
from patrimony.storage.base import DuplicateAssetTagError, ItemNotFoundError, PatrimonyStore

"""Item operations that also write the audit log."""

__all__ = [
    "InventoryStats",
    "add_item",
    "add_item_with_tag",
    "update_item",
    "delete_item",
    "compute_stats",
]

logger = logging.getLogger(__name__)


def _check_supplier(store: PatrimonyStore, supplier_id: str | None) -> None:
    if supplier_id and store.get_supplier(supplier_id) is None:
        raise ItemNotFoundError(f"supplier not found: {supplier_id}")


def _audit(
    store: PatrimonyStore, action: AuditAction, item: PatrimonyItem, details: str, user_name: str
) -> None:
    store.append_audit(
        AuditEntry.create(
            action,
            AuditEntity.PATRIMONY,
            details,
            user_name=user_name,
            entity_id=item.id,
            entity_name=item.name,
        )
    )


def add_item(store: PatrimonyStore, item: PatrimonyItem, *, user_name: str = "system") -> PatrimonyItem:
    """Store `item` under the next free asset tag (its own tag is ignored)."""
    _check_supplier(store, item.supplier_id)
    stored = store.insert(replace(item, id="", asset_tag=store.next_asset_tag()))
    _audit(store, AuditAction.CREATE, stored, f"Created item: {stored.name}", user_name)
    logger.info(f'item "{stored.name}" added with asset tag {stored.asset_tag}')
    return stored


def add_item_with_tag(
    store: PatrimonyStore, item: PatrimonyItem, *, user_name: str = "system"
) -> PatrimonyItem:
    """Store `item` keeping its asset tag.

    Raises:
        DuplicateAssetTagError: the tag belongs to another item
    """
    _check_supplier(store, item.supplier_id)
    existing = store.get_by_asset_tag(item.asset_tag)
    if existing is not None:
        raise DuplicateAssetTagError([item.asset_tag])
    stored = store.insert(replace(item, id=""))
    _audit(store, AuditAction.CREATE, stored, f"Created item: {stored.name}", user_name)
    return stored


def update_item(
    store: PatrimonyStore, item_id: str, changes: dict[str, Any], *, user_name: str = "system"
) -> PatrimonyItem:
    _check_supplier(store, changes.get("supplier_id"))
    updated = store.update(item_id, changes)
    fields = ", ".join(sorted(k for k in changes if k != "id"))
    _audit(store, AuditAction.UPDATE, updated, f"Updated item: {updated.name} ({fields})", user_name)
    return updated


def delete_item(store: PatrimonyStore, item: PatrimonyItem, *, user_name: str = "system") -> None:
    store.delete(item.id)
    _audit(store, AuditAction.DELETE, item, f"Deleted item: {item.name}", user_name)


@dataclass(frozen=True)
class InventoryStats:
    total: int
    active: int
    maintenance: int
    retired: int
    total_value: float


def compute_stats(items: Sequence[PatrimonyItem]) -> InventoryStats:
    def count(status: ItemStatus) -> int:
        return sum(1 for i in items if i.status is status)

    return InventoryStats(
        total=len(items),
        active=count(ItemStatus.ACTIVE),
        maintenance=count(ItemStatus.MAINTENANCE),
        retired=count(ItemStatus.RETIRED),
        total_value=sum(i.value for i in items),
    )

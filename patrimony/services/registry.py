from __future__ import annotations

import logging
from typing import Any

from patrimony.models.audit import AuditAction, AuditEntity, AuditEntry
from patrimony.models.registry import Location, Supplier
from patrimony.storage.base import PatrimonyStore

"""Supplier and location registry operations (each one audited)."""

__all__ = [
    "RegistryValidationError",
    "add_supplier",
    "update_supplier",
    "delete_supplier",
    "add_location",
    "delete_location",
]

logger = logging.getLogger(__name__)


class RegistryValidationError(Exception):
    pass


def _audit(
    store: PatrimonyStore,
    action: AuditAction,
    entity: AuditEntity,
    entity_id: str,
    name: str,
    details: str,
    user_name: str,
) -> None:
    store.append_audit(
        AuditEntry.create(
            action, entity, details, user_name=user_name, entity_id=entity_id, entity_name=name
        )
    )


def _required(value: str, what: str) -> str:
    text = value.strip()
    if not text:
        raise RegistryValidationError(f"{what} is required")
    return text


def add_supplier(
    store: PatrimonyStore,
    name: str,
    *,
    address: str = "",
    phone: str = "",
    user_name: str = "system",
) -> Supplier:
    supplier = store.insert_supplier(
        Supplier(id="", name=_required(name, "supplier name"), address=address.strip(), phone=phone.strip())
    )
    _audit(store, AuditAction.CREATE, AuditEntity.SUPPLIER, supplier.id, supplier.name,
           f"Created supplier: {supplier.name}", user_name)
    logger.info(f'supplier "{supplier.name}" added')
    return supplier


def update_supplier(
    store: PatrimonyStore, supplier_id: str, changes: dict[str, Any], *, user_name: str = "system"
) -> Supplier:
    if "name" in changes:
        changes = {**changes, "name": _required(changes["name"], "supplier name")}
    supplier = store.update_supplier(supplier_id, changes)
    fields = ", ".join(sorted(k for k in changes if k != "id"))
    _audit(store, AuditAction.UPDATE, AuditEntity.SUPPLIER, supplier.id, supplier.name,
           f"Updated supplier: {supplier.name} ({fields})", user_name)
    return supplier


def delete_supplier(store: PatrimonyStore, supplier: Supplier, *, user_name: str = "system") -> None:
    """Delete a supplier. Items referencing it keep their supplier_id."""
    store.delete_supplier(supplier.id)
    _audit(store, AuditAction.DELETE, AuditEntity.SUPPLIER, supplier.id, supplier.name,
           f"Deleted supplier: {supplier.name}", user_name)


def add_location(
    store: PatrimonyStore, name: str, *, responsible: str = "", user_name: str = "system"
) -> Location:
    """Register a location.

    Raises:
        RegistryValidationError: empty name
        DuplicateLocationError: the name is registered already (case-insensitive)
    """
    location = store.insert_location(
        Location(id="", name=_required(name, "location name"), responsible=responsible.strip())
    )
    _audit(store, AuditAction.CREATE, AuditEntity.LOCATION, location.id, location.name,
           f"Created location: {location.name}", user_name)
    return location


def delete_location(store: PatrimonyStore, location: Location, *, user_name: str = "system") -> None:
    store.delete_location(location.id)
    _audit(store, AuditAction.DELETE, AuditEntity.LOCATION, location.id, location.name,
           f"Deleted location: {location.name}", user_name)

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any

"""PatrimonyItem domain model.

Represents one inventory item as stored by either backend. Local documents use
the attribute names as-is; the relational table uses snake_case column names
with `numero_chapa` for the asset tag.
"""

__all__ = [
    "ItemStatus",
    "PatrimonyItem",
    "FIRST_ASSET_TAG",
]

# Asset tag assigned to the first item of an empty inventory
FIRST_ASSET_TAG = 1001


class ItemStatus(Enum):
    """Lifecycle status of an inventory item."""
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


@dataclass(frozen=True)
class PatrimonyItem:
    id: str  # generated by the store; "" until persisted
    asset_tag: int
    name: str
    category: str
    location: str
    acquisition_date: str  # YYYY-MM-DD
    value: float = 0.0
    status: ItemStatus = ItemStatus.ACTIVE
    description: str = ""
    responsible: str = ""
    supplier_id: str | None = None

    def with_changes(self, **changes: Any) -> PatrimonyItem:
        """Return a copy with the given fields replaced. `id` cannot change."""
        changes.pop("id", None)
        if "status" in changes and not isinstance(changes["status"], ItemStatus):
            changes["status"] = ItemStatus(changes["status"])
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> PatrimonyItem:
        return PatrimonyItem(
            id=str(data.get("id", "")),
            asset_tag=int(data["asset_tag"]),
            name=data["name"],
            category=data.get("category", ""),
            location=data.get("location", ""),
            acquisition_date=data["acquisition_date"],
            value=float(data.get("value") or 0.0),
            status=ItemStatus(data.get("status", ItemStatus.ACTIVE.value)),
            description=data.get("description") or "",
            responsible=data.get("responsible", ""),
            supplier_id=data.get("supplier_id"),
        )

    def to_db_row(self) -> dict[str, Any]:
        """Column -> value mapping for the `patrimony_items` table (id excluded)."""
        return {
            "numero_chapa": self.asset_tag,
            "name": self.name,
            "category": self.category,
            "location": self.location,
            "acquisition_date": self.acquisition_date,
            "value": self.value,
            "status": self.status.value,
            "description": self.description,
            "responsible": self.responsible,
            "supplier_id": self.supplier_id,
        }

    @staticmethod
    def from_db_row(row: dict[str, Any]) -> PatrimonyItem:
        acquired = row["acquisition_date"]
        # DATE columns come back as datetime.date
        if hasattr(acquired, "isoformat"):
            acquired = acquired.isoformat()
        return PatrimonyItem(
            id=str(row["id"]),
            asset_tag=int(row["numero_chapa"]),
            name=row["name"],
            category=row["category"],
            location=row["location"],
            acquisition_date=str(acquired),
            value=float(row.get("value") or 0.0),
            status=ItemStatus(row["status"]),
            description=row.get("description") or "",
            responsible=row["responsible"],
            supplier_id=row.get("supplier_id"),
        )

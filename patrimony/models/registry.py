from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any

"""Supplier and location registries.

Both are small reference tables: items point at a supplier through
`PatrimonyItem.supplier_id` and carry a location name that may be required to
match a registered location on import.
"""

__all__ = [
    "Supplier",
    "Location",
]


def _iso(value: Any) -> str:
    # timestamptz columns come back as datetime
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class Supplier:
    id: str  # "" until stored
    name: str
    address: str = ""
    phone: str = ""
    created_at: str = ""

    def with_changes(self, **changes: Any) -> Supplier:
        changes.pop("id", None)
        changes.pop("created_at", None)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Supplier:
        return Supplier(
            id=str(data.get("id", "")),
            name=data["name"],
            address=data.get("address") or "",
            phone=data.get("phone") or "",
            created_at=_iso(data.get("created_at")),
        )


@dataclass(frozen=True)
class Location:
    id: str
    name: str
    responsible: str = ""
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Location:
        return Location(
            id=str(data.get("id", "")),
            name=data["name"],
            responsible=data.get("responsible") or "",
            created_at=_iso(data.get("created_at")),
        )

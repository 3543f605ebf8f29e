from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

"""Audit log entries (who did what to which entity)."""

__all__ = [
    "AuditAction",
    "AuditEntity",
    "AuditEntry",
]


class AuditAction(Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    IMPORT = "IMPORT"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"


class AuditEntity(Enum):
    PATRIMONY = "PATRIMONY"
    USER = "USER"
    SUPPLIER = "SUPPLIER"
    LOCATION = "LOCATION"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class AuditEntry:
    id: str
    timestamp: str  # ISO8601 UTC, 'Z' suffix
    action: AuditAction
    entity: AuditEntity
    user_name: str
    details: str
    entity_id: str | None = None
    entity_name: str | None = None

    @staticmethod
    def create(
        action: AuditAction,
        entity: AuditEntity,
        details: str,
        *,
        user_name: str = "system",
        entity_id: str | None = None,
        entity_name: str | None = None,
    ) -> AuditEntry:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return AuditEntry(
            id=uuid.uuid4().hex,
            timestamp=ts,
            action=action,
            entity=entity,
            user_name=user_name,
            details=details,
            entity_id=entity_id,
            entity_name=entity_name,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        data["entity"] = self.entity.value
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> AuditEntry:
        return AuditEntry(
            id=str(data["id"]),
            timestamp=str(data["timestamp"]),
            action=AuditAction(data["action"]),
            entity=AuditEntity(data["entity"]),
            user_name=data.get("user_name", ""),
            details=data.get("details", ""),
            entity_id=data.get("entity_id"),
            entity_name=data.get("entity_name"),
        )

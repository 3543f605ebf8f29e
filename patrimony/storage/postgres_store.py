from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from patrimony.models.audit import AuditEntry
from patrimony.models.item import ItemStatus, PatrimonyItem
from patrimony.models.registry import Location, Supplier

from .base import (
    DuplicateAssetTagError,
    DuplicateLocationError,
    ItemNotFoundError,
    StorageError,
    check_new_asset_tags,
    location_key,
    next_asset_tag_after,
)

"""PostgreSQL backend.

Multi-row inserts go through psycopg2.extras.execute_values with
`RETURNING *` so generated ids come back with the stored rows. Items are sent
in batches (50 by default) and a failing batch raises StorageError naming its
number. Transaction boundaries belong to the caller (see open_cursor).
"""

try:  # pragma: no cover - optional until psycopg2 present at runtime
    import psycopg2
    from psycopg2.extras import RealDictCursor, execute_values
except Exception:  # pragma: no cover
    psycopg2 = None  # type: ignore
    RealDictCursor = None  # type: ignore
    execute_values = None  # type: ignore

__all__ = [
    "PostgresStore",
    "BatchMetrics",
    "open_cursor",
    "resolve_dsn",
    "SCHEMA_SQL",
]

logger = logging.getLogger(__name__)

ITEMS_TABLE = "patrimony_items"
AUDIT_TABLE = "audit_logs"
SUPPLIERS_TABLE = "suppliers"
LOCATIONS_TABLE = "locations"
DEFAULT_BATCH_SIZE = 50

ITEM_COLUMNS = (
    "numero_chapa",
    "name",
    "category",
    "location",
    "acquisition_date",
    "value",
    "status",
    "description",
    "responsible",
    "supplier_id",
)
SUPPLIER_COLUMNS = ("name", "address", "phone")
AUDIT_COLUMNS = (
    "id",
    "timestamp",
    "action",
    "entity",
    "entity_id",
    "entity_name",
    "user_name",
    "details",
)
# PatrimonyItem attribute -> column
_ATTR_TO_COLUMN = {"asset_tag": "numero_chapa"}

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {ITEMS_TABLE} (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    numero_chapa integer NOT NULL UNIQUE CHECK (numero_chapa > 0),
    name text NOT NULL,
    category text NOT NULL,
    location text NOT NULL,
    acquisition_date date NOT NULL,
    value numeric(14, 2) NOT NULL DEFAULT 0,
    status text NOT NULL DEFAULT 'active',
    description text,
    responsible text NOT NULL,
    supplier_id uuid,
    created_at timestamptz NOT NULL DEFAULT now(),
    updated_at timestamptz NOT NULL DEFAULT now()
);
CREATE TABLE IF NOT EXISTS {AUDIT_TABLE} (
    id text PRIMARY KEY,
    timestamp text NOT NULL,
    action text NOT NULL,
    entity text NOT NULL,
    entity_id text,
    entity_name text,
    user_name text NOT NULL,
    details text NOT NULL
);
CREATE TABLE IF NOT EXISTS {SUPPLIERS_TABLE} (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    name text NOT NULL,
    address text NOT NULL DEFAULT '',
    phone text NOT NULL DEFAULT '',
    created_at timestamptz NOT NULL DEFAULT now()
);
CREATE TABLE IF NOT EXISTS {LOCATIONS_TABLE} (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    name text NOT NULL,
    responsible text NOT NULL DEFAULT '',
    created_at timestamptz NOT NULL DEFAULT now()
);
CREATE UNIQUE INDEX IF NOT EXISTS {LOCATIONS_TABLE}_name_key ON {LOCATIONS_TABLE} (lower(name));
"""


@dataclass(frozen=True)
class BatchMetrics:
    """Timing of a single execute_values batch."""
    batch_number: int
    batch_size: int
    elapsed_seconds: float


def resolve_dsn(db_cfg: Any) -> str:
    """Resolve the connection string.

    Priority:
        1. DATABASE_URL / PGDSN environment variables (a `.env` file is loaded
           into the environment by the CLI beforehand)
        2. `dsn` from the config database section
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each falling back
           to the config value
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def open_cursor(db_cfg: Any) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Connection + dict cursor; commit on success, rollback on error."""
    if psycopg2 is None:
        raise StorageError("psycopg2 not available")
    try:
        conn = psycopg2.connect(resolve_dsn(db_cfg))
    except Exception as e:
        raise StorageError(f"cannot connect to database: {e}") from e
    conn.autocommit = False
    cur = conn.cursor(cursor_factory=RealDictCursor)
    try:
        yield cur
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def _row_to_dict(cursor: Any, row: Any) -> dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    columns = [d[0] for d in cursor.description]
    return dict(zip(columns, row, strict=False))


def _column_value(attr: str, value: Any) -> tuple[str, Any]:
    column = _ATTR_TO_COLUMN.get(attr, attr)
    if column not in ITEM_COLUMNS:
        raise StorageError(f"unknown item field: {attr}")
    if isinstance(value, ItemStatus):
        value = value.value
    return column, value


class PostgresStore:
    def __init__(
        self,
        cursor: Any,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> None:
        self.cursor = cursor
        self.batch_size = batch_size
        self.metrics_callback = metrics_callback

    def ensure_schema(self) -> None:
        self._execute(SCHEMA_SQL)

    def _execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        try:
            self.cursor.execute(sql, params)
        except Exception as e:
            raise StorageError(str(e)) from e

    def _fetchall(self) -> list[dict[str, Any]]:
        return [_row_to_dict(self.cursor, r) for r in self.cursor.fetchall()]

    def _existing_tags(self, tags: Sequence[int]) -> list[int]:
        if not tags:
            return []
        self._execute(
            f"SELECT numero_chapa FROM {ITEMS_TABLE} WHERE numero_chapa = ANY(%s)",
            (list(tags),),
        )
        return [int(r["numero_chapa"]) for r in self._fetchall()]

    def insert(self, item: PatrimonyItem) -> PatrimonyItem:
        return self.insert_many([item])[0]

    def insert_many(self, items: Sequence[PatrimonyItem]) -> list[PatrimonyItem]:
        if execute_values is None:
            raise StorageError("psycopg2 not available")
        items = list(items)
        if not items:
            return []
        check_new_asset_tags(self._existing_tags([i.asset_tag for i in items]), items)

        cols_sql = ",".join(f'"{c}"' for c in ITEM_COLUMNS)
        sql = f"INSERT INTO {ITEMS_TABLE} ({cols_sql}) VALUES %s RETURNING *"
        stored: list[PatrimonyItem] = []
        for start in range(0, len(items), self.batch_size):
            batch = items[start:start + self.batch_size]
            batch_number = start // self.batch_size + 1
            values = [tuple(i.to_db_row()[c] for c in ITEM_COLUMNS) for i in batch]
            t0 = time.time()
            try:
                returned = execute_values(
                    self.cursor, sql, values, page_size=len(values), fetch=True
                )
            except Exception as e:
                raise StorageError(f"failed inserting batch {batch_number}: {e}") from e
            finally:
                if self.metrics_callback is not None:
                    self.metrics_callback(
                        BatchMetrics(batch_number, len(values), time.time() - t0)
                    )
            logger.debug("batch %d inserted %d rows", batch_number, len(values))
            stored.extend(
                PatrimonyItem.from_db_row(_row_to_dict(self.cursor, r)) for r in returned or []
            )
        return stored

    def update(self, item_id: str, changes: dict[str, Any]) -> PatrimonyItem:
        pairs = [_column_value(k, v) for k, v in changes.items() if k != "id"]
        if not pairs:
            raise StorageError("no fields to update")
        new_tag = changes.get("asset_tag")
        if new_tag is not None:
            self._execute(
                f"SELECT numero_chapa FROM {ITEMS_TABLE} WHERE numero_chapa = %s AND id <> %s",
                (new_tag, item_id),
            )
            if self._fetchall():
                raise DuplicateAssetTagError([new_tag])
        set_sql = ", ".join(f'"{c}" = %s' for c, _ in pairs)
        self._execute(
            f"UPDATE {ITEMS_TABLE} SET {set_sql}, updated_at = now() WHERE id = %s RETURNING *",
            [v for _, v in pairs] + [item_id],
        )
        rows = self._fetchall()
        if not rows:
            raise ItemNotFoundError(f"item not found: {item_id}")
        return PatrimonyItem.from_db_row(rows[0])

    def delete(self, item_id: str) -> None:
        self._execute(f"DELETE FROM {ITEMS_TABLE} WHERE id = %s RETURNING id", (item_id,))
        if not self._fetchall():
            raise ItemNotFoundError(f"item not found: {item_id}")

    def list_all(self) -> list[PatrimonyItem]:
        self._execute(f"SELECT * FROM {ITEMS_TABLE} ORDER BY numero_chapa ASC")
        return [PatrimonyItem.from_db_row(r) for r in self._fetchall()]

    def get_by_asset_tag(self, asset_tag: int) -> PatrimonyItem | None:
        self._execute(f"SELECT * FROM {ITEMS_TABLE} WHERE numero_chapa = %s", (asset_tag,))
        rows = self._fetchall()
        return PatrimonyItem.from_db_row(rows[0]) if rows else None

    def next_asset_tag(self) -> int:
        self._execute(f"SELECT MAX(numero_chapa) AS max_tag FROM {ITEMS_TABLE}")
        rows = self._fetchall()
        current = rows[0]["max_tag"] if rows else None
        return next_asset_tag_after([] if current is None else [int(current)])

    def append_audit(self, entry: AuditEntry) -> None:
        data = entry.to_dict()
        cols_sql = ",".join(f'"{c}"' for c in AUDIT_COLUMNS)
        placeholders = ",".join("%s" for _ in AUDIT_COLUMNS)
        self._execute(
            f"INSERT INTO {AUDIT_TABLE} ({cols_sql}) VALUES ({placeholders})",
            [data[c] for c in AUDIT_COLUMNS],
        )

    def list_audit(self) -> list[AuditEntry]:
        self._execute(f'SELECT * FROM {AUDIT_TABLE} ORDER BY "timestamp" DESC')
        return [AuditEntry.from_dict(r) for r in self._fetchall()]

    def insert_supplier(self, supplier: Supplier) -> Supplier:
        cols_sql = ",".join(f'"{c}"' for c in SUPPLIER_COLUMNS)
        self._execute(
            f"INSERT INTO {SUPPLIERS_TABLE} ({cols_sql}) VALUES (%s,%s,%s) RETURNING *",
            [getattr(supplier, c) for c in SUPPLIER_COLUMNS],
        )
        return Supplier.from_dict(self._fetchall()[0])

    def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> Supplier:
        pairs = [(k, v) for k, v in changes.items() if k in SUPPLIER_COLUMNS]
        unknown = set(changes) - set(SUPPLIER_COLUMNS) - {"id", "created_at"}
        if unknown:
            raise StorageError(f"unknown supplier field: {', '.join(sorted(unknown))}")
        if not pairs:
            raise StorageError("no fields to update")
        set_sql = ", ".join(f'"{c}" = %s' for c, _ in pairs)
        self._execute(
            f"UPDATE {SUPPLIERS_TABLE} SET {set_sql} WHERE id = %s RETURNING *",
            [v for _, v in pairs] + [supplier_id],
        )
        rows = self._fetchall()
        if not rows:
            raise ItemNotFoundError(f"supplier not found: {supplier_id}")
        return Supplier.from_dict(rows[0])

    def delete_supplier(self, supplier_id: str) -> None:
        self._execute(f"DELETE FROM {SUPPLIERS_TABLE} WHERE id = %s RETURNING id", (supplier_id,))
        if not self._fetchall():
            raise ItemNotFoundError(f"supplier not found: {supplier_id}")

    def get_supplier(self, supplier_id: str) -> Supplier | None:
        self._execute(f"SELECT * FROM {SUPPLIERS_TABLE} WHERE id = %s", (supplier_id,))
        rows = self._fetchall()
        return Supplier.from_dict(rows[0]) if rows else None

    def list_suppliers(self) -> list[Supplier]:
        self._execute(f"SELECT * FROM {SUPPLIERS_TABLE} ORDER BY lower(name)")
        return [Supplier.from_dict(r) for r in self._fetchall()]

    def insert_location(self, location: Location) -> Location:
        if self.get_location_by_name(location.name) is not None:
            raise DuplicateLocationError(location.name)
        self._execute(
            f"INSERT INTO {LOCATIONS_TABLE} (name, responsible) VALUES (%s,%s) RETURNING *",
            (location.name, location.responsible),
        )
        return Location.from_dict(self._fetchall()[0])

    def delete_location(self, location_id: str) -> None:
        self._execute(f"DELETE FROM {LOCATIONS_TABLE} WHERE id = %s RETURNING id", (location_id,))
        if not self._fetchall():
            raise ItemNotFoundError(f"location not found: {location_id}")

    def get_location_by_name(self, name: str) -> Location | None:
        key = location_key(name)
        for location in self.list_locations():
            if location_key(location.name) == key:
                return location
        return None

    def list_locations(self) -> list[Location]:
        self._execute(f"SELECT * FROM {LOCATIONS_TABLE} ORDER BY lower(name)")
        return [Location.from_dict(r) for r in self._fetchall()]

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from .base import (
    DuplicateAssetTagError,
    DuplicateLocationError,
    ItemNotFoundError,
    PatrimonyStore,
    StorageError,
)
from .local_store import LocalStore
from .postgres_store import PostgresStore, open_cursor

if TYPE_CHECKING:
    from patrimony.config.loader import AppConfig

"""Storage backends and the factory selecting one from configuration."""

__all__ = [
    "open_store",
    "PatrimonyStore",
    "LocalStore",
    "PostgresStore",
    "StorageError",
    "DuplicateAssetTagError",
    "ItemNotFoundError",
    "DuplicateLocationError",
]


@contextmanager
def open_store(config: AppConfig) -> Iterator[PatrimonyStore]:
    """Yield the configured store; the PostgreSQL one commits on clean exit."""
    backend = config.storage.backend
    if backend == "local":
        yield LocalStore(Path(config.storage.local_directory))
    elif backend == "postgres":
        with open_cursor(config.database) as cur:
            store = PostgresStore(cur, batch_size=config.import_options.batch_size)
            store.ensure_schema()
            yield store
    else:
        raise StorageError(f"unknown storage backend: {backend}")

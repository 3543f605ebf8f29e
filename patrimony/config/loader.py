from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from patrimony.models.item import ItemStatus

"""Configuration loading.

- Load YAML (config/patrimony.yml by default)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for every optional section
"""

__all__ = [
    "ConfigError",
    "AppConfig",
    "StorageConfig",
    "DatabaseConfig",
    "ImportOptions",
    "ItemDefaults",
    "load_config",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
]

DEFAULT_CONFIG_PATH = Path("config/patrimony.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class StorageConfig:
    backend: str  # local | postgres
    local_directory: str = "./data"


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportOptions:
    batch_size: int = 50
    has_header: bool | None = None  # None -> first-cell heuristic
    duplicate_policy: str = "last"  # comparison inputs: last | first | reject
    delimiter: str | None = None  # None -> detect per line
    require_registered_location: bool = False


@dataclass(frozen=True)
class ItemDefaults:
    """Values given to fields an import file does not carry."""
    category: str = "Other"
    location: str = "To be defined"
    responsible: str = "To be defined"
    status: ItemStatus = ItemStatus.ACTIVE


@dataclass(frozen=True)
class AppConfig:
    storage: StorageConfig
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    import_options: ImportOptions = field(default_factory=ImportOptions)
    defaults: ItemDefaults = field(default_factory=ItemDefaults)


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or config fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    storage_raw = data["storage"]
    db_raw = data.get("database") or {}
    import_raw = data.get("import") or {}
    defaults_raw = data.get("defaults") or {}

    storage = StorageConfig(
        backend=storage_raw["backend"],
        local_directory=storage_raw.get("local_directory", StorageConfig.local_directory),
    )
    database = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    import_options = ImportOptions(
        batch_size=import_raw.get("batch_size", ImportOptions.batch_size),
        has_header=import_raw.get("has_header"),
        duplicate_policy=import_raw.get("duplicate_policy", ImportOptions.duplicate_policy),
        delimiter=import_raw.get("delimiter"),
        require_registered_location=import_raw.get("require_registered_location", False),
    )
    defaults = ItemDefaults(
        category=defaults_raw.get("category", ItemDefaults.category),
        location=defaults_raw.get("location", ItemDefaults.location),
        responsible=defaults_raw.get("responsible", ItemDefaults.responsible),
        status=ItemStatus(defaults_raw.get("status", ItemStatus.ACTIVE.value)),
    )
    return AppConfig(
        storage=storage,
        database=database,
        import_options=import_options,
        defaults=defaults,
    )

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..excel.headers import HeaderLookup
from .columns import DEFAULT_COLUMNS, LogicalColumn

"""Config loader.

Responsibilities:
- Load YAML config (default config/ingest.yml); a missing default file means built-in defaults
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults (max_rows=50000, batch_size=500, strict_headers=False)
- Merge column alias overrides onto DEFAULT_COLUMNS
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")

DEFAULT_MAX_ROWS = 50_000
DEFAULT_BATCH_SIZE = 500


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class IngestConfig:
    columns: tuple[LogicalColumn, ...] = DEFAULT_COLUMNS
    max_rows: int = DEFAULT_MAX_ROWS
    batch_size: int = DEFAULT_BATCH_SIZE
    strict_headers: bool = False
    error_log_dir: str = "logs"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing/broken, or the data violates the schema
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


def _merge_columns(overrides: list[dict[str, Any]]) -> tuple[LogicalColumn, ...]:
    """Apply per-key name/alias overrides; columns not mentioned keep their defaults."""
    by_key: dict[str, dict[str, Any]] = {}
    for item in overrides:
        key = item["key"]
        if key in by_key:
            raise ConfigError(f"config validation failed: column '{key}' configured twice")
        by_key[key] = item

    merged: list[LogicalColumn] = []
    for col in DEFAULT_COLUMNS:
        item = by_key.get(col.key)
        if item is None:
            merged.append(col)
            continue
        merged.append(
            LogicalColumn(
                key=col.key,
                canonical=item.get("name", col.canonical),
                aliases=tuple(item.get("aliases", col.aliases)),
            )
        )
    try:
        HeaderLookup(merged)
    except ValueError as e:
        raise ConfigError(f"config validation failed: {e}") from e
    return tuple(merged)


def load_config(path: Path | None = None) -> IngestConfig:
    if path is None:
        # 既定パスにファイルが無ければ組み込み既定値で動作
        if not DEFAULT_CONFIG_PATH.exists():
            return IngestConfig()
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return IngestConfig(
        columns=_merge_columns(data.get("columns", [])),
        max_rows=data.get("max_rows", DEFAULT_MAX_ROWS),
        batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
        strict_headers=data.get("strict_headers", False),
        error_log_dir=data.get("error_log_dir", "logs"),
        database=db,
    )

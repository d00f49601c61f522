from __future__ import annotations

from pathlib import Path

import pytest

from compost_ingest.config.columns import DEFAULT_COLUMNS, column_by_key
from compost_ingest.config.loader import ConfigError, IngestConfig, load_config


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.max_rows == 100
    assert cfg.batch_size == 2
    assert cfg.strict_headers is False
    assert cfg.database.user == "appuser"
    assert cfg.database.port == 5432
    location = column_by_key(cfg.columns, "location")
    assert location.canonical == "Name of the Project Location"
    assert location.aliases == ("Site", "Location")
    # untouched columns keep defaults
    assert column_by_key(cfg.columns, "composters") == column_by_key(DEFAULT_COLUMNS, "composters")


def test_default_path_absent_means_builtin_defaults(temp_workdir: Path):
    cfg = load_config()
    assert cfg == IngestConfig()
    assert cfg.max_rows == 50_000
    assert cfg.batch_size == 500


def test_default_path_used_when_present(write_config: Path):
    assert load_config().batch_size == 2


def test_column_rename(write_config: Path):
    write_config.write_text(
        "columns:\n  - key: harvest_kg\n    name: Harvest Total (Kg)\n    aliases: []\n",
        encoding="utf-8",
    )
    col = column_by_key(load_config(write_config).columns, "harvest_kg")
    assert col.canonical == "Harvest Total (Kg)"
    assert col.aliases == ()


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("max_rows: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


@pytest.mark.parametrize(
    "text",
    [
        "extra_field: not_allowed\n",
        "batch_size: 0\n",
        "max_rows: many\n",
        "columns:\n  - key: rainfall\n",
        "strict_headers: sometimes\n",
    ],
)
def test_load_config_schema_violations(write_config: Path, text: str):
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_column_configured_twice(write_config: Path):
    write_config.write_text("columns:\n  - key: location\n  - key: location\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "configured twice" in str(e.value)


def test_empty_file_is_defaults(write_config: Path):
    write_config.write_text("", encoding="utf-8")
    assert load_config(write_config) == IngestConfig()


def test_alias_claimed_by_two_columns(write_config: Path):
    write_config.write_text("columns:\n  - key: harvest_kg\n    aliases: [Site]\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "claimed by both location and harvest_kg" in str(e.value)

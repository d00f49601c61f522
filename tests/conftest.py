# Shared pytest fixtures
from __future__ import annotations

import tempfile
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from compost_ingest.models.records import ValidatedRecord

HEADERS = [
    "Name of the Project Location",
    "Date of Visit",
    "No. of composters",
    "Sum of Wet Waste (Kg)",
    "Sum of Brown Waste (Kg)",
    "Sum of Leachate (Litre)",
    "Sum of Harvest (Kg)",
]


def workbook_bytes(rows: list[list[Any]], sheet: str = "Visits") -> bytes:
    """Build an .xlsx in memory; rows[0] is the header row."""
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buf.getvalue()


def make_record(location: str = "Site A", day: date = date(2025, 10, 7), **overrides: Any) -> ValidatedRecord:
    values: dict[str, Any] = dict(
        composters=4, wet_waste_kg=55.0, brown_waste_kg=6.0, leachate_l=0.0, harvest_kg=0.0
    )
    values.update(overrides)
    return ValidatedRecord(location=location, visit_date=day, **values)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        # テスト環境の DB 接続情報を持ち込まない
        for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
            monkeypatch.delenv(var, raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """max_rows: 100
batch_size: 2
strict_headers: false
error_log_dir: logs
columns:
  - key: location
    aliases: [Site, Location]
  - key: harvest_kg
    aliases: [Harvest Total (Kg)]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: compost
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def visits_workbook(temp_workdir: Path) -> Path:
    """Three valid visits, one invalid row, one blank row."""
    rows = [
        HEADERS,
        ["Manav Rachna University", "07-10-2025", 4, 55, 6, 0, 0],
        ["Manav Rachna University", "2025-10-08", 4, 28, 4, "", 0],
        ["Manav Rachna University", "31-02-2025", 4, 52, 4.5, 0, 0],
        [None, None, None, None, None, None, None],
        ["Sector 21 RWA", "10-13-2025", 2, 12.5, 1, 0.5, 3],
    ]
    f = temp_workdir / "data" / "visits.xlsx"
    f.write_bytes(workbook_bytes(rows))
    return f


@pytest.fixture()
def headers() -> list[str]:
    return list(HEADERS)


@pytest.fixture()
def make_workbook():
    return workbook_bytes


@pytest.fixture(name="make_record")
def make_record_fixture():
    return make_record

from __future__ import annotations

import json
from pathlib import Path

from compost_ingest.logging.error_log import ErrorLogBuffer, ErrorRecord
from compost_ingest.models.records import RowError

KEYS = {"timestamp", "file", "sheet", "row", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="visits.xlsx",
        sheet="Visits",
        row=10,
        error_type="ROW_INVALID",
        message="Invalid Date of Visit: 31-02-2024",
    )
    data = json.loads(rec.to_json_line())
    assert data["row"] == 10
    assert data["error_type"] == "ROW_INVALID"
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == KEYS


def test_error_record_keeps_non_ascii():
    rec = ErrorRecord.create("f.xlsx", "S", 1, "ROW_INVALID", "Ungültiges Datum")
    assert "Ungültiges" in rec.to_json_line()


def test_flush_writes_json_lines(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.extend_row_errors(
        "visits.xlsx",
        "Visits",
        [RowError(0, "Sheet is empty."), RowError(3, "Sum of Harvest (Kg): must be greater than or equal to 0")],
    )
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.name.startswith("errors-") and path.suffix == ".log"
    objs = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [o["error_type"] for o in objs] == ["FILE_REJECTED", "ROW_INVALID"]
    assert objs[0]["sheet"] == "<FILE_LEVEL>" and objs[0]["row"] == 0
    assert objs[1]["sheet"] == "Visits" and objs[1]["row"] == 3
    assert all(set(o) == KEYS for o in objs)
    assert len(buf) == 0


def test_flush_empty_writes_nothing(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "fresh_logs")
    assert buf.flush() is None
    assert not (temp_workdir / "fresh_logs").exists()


def test_multiple_flushes_append_same_file(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.append(ErrorRecord.create("f.xlsx", "S", 1, "ROW_INVALID", "a"))
    path = buf.flush()
    size1 = path.stat().st_size
    buf.append(ErrorRecord.create("f.xlsx", "S", 2, "ROW_INVALID", "b"))
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1

from __future__ import annotations

from pathlib import Path

import pytest

from compost_ingest.cli import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main as cli_main
from compost_ingest.logging.init import reset_logging

"""Exit code contract: 0 all rows ingested, 2 partial, 1 fatal / nothing ingested."""


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


def test_exit_code_values():
    assert (EXIT_SUCCESS_ALL, EXIT_PARTIAL_FAILURE, EXIT_FATAL) == (0, 2, 1)


def test_exit_code_fatal_startup(write_config: Path, visits_workbook: Path, capsys):
    write_config.write_text("unknown_key: 1\n", encoding="utf-8")
    assert cli_main([str(visits_workbook), "--dry-run"]) == EXIT_FATAL
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_all_success(temp_workdir: Path, make_workbook, headers):
    f = temp_workdir / "data" / "ok.xlsx"
    f.write_bytes(make_workbook([headers, ["A", "2025-10-07", 1, 1, 1, 1, 1], ["B", "2025-10-07", 1, 1, 1, 1, 1]]))
    assert cli_main([str(f), "--dry-run"]) == EXIT_SUCCESS_ALL


def test_exit_code_partial_rows(visits_workbook: Path):
    assert cli_main([str(visits_workbook), "--dry-run"]) == EXIT_PARTIAL_FAILURE


def test_exit_code_no_valid_rows(temp_workdir: Path, make_workbook, headers):
    f = temp_workdir / "data" / "none.xlsx"
    f.write_bytes(make_workbook([headers, ["A", "bogus", 1, 1, 1, 1, 1]]))
    assert cli_main([str(f), "--dry-run"]) == EXIT_FATAL


def test_exit_code_empty_sheet(temp_workdir: Path, make_workbook, headers):
    f = temp_workdir / "data" / "empty.xlsx"
    f.write_bytes(make_workbook([headers]))
    assert cli_main([str(f), "--dry-run"]) == EXIT_FATAL

from __future__ import annotations

import logging
from io import StringIO

import pytest

import compost_ingest.logging.init as log_init
from compost_ingest.logging.init import LabeledFormatter, SUMMARY_LEVEL, get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset():
    log_init.reset_logging()
    yield
    log_init.reset_logging()


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == "compost_ingest"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_idempotent_and_debug_switch():
    first = setup_logging()
    second = setup_logging(debug=True)
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG
    assert second.handlers[0].level == logging.DEBUG


def test_get_logger_sets_up_once():
    assert get_logger() is get_logger()


def test_labeled_prefixes():
    captured = StringIO()
    logger = logging.getLogger("test_compost_ingest_labels")
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(SUMMARY_LEVEL, "created=1")

    lines = captured.getvalue().strip().splitlines()
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY created=1",
    ]


def test_module_loggers_reach_app_handler(capsys):
    setup_logging()
    logging.getLogger("compost_ingest.excel.parser").warning("duplicate column")
    out = capsys.readouterr().out
    assert "WARN duplicate column" in out


def test_log_summary(capsys):
    setup_logging()
    log_init.log_summary("file=a.xlsx created=1")
    assert "SUMMARY file=a.xlsx created=1" in capsys.readouterr().out

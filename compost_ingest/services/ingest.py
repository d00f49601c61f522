from __future__ import annotations

import logging
import time
from pathlib import Path

from ..config.loader import IngestConfig
from ..db.store import StorageError, VisitStore
from ..excel.parser import parse_workbook
from ..logging.error_log import FILE_LEVEL_SHEET, ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.outcome import IngestionOutcome
from .reconcile import ReconcileError, reconcile

"""Ingestion service: one upload -> parse -> reconcile -> outcome.

Also holds the caller-side upload guards (extension, size). Whole-file
parse errors and uploads without a single valid row never reach storage.
"""

__all__ = [
    "MAX_UPLOAD_BYTES",
    "ALLOWED_SUFFIXES",
    "UploadRejectedError",
    "check_upload",
    "ingest_bytes",
    "ingest_file",
]

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_SUFFIXES = (".xlsx", ".xls")


class UploadRejectedError(Exception):
    pass


def check_upload(file_name: str, size: int) -> None:
    """Raises UploadRejectedError for unsupported extensions or oversized files."""
    if not file_name.lower().endswith(ALLOWED_SUFFIXES):
        raise UploadRejectedError("Only Excel files (.xlsx/.xls) are supported.")
    if size > MAX_UPLOAD_BYTES:
        raise UploadRejectedError("File too large (max 10MB).")


def _flush(error_log: ErrorLogBuffer) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning("failed to write error log: %s", e)
        return
    if path is not None:
        logger.info("error log written: %s", path)


def ingest_bytes(
    data: bytes,
    file_name: str,
    store: VisitStore,
    config: IngestConfig,
    error_log: ErrorLogBuffer | None = None,
) -> IngestionOutcome:
    """Parse and reconcile one uploaded workbook.

    Raises:
        ReconcileError: storage failed; batches committed before it stay committed
    """
    start = time.perf_counter()
    if error_log is None:
        error_log = ErrorLogBuffer(config.error_log_dir)

    parsed = parse_workbook(
        data,
        config.columns,
        max_rows=config.max_rows,
        strict_headers=config.strict_headers,
    )
    for warning in parsed.header_warnings:
        error_log.append(
            ErrorRecord.create(file_name, parsed.sheet_name, 0, "HEADER_DUPLICATE", warning)
        )
    error_log.extend_row_errors(file_name, parsed.sheet_name, parsed.errors)
    for err in parsed.errors:
        if err.row == 0:
            logger.error("%s: %s", file_name, err.message)
        else:
            logger.warning("%s row %d: %s", file_name, err.row, err.message)

    if not parsed.records:
        _flush(error_log)
        if not parsed.fatal:
            logger.warning("%s: no valid rows found to ingest", file_name)
        return IngestionOutcome(
            created=0,
            updated=0,
            errors=list(parsed.errors),
            batches=0,
            elapsed_seconds=time.perf_counter() - start,
            header_warnings=list(parsed.header_warnings),
        )

    try:
        result = reconcile(parsed.records, store, batch_size=config.batch_size)
    except ReconcileError as e:
        error_log.append(
            ErrorRecord.create(file_name, FILE_LEVEL_SHEET, 0, "STORAGE_ERROR", str(e))
        )
        raise
    finally:
        _flush(error_log)

    outcome = IngestionOutcome(
        created=result.created,
        updated=result.updated,
        errors=list(parsed.errors),
        batches=result.batches,
        elapsed_seconds=time.perf_counter() - start,
        header_warnings=list(parsed.header_warnings),
    )
    try:
        store.record_upload(file_name, outcome)
    except StorageError as e:
        # 全バッチ commit 済み: 履歴の失敗で取り込み結果を失わない
        logger.warning("%s: upload history not recorded: %s", file_name, e)
    return outcome


def ingest_file(
    path: Path,
    store: VisitStore,
    config: IngestConfig,
    error_log: ErrorLogBuffer | None = None,
) -> IngestionOutcome:
    check_upload(path.name, path.stat().st_size)
    return ingest_bytes(path.read_bytes(), path.name, store, config, error_log)

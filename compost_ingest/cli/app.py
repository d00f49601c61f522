from __future__ import annotations

import argparse
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import ConfigError, IngestConfig, load_config
from ..db.connection import database_error_hint, db_connection
from ..db.memory_store import InMemoryVisitStore
from ..db.store import StorageError
from ..db.upsert import PostgresVisitStore
from ..excel.headers import HeaderLookup, HeaderResolutionError, resolve_headers
from ..excel.reader import WorkbookReadError, read_first_sheet
from ..logging.init import log_summary, setup_logging
from ..models.outcome import IngestionOutcome
from ..services.ingest import UploadRejectedError, check_upload, ingest_file
from ..services.reconcile import ReconcileError
from ..services.summary import render_summary_line

"""CLI entrypoint: ingest one field-visit workbook.

Exit codes:
    0  every non-blank row ingested
    2  partial: some rows rejected, or storage failed after some batches committed
    1  fatal: config / upload guard / whole-file error, or nothing ingested
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values take precedence over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Compost field-visit workbook ingestion")
    p.add_argument("file", type=Path, help="Workbook to ingest (.xlsx/.xls)")
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/ingest.yml)")
    p.add_argument("--dry-run", action="store_true", help="Reconcile against an in-memory store")
    p.add_argument("--init-db", action="store_true", help="Create tables before ingesting")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print header mapping & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(path: Path, cfg: IngestConfig) -> int:
    try:
        sheet = read_first_sheet(path.read_bytes())
    except WorkbookReadError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name}")
    print(f"  SHEET: {sheet.sheet_name} rows={len(sheet.rows)} cols={sheet.header}")
    try:
        resolution = resolve_headers(sheet.header, HeaderLookup(cfg.columns))
    except HeaderResolutionError as e:
        print(f"  header_error: {e}")
        return EXIT_FATAL
    print(f"  header_map={resolution.mapping}")
    for w in resolution.warnings:
        print(f"  header_warning: {w}")
    for row in sheet.rows[:3]:
        # datetime 含む場合のため isoformat で表示
        print("    sample_row=", [v.isoformat() if hasattr(v, "isoformat") else v for v in row])
    return EXIT_SUCCESS_ALL


def _finish(file_name: str, outcome: IngestionOutcome) -> int:
    log_summary(render_summary_line(file_name, outcome)[len("SUMMARY "):])
    if outcome.total == 0:
        # whole-file error or no valid rows: nothing was ingested
        return EXIT_FATAL
    if outcome.errors:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None のときのみシステム引数を読む (テストで main([...]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    path: Path = args.file
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL
    try:
        check_upload(path.name, path.stat().st_size)
    except UploadRejectedError as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(path, cfg)

    if args.dry_run:
        logger.info(f"dry run: {path.name} (in-memory store)")
        try:
            outcome = ingest_file(path, InMemoryVisitStore(), cfg)
        except ReconcileError as e:  # pragma: no cover - in-memory store does not fail
            logger.error(f"reconcile(dry-run): {e}")
            return EXIT_FATAL
        return _finish(path.name, outcome)

    try:
        with db_connection(cfg.database) as conn:
            store = PostgresVisitStore(conn)
            if args.init_db:
                store.ensure_schema()
                logger.info("schema ensured")
            logger.info(f"ingesting: {path.name}")
            outcome = ingest_file(path, store, cfg)
    except ReconcileError as e:
        logger.error(f"storage: {e}")
        logger.error(database_error_hint())
        logger.error(
            f"committed before failure: batches={e.batches} created={e.created} updated={e.updated}"
        )
        return EXIT_PARTIAL_FAILURE if e.partial else EXIT_FATAL
    except (StorageError, psycopg2.Error) as e:
        logger.error(f"storage: {e}")
        logger.error(database_error_hint())
        return EXIT_FATAL

    return _finish(path.name, outcome)

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from ..models.outcome import IngestionOutcome
from ..models.records import ValidatedRecord
from .store import StorageError

"""PostgreSQL VisitStore.

One upsert_batch() call = one INSERT ... ON CONFLICT statement built with
psycopg2.extras.execute_values, committed on its own. (xmax = 0) in RETURNING
tells freshly inserted rows apart from updated ones.
"""

__all__ = [
    "SCHEMA_SQL",
    "UPSERT_SQL",
    "PostgresVisitStore",
]

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS ingestion_rows (
    id BIGSERIAL PRIMARY KEY,
    location TEXT NOT NULL,
    visit_date DATE NOT NULL,
    composters INTEGER NOT NULL CHECK (composters >= 0),
    wet_waste_kg DOUBLE PRECISION NOT NULL CHECK (wet_waste_kg >= 0),
    brown_waste_kg DOUBLE PRECISION NOT NULL CHECK (brown_waste_kg >= 0),
    leachate_l DOUBLE PRECISION NOT NULL CHECK (leachate_l >= 0),
    harvest_kg DOUBLE PRECISION NOT NULL CHECK (harvest_kg >= 0),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    UNIQUE (location, visit_date)
);
CREATE TABLE IF NOT EXISTS upload_history (
    id BIGSERIAL PRIMARY KEY,
    file_name TEXT NOT NULL,
    created INTEGER NOT NULL,
    updated INTEGER NOT NULL,
    skipped INTEGER NOT NULL,
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""

UPSERT_SQL = (
    "INSERT INTO ingestion_rows "
    "(location, visit_date, composters, wet_waste_kg, brown_waste_kg, leachate_l, harvest_kg) "
    "VALUES %s "
    "ON CONFLICT (location, visit_date) DO UPDATE SET "
    "composters = EXCLUDED.composters, "
    "wet_waste_kg = EXCLUDED.wet_waste_kg, "
    "brown_waste_kg = EXCLUDED.brown_waste_kg, "
    "leachate_l = EXCLUDED.leachate_l, "
    "harvest_kg = EXCLUDED.harvest_kg, "
    "updated_at = now() "
    "RETURNING location, visit_date, (xmax = 0) AS inserted"
)

HISTORY_SQL = (
    "INSERT INTO upload_history (file_name, created, updated, skipped) VALUES (%s, %s, %s, %s)"
)


class PostgresVisitStore:
    def __init__(self, connection: Any) -> None:
        self.connection = connection

    def ensure_schema(self) -> None:
        self._run(lambda cur: cur.execute(SCHEMA_SQL))

    def upsert_batch(self, records: Sequence[ValidatedRecord]) -> list[bool]:
        if not records:
            return []
        rows = [(r.location, r.visit_date, *r.measurements()) for r in records]
        # page_size=len(rows): バッチ全体を 1 文で送る (RETURNING を一括取得)
        returned = self._run(
            lambda cur: execute_values(cur, UPSERT_SQL, rows, page_size=len(rows), fetch=True)
        )
        inserted = {(loc, day): bool(flag) for loc, day, flag in returned}
        try:
            return [inserted[r.key] for r in records]
        except KeyError as e:
            raise StorageError(f"upsert returned no row for key {e}") from e

    def record_upload(self, file_name: str, outcome: IngestionOutcome) -> None:
        self._run(
            lambda cur: cur.execute(
                HISTORY_SQL, (file_name, outcome.created, outcome.updated, outcome.skipped)
            )
        )

    def _run(self, op: Any) -> Any:
        """Execute op(cursor) and commit; rollback + StorageError on driver errors."""
        try:
            with self.connection.cursor() as cur:
                result = op(cur)
            self.connection.commit()
            return result
        except psycopg2.Error as e:
            try:
                self.connection.rollback()
            except psycopg2.Error:
                pass  # 接続断: ロールバック不能でも元エラーを優先
            raise StorageError(str(e).strip() or type(e).__name__) from e

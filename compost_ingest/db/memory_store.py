from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from ..models.outcome import IngestionOutcome
from ..models.records import ValidatedRecord

"""In-memory VisitStore used for --dry-run and tests."""

__all__ = [
    "UploadEntry",
    "InMemoryVisitStore",
]


@dataclass(frozen=True)
class UploadEntry:
    file_name: str
    created: int
    updated: int
    skipped: int


class InMemoryVisitStore:
    def __init__(self) -> None:
        self.rows: dict[tuple[str, date], ValidatedRecord] = {}
        self.uploads: list[UploadEntry] = []
        self.batches: list[int] = []  # 各 upsert_batch 呼び出しの件数

    def upsert_batch(self, records: Sequence[ValidatedRecord]) -> list[bool]:
        keys = [r.key for r in records]
        if len(set(keys)) != len(keys):
            raise ValueError("duplicate natural key within one batch")
        flags: list[bool] = []
        for r in records:
            flags.append(r.key not in self.rows)
            # 既存キーは測定値のみ上書き (キーは不変)
            self.rows[r.key] = r
        self.batches.append(len(records))
        return flags

    def record_upload(self, file_name: str, outcome: IngestionOutcome) -> None:
        self.uploads.append(
            UploadEntry(
                file_name=file_name,
                created=outcome.created,
                updated=outcome.updated,
                skipped=outcome.skipped,
            )
        )

    def get(self, location: str, visit_date: date) -> ValidatedRecord | None:
        return self.rows.get((location, visit_date))

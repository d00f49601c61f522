from __future__ import annotations

from dataclasses import dataclass, field

from .records import RowError

"""Reconciliation / ingestion result models."""

__all__ = [
    "BatchMetrics",
    "ReconcileResult",
    "IngestionOutcome",
]


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics for a single upsert batch."""
    batch_index: int  # 0-based
    batch_size: int
    inserted: int
    elapsed_seconds: float


@dataclass(frozen=True)
class ReconcileResult:
    created: int
    updated: int
    batches: int


@dataclass(frozen=True)
class IngestionOutcome:
    """Counts returned once per upload.

    skipped always equals len(errors): rows that never became records.
    """
    created: int
    updated: int
    errors: list[RowError] = field(default_factory=list)
    batches: int = 0
    elapsed_seconds: float = 0.0
    header_warnings: list[str] = field(default_factory=list)  # 重複ヘッダ等, 取り込みは継続

    @property
    def skipped(self) -> int:
        return len(self.errors)

    @property
    def total(self) -> int:
        return self.created + self.updated

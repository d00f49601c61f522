from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator, Sequence

from ..config.loader import DEFAULT_BATCH_SIZE
from ..db.store import StorageError, VisitStore
from ..models.outcome import BatchMetrics, ReconcileResult
from ..models.records import ValidatedRecord
from .progress import BatchProgress

"""Reconciliation engine: merge validated records into storage by natural key.

Records are merged in original order, in batches of at most batch_size.
A batch is also cut early when a (location, visit_date) key would appear in
it twice, so one storage statement never touches a key more than once and
the later record in the upload still wins. Batches commit independently
and run one after another; a failing batch stops the run and earlier
batches stay committed.
"""

__all__ = [
    "ReconcileError",
    "iter_batches",
    "reconcile",
]

logger = logging.getLogger(__name__)


class ReconcileError(Exception):
    """Storage failure part-way through reconciliation.

    created/updated/batches describe what was committed before the failure.
    """

    def __init__(self, message: str, *, created: int, updated: int, batches: int) -> None:
        super().__init__(message)
        self.created = created
        self.updated = updated
        self.batches = batches

    @property
    def partial(self) -> bool:
        return self.batches > 0


def iter_batches(
    records: Sequence[ValidatedRecord], batch_size: int
) -> Iterator[list[ValidatedRecord]]:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    batch: list[ValidatedRecord] = []
    keys: set[tuple] = set()
    for record in records:
        if len(batch) >= batch_size or record.key in keys:
            yield batch
            batch, keys = [], set()
        batch.append(record)
        keys.add(record.key)
    if batch:
        yield batch


def reconcile(
    records: Sequence[ValidatedRecord],
    store: VisitStore,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> ReconcileResult:
    """Merge records into store; returns created/updated counts.

    Raises:
        ReconcileError: a batch failed (carries counts committed so far)
    """
    created = 0
    updated = 0
    done = 0
    with BatchProgress(len(records)) as progress:
        for index, batch in enumerate(iter_batches(records, batch_size)):
            start = time.perf_counter()
            try:
                flags = store.upsert_batch(batch)
            except StorageError as e:
                logger.error(
                    "batch %d failed after %d committed batch(es): %s", index + 1, done, e
                )
                raise ReconcileError(
                    str(e), created=created, updated=updated, batches=done
                ) from e
            elapsed = time.perf_counter() - start
            if len(flags) != len(batch):
                # store は commit 済み: バッチ数には含め、件数は分類不能のため加算しない
                raise ReconcileError(
                    f"store returned {len(flags)} results for {len(batch)} records",
                    created=created,
                    updated=updated,
                    batches=done + 1,
                )
            inserted = sum(1 for f in flags if f)
            created += inserted
            updated += len(batch) - inserted
            done += 1
            logger.debug(
                "batch=%d size=%d inserted=%d elapsed=%.3fs", index + 1, len(batch), inserted, elapsed
            )
            if metrics_callback is not None:
                metrics_callback(
                    BatchMetrics(
                        batch_index=index,
                        batch_size=len(batch),
                        inserted=inserted,
                        elapsed_seconds=elapsed,
                    )
                )
            progress.advance(len(batch), created=created, updated=updated)
    return ReconcileResult(created=created, updated=updated, batches=done)

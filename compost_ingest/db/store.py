from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from ..models.records import ValidatedRecord

if TYPE_CHECKING:
    from ..models.outcome import IngestionOutcome

"""Storage contract consumed by the reconciliation engine."""

__all__ = [
    "StorageError",
    "VisitStore",
]


class StorageError(Exception):
    pass


class VisitStore(Protocol):
    def upsert_batch(self, records: Sequence[ValidatedRecord]) -> list[bool]:
        """Create-or-update each record by (location, visit_date).

        Keys within one call are distinct. Returns one flag per record,
        True when the key did not exist before. The batch is committed
        before returning; failure raises StorageError and commits nothing
        from this batch.
        """
        ...

    def record_upload(self, file_name: str, outcome: IngestionOutcome) -> None:
        """Persist the created/updated/skipped counts of one upload."""
        ...

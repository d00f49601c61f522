"""Domain models for the compost visit workbook ingestion engine."""

from .error_record import ErrorRecord
from .outcome import BatchMetrics, IngestionOutcome, ReconcileResult
from .records import ParseResult, RowError, ValidatedRecord

__all__ = [
    # Parse models
    "ValidatedRecord",
    "RowError",
    "ParseResult",
    # Reconciliation models
    "BatchMetrics",
    "ReconcileResult",
    "IngestionOutcome",
    # Logging
    "ErrorRecord",
]

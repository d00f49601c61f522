from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord
from ..models.records import RowError

"""Error log buffering.

- JSON Lines, fixed keys (see ErrorRecord)
- one `errors-YYYYMMDD-HHMMSS.log` (UTC) per run, created on first flush
- records are buffered and written in one append per flush
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"
FILE_LEVEL_SHEET = "<FILE_LEVEL>"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines.

    スレッド安全性不要 (1 アップロード = 1 フロー)
    """

    def __init__(self, logs_dir: Path | str = "logs") -> None:
        self.logs_dir = Path(logs_dir)
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend_row_errors(self, file: str, sheet: str, errors: Iterable[RowError]) -> None:
        """Buffer parser diagnostics; row 0 entries are whole-file errors."""
        for err in errors:
            if err.row == 0:
                self.append(ErrorRecord.create(file, FILE_LEVEL_SHEET, 0, "FILE_REJECTED", err.message))
            else:
                self.append(ErrorRecord.create(file, sheet, err.row, "ROW_INVALID", err.message))

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records; returns the log path, or None when nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp

from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for reconciliation batches (tqdm, TTY only).

In non-TTY environments (CI, piped output) no bar is created so logs stay
free of ANSI control sequences.
"""

__all__ = [
    "BatchProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class BatchProgress:
    """One progress bar per upload, advanced once per committed batch."""

    def __init__(self, total_records: int, *, description: str = "Upserting") -> None:
        self.total_records = total_records
        self.description = description
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_records,
                desc=description,
                unit="row",
                leave=True,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, rows: int, **postfix: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(rows)
            if postfix:
                self.pbar.set_postfix(**postfix)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> BatchProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Any

import pandas as pd

"""Workbook reader.

Only the first sheet is read. Row 1 is the header row, everything below it
is data. Cells are read raw (dtype=object, no NA-string conversion) so that
coercion decides what a cell means: "NA" stays text, dates stay datetimes,
numbers stay numbers.
"""

__all__ = [
    "WorkbookReadError",
    "NoSheetsError",
    "SheetData",
    "read_first_sheet",
]


class WorkbookReadError(Exception):
    """Raised when the bytes cannot be opened as an Excel workbook."""


class NoSheetsError(WorkbookReadError):
    """Raised when the workbook contains no sheets."""


@dataclass
class SheetData:
    sheet_name: str
    header: list[Any]
    rows: list[list[Any]]  # data rows, header excluded, original order


def read_first_sheet(data: bytes) -> SheetData:
    """Read the first sheet of an .xlsx/.xls workbook given as bytes.

    An empty sheet yields header=[] and rows=[].
    """
    try:
        xls = pd.ExcelFile(BytesIO(data))
    except ImportError:
        # 読み込みエンジン (openpyxl / xlrd) 未インストールは設定不備として伝播
        raise
    except Exception as e:
        raise WorkbookReadError(f"Could not read workbook: {e}") from e

    with xls:
        if not xls.sheet_names:
            raise NoSheetsError("Workbook has no sheets.")
        name = str(xls.sheet_names[0])
        try:
            df = xls.parse(xls.sheet_names[0], header=None, dtype=object, keep_default_na=False)
        except Exception as e:
            raise WorkbookReadError(f"Could not read sheet '{name}': {e}") from e

    if df.shape[0] == 0:
        return SheetData(sheet_name=name, header=[], rows=[])
    header = df.iloc[0].tolist()
    rows = [list(r) for r in df.iloc[1:].itertuples(index=False, name=None)]
    return SheetData(sheet_name=name, header=header, rows=rows)

from __future__ import annotations

from io import BytesIO

import pandas as pd
import pytest

from compost_ingest.excel.reader import WorkbookReadError, read_first_sheet


def test_read_first_sheet_only(make_workbook):
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame([["h1", "h2"], [1, "a"]]).to_excel(writer, sheet_name="First", header=False, index=False)
        pd.DataFrame([["x"], [2]]).to_excel(writer, sheet_name="Second", header=False, index=False)
    sheet = read_first_sheet(buf.getvalue())
    assert sheet.sheet_name == "First"
    assert sheet.header == ["h1", "h2"]
    assert sheet.rows == [[1, "a"]]


def test_na_strings_kept_as_text(make_workbook):
    sheet = read_first_sheet(make_workbook([["Location"], ["NA"], ["null"]]))
    assert sheet.rows == [["NA"], ["null"]]


def test_empty_sheet(make_workbook):
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame().to_excel(writer, sheet_name="Empty", header=False, index=False)
    sheet = read_first_sheet(buf.getvalue())
    assert sheet.header == []
    assert sheet.rows == []


def test_garbage_bytes_raise():
    with pytest.raises(WorkbookReadError):
        read_first_sheet(b"\x00\x01not-an-excel-file")

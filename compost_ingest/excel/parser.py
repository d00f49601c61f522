from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..config.columns import DEFAULT_COLUMNS, LogicalColumn
from ..config.loader import DEFAULT_MAX_ROWS
from ..models.records import ParseResult, RowError, ValidatedRecord
from .coercion import is_blank
from .headers import HeaderLookup, HeaderResolutionError, resolve_headers
from .reader import WorkbookReadError, read_first_sheet
from .validation import RowValidationError, coerce_row, validate_row

"""Workbook parser: bytes -> ParseResult.

Whole-file problems (unreadable file, no sheet, empty sheet, too many rows,
missing columns) return immediately with a single row-0 error and no records.
Otherwise every data row is folded independently into records or errors;
nothing raised by a row stops the parse.
"""

__all__ = [
    "parse_workbook",
    "parse_rows",
]

logger = logging.getLogger(__name__)

_DEFAULT_LOOKUP = HeaderLookup(DEFAULT_COLUMNS)


def _fatal(message: str) -> ParseResult:
    return ParseResult(records=[], errors=[RowError(row=0, message=message)], header_map={})


def _parse_row(
    row_number: int, cells: dict[str, Any], columns: Sequence[LogicalColumn]
) -> ValidatedRecord | RowError | None:
    if all(is_blank(v) for v in cells.values()):
        return None  # 完全空行: 記録もエラーも生成しない
    try:
        return validate_row(coerce_row(cells), columns)
    except RowValidationError as e:
        return RowError(row=row_number, message=str(e) or "Invalid row.")


def parse_rows(
    header: Sequence[Any],
    rows: Sequence[Sequence[Any]],
    lookup: HeaderLookup = _DEFAULT_LOOKUP,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    strict_headers: bool = False,
    sheet_name: str = "",
) -> ParseResult:
    """Parse already-read sheet content (header row + data rows)."""
    if not rows:
        return _fatal("Sheet is empty.")
    if len(rows) > max_rows:
        return _fatal(f"Too many rows ({len(rows)}). Max supported is {max_rows}.")
    try:
        resolution = resolve_headers(header, lookup, strict=strict_headers)
    except HeaderResolutionError as e:
        return _fatal(str(e))
    for warning in resolution.warnings:
        logger.warning(warning)

    records: list[ValidatedRecord] = []
    errors: list[RowError] = []
    for idx, raw in enumerate(rows):
        cells = {
            key: (raw[pos] if pos < len(raw) else None)
            for key, pos in resolution.positions.items()
        }
        outcome = _parse_row(idx + 1, cells, lookup.columns)
        if outcome is None:
            continue
        if isinstance(outcome, RowError):
            errors.append(outcome)
        else:
            records.append(outcome)

    logger.debug(
        "parsed rows=%d records=%d errors=%d", len(rows), len(records), len(errors)
    )
    return ParseResult(
        records=records,
        errors=errors,
        header_map=dict(resolution.mapping),
        header_warnings=list(resolution.warnings),
        sheet_name=sheet_name,
    )


def parse_workbook(
    data: bytes,
    columns: Sequence[LogicalColumn] = DEFAULT_COLUMNS,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    strict_headers: bool = False,
) -> ParseResult:
    """Parse the first sheet of an uploaded workbook.

    Parameters
    ----------
    data: raw .xlsx/.xls bytes
    columns: logical column table (canonical names + aliases)
    max_rows: hard cap on data rows; larger sheets are rejected whole
    strict_headers: treat duplicate headers for one column as a whole-file error
    """
    lookup = _DEFAULT_LOOKUP if tuple(columns) == DEFAULT_COLUMNS else HeaderLookup(columns)
    try:
        sheet = read_first_sheet(data)
    except WorkbookReadError as e:
        return _fatal(str(e))
    return parse_rows(
        sheet.header,
        sheet.rows,
        lookup,
        max_rows=max_rows,
        strict_headers=strict_headers,
        sheet_name=sheet.sheet_name,
    )

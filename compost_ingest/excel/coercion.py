from __future__ import annotations

import math
import numbers
import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

import pandas as pd
from dateutil import parser as date_parser

"""Cell coercers: raw workbook cell -> typed value.

Pure functions. Failures raise CoercionError; the row validator turns them
into per-row messages.

Date coercion runs DATE_STRATEGIES in order. A strategy returns None when it
does not apply to the value, a date on success, and raises CoercionError when
the value is its shape but not a real calendar day (that stops the cascade).
"""

__all__ = [
    "CoercionError",
    "is_blank",
    "coerce_text",
    "coerce_number",
    "coerce_date",
    "DATE_STRATEGIES",
]

_DECIMAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DMY_DATE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{2,4})$")

# 1900 date system: serial 1 = 1900-01-01. Serial 60 is the fictitious 1900-02-29.
_SERIAL_BASE = date(1899, 12, 31)
_SERIAL_LEAP_BUG = 60

# free-text fallback: fields missing from the text come from these and differ
_FILL_A = datetime(2000, 1, 1)
_FILL_B = datetime(2001, 2, 2)


class CoercionError(ValueError):
    pass


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return True
    return str(value).strip() == ""


def coerce_text(value: Any) -> str:
    if is_blank(value):
        return ""
    return str(value).strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def coerce_number(value: Any) -> float:
    """Blank -> 0.0 (unreported measurement). Unparseable/non-finite -> CoercionError."""
    if is_blank(value):
        return 0.0
    if _is_number(value):
        n = float(value)
    else:
        s = str(value).strip()
        if not _DECIMAL.match(s):
            raise CoercionError(f"not a number: {s}")
        n = float(s)
    if not math.isfinite(n):
        raise CoercionError(f"not a finite number: {value}")
    return n


def _calendar(y: int, m: int, d: int) -> date | None:
    # date() rejects month 13 / Feb 30 etc. instead of rolling over
    try:
        return date(y, m, d)
    except ValueError:
        return None


def _from_calendar_value(value: Any) -> date | None:
    if isinstance(value, time):
        # 時刻のみのセル: 日付を持たない
        raise CoercionError(f"invalid date: {value}")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _from_serial(value: Any) -> date | None:
    if not _is_number(value) or not math.isfinite(float(value)):
        return None
    days = math.floor(float(value))  # 小数部 = 時刻, 破棄
    if days < 0 or days == _SERIAL_LEAP_BUG:
        raise CoercionError(f"invalid date: {value}")
    if days > _SERIAL_LEAP_BUG:
        days -= 1
    try:
        return _SERIAL_BASE + timedelta(days=days)
    except OverflowError as e:
        raise CoercionError(f"invalid date: {value}") from e


def _from_iso(value: Any) -> date | None:
    m = _ISO_DATE.match(str(value).strip())
    if not m:
        return None
    d = _calendar(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    if d is None:
        raise CoercionError(f"invalid date: {str(value).strip()}")
    return d


def _from_day_month_year(value: Any) -> date | None:
    m = _DMY_DATE.match(str(value).strip())
    if not m:
        return None
    first, second, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if year < 100:
        year += 2000
    # day/month/year first, then US month/day/year
    d = _calendar(year, second, first) or _calendar(year, first, second)
    if d is None:
        raise CoercionError(f"invalid date: {str(value).strip()}")
    return d


def _from_free_text(value: Any) -> date | None:
    s = str(value).strip()
    try:
        # 2 つの異なる既定値で解析し、年月日すべてが文字列由来であることを確認
        first = date_parser.parse(s, default=_FILL_A)
        second = date_parser.parse(s, default=_FILL_B)
    except (ValueError, OverflowError) as e:
        raise CoercionError(f"invalid date: {s}") from e
    if first.date() != second.date():
        raise CoercionError(f"invalid date: {s}")
    if first.tzinfo is not None:
        first = first.astimezone(timezone.utc)
    return first.date()


DATE_STRATEGIES: tuple[Callable[[Any], date | None], ...] = (
    _from_calendar_value,
    _from_serial,
    _from_iso,
    _from_day_month_year,
    _from_free_text,
)


def coerce_date(value: Any) -> date:
    """Return the calendar day (UTC) a cell represents.

    Raises:
        CoercionError: blank cell or no strategy produced a valid day
    """
    if is_blank(value):
        raise CoercionError("invalid date: (empty)")
    for strategy in DATE_STRATEGIES:
        result = strategy(value)
        if result is not None:
            return result
    raise CoercionError(f"invalid date: {value}")  # pragma: no cover - free text always decides

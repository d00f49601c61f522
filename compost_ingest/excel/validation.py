from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..config.columns import NUMERIC_KEYS, LogicalColumn, column_by_key
from ..models.records import ValidatedRecord
from .coercion import CoercionError, coerce_date, coerce_number, coerce_text, is_blank

"""Row coercion + validation.

coerce_row() runs the cell coercers over one candidate row and keeps failures
as values; validate_row() applies the field constraints and either returns a
ValidatedRecord or raises RowValidationError with one aggregated message.
"""

# composters 列は PostgreSQL INTEGER
INT4_MAX = 2**31 - 1

__all__ = [
    "RowValidationError",
    "CoercedRow",
    "coerce_row",
    "validate_row",
]


class RowValidationError(Exception):
    pass


@dataclass(frozen=True)
class CoercedRow:
    location: str
    visit_date: date | CoercionError
    raw_visit_date: Any
    numbers: dict[str, float | CoercionError]


def coerce_row(candidate: Mapping[str, Any]) -> CoercedRow:
    try:
        visit: date | CoercionError = coerce_date(candidate.get("visit_date"))
    except CoercionError as e:
        visit = e
    numbers: dict[str, float | CoercionError] = {}
    for key in NUMERIC_KEYS:
        try:
            numbers[key] = coerce_number(candidate.get(key))
        except CoercionError as e:
            numbers[key] = e
    return CoercedRow(
        location=coerce_text(candidate.get("location")),
        visit_date=visit,
        raw_visit_date=candidate.get("visit_date"),
        numbers=numbers,
    )


def _non_negative(n: float) -> str | None:
    return None if n >= 0 else "must be greater than or equal to 0"


def _non_negative_int(n: float) -> str | None:
    if not float(n).is_integer():
        return "must be a whole number"
    if n > INT4_MAX:
        return f"must be less than or equal to {INT4_MAX}"
    return _non_negative(n)


FIELD_CONSTRAINTS: dict[str, Callable[[float], str | None]] = {
    "composters": _non_negative_int,
    "wet_waste_kg": _non_negative,
    "brown_waste_kg": _non_negative,
    "leachate_l": _non_negative,
    "harvest_kg": _non_negative,
}


def _raw_text(value: Any) -> str:
    return "(empty)" if is_blank(value) else str(value).strip()


def validate_row(row: CoercedRow, columns: Sequence[LogicalColumn]) -> ValidatedRecord:
    """Apply field constraints.

    An invalid date is reported alone; otherwise every failing field is listed.

    Raises:
        RowValidationError: message is ready for display
    """
    if isinstance(row.visit_date, CoercionError):
        date_name = column_by_key(columns, "visit_date").canonical
        raise RowValidationError(f"Invalid {date_name}: {_raw_text(row.raw_visit_date)}")

    problems: list[str] = []
    if not row.location:
        problems.append(f"{column_by_key(columns, 'location').canonical}: must not be empty")
    values: dict[str, float] = {}
    for key in NUMERIC_KEYS:
        name = column_by_key(columns, key).canonical
        value = row.numbers[key]
        if isinstance(value, CoercionError):
            problems.append(f"{name}: {value}")
            continue
        problem = FIELD_CONSTRAINTS[key](value)
        if problem:
            problems.append(f"{name}: {problem}")
            continue
        values[key] = value
    if problems:
        raise RowValidationError("; ".join(problems))

    return ValidatedRecord(
        location=row.location,
        visit_date=row.visit_date,
        composters=int(values["composters"]),
        wet_waste_kg=values["wet_waste_kg"],
        brown_waste_kg=values["brown_waste_kg"],
        leachate_l=values["leachate_l"],
        harvest_kg=values["harvest_kg"],
    )

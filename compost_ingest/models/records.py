from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

"""Parse-side domain models.

ValidatedRecord is the typed row that survives coercion + validation.
RowError pairs a 1-based data row index (header excluded) with a reason;
row 0 marks a whole-file error.
"""

__all__ = [
    "ValidatedRecord",
    "RowError",
    "ParseResult",
]


@dataclass(frozen=True)
class ValidatedRecord:
    """One field visit, keyed by (location, visit_date)."""
    location: str  # trim 済・空文字不可
    visit_date: date  # UTC midnight (日付のみ保持)
    composters: int
    wet_waste_kg: float
    brown_waste_kg: float
    leachate_l: float
    harvest_kg: float

    @property
    def key(self) -> tuple[str, date]:
        return (self.location, self.visit_date)

    def measurements(self) -> tuple[int, float, float, float, float]:
        return (
            self.composters,
            self.wet_waste_kg,
            self.brown_waste_kg,
            self.leachate_l,
            self.harvest_kg,
        )


@dataclass(frozen=True)
class RowError:
    row: int
    message: str


@dataclass(frozen=True)
class ParseResult:
    """Aggregate output of the workbook parser.

    records and errors keep original row order. header_map is empty when
    parsing stopped on a whole-file error.
    """
    records: list[ValidatedRecord] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    header_map: dict[str, str] = field(default_factory=dict)
    header_warnings: list[str] = field(default_factory=list)
    sheet_name: str = ""

    @property
    def fatal(self) -> bool:
        return any(e.row == 0 for e in self.errors)

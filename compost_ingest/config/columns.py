from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

"""Logical column table for field-visit workbooks.

The seven required columns are fixed. Only their accepted spellings
(canonical name + aliases) are configurable; see config/loader.py.
"""

__all__ = [
    "LogicalColumn",
    "DEFAULT_COLUMNS",
    "LOGICAL_KEYS",
    "NUMERIC_KEYS",
    "column_by_key",
]


@dataclass(frozen=True)
class LogicalColumn:
    key: str  # 内部フィールド名 (ValidatedRecord の属性名)
    canonical: str  # エクスポートで使われる正式ヘッダ
    aliases: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return (self.canonical, *self.aliases)


DEFAULT_COLUMNS: tuple[LogicalColumn, ...] = (
    LogicalColumn(
        "location",
        "Name of the Project Location",
        ("Project Location", "Location", "Location Name", "Site"),
    ),
    LogicalColumn("visit_date", "Date of Visit", ("Visit Date", "Date")),
    LogicalColumn(
        "composters",
        "No. of composters",
        ("No of composters", "Number of composters", "Composters"),
    ),
    LogicalColumn(
        "wet_waste_kg",
        "Sum of Wet Waste (Kg)",
        ("Wet Waste (Kg)", "Wet Waste", "Wet Waste Kg"),
    ),
    LogicalColumn(
        "brown_waste_kg",
        "Sum of Brown Waste (Kg)",
        ("Brown Waste (Kg)", "Brown Waste", "Brown Waste Kg"),
    ),
    LogicalColumn(
        "leachate_l",
        "Sum of Leachate (Litre)",
        ("Leachate (Litre)", "Leachate (L)", "Leachate"),
    ),
    LogicalColumn(
        "harvest_kg",
        "Sum of Harvest (Kg)",
        ("Harvest (Kg)", "Harvest", "Harvest Kg"),
    ),
)

LOGICAL_KEYS: tuple[str, ...] = tuple(c.key for c in DEFAULT_COLUMNS)

# 数値列 (composters は整数制約あり)
NUMERIC_KEYS: tuple[str, ...] = (
    "composters",
    "wet_waste_kg",
    "brown_waste_kg",
    "leachate_l",
    "harvest_kg",
)


def column_by_key(columns: Sequence[LogicalColumn], key: str) -> LogicalColumn:
    for col in columns:
        if col.key == key:
            return col
    raise KeyError(key)

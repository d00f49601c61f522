from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..config.columns import LogicalColumn

"""Header resolution: literal file headers -> logical columns.

Matching is case/whitespace-insensitive against each column's canonical
name and aliases. The column table is passed in, so alternate alias sets
need no process state.
"""

__all__ = [
    "HeaderResolutionError",
    "MissingColumnsError",
    "DuplicateColumnsError",
    "HeaderResolution",
    "HeaderLookup",
    "normalize_header",
    "resolve_headers",
]

_WS = re.compile(r"\s+")


class HeaderResolutionError(Exception):
    """Base class for whole-file header failures."""


class MissingColumnsError(HeaderResolutionError):
    """Raised when one or more required columns are absent. Lists all of them."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class DuplicateColumnsError(HeaderResolutionError):
    """Raised in strict mode when two headers resolve to the same column."""

    def __init__(self, duplicates: Sequence[str]) -> None:
        self.duplicates = list(duplicates)
        super().__init__(f"Duplicate columns: {'; '.join(self.duplicates)}")


def normalize_header(header: Any) -> str:
    if header is None:
        return ""
    return _WS.sub(" ", str(header).strip()).lower()


class HeaderLookup:
    """Read-only normalized name -> LogicalColumn table for one column set."""

    def __init__(self, columns: Sequence[LogicalColumn]) -> None:
        self.columns = tuple(columns)
        table: dict[str, LogicalColumn] = {}
        for col in self.columns:
            for name in col.names:
                norm = normalize_header(name)
                owner = table.get(norm)
                if owner is not None and owner.key != col.key:
                    raise ValueError(
                        f"header name '{name}' is claimed by both {owner.key} and {col.key}"
                    )
                table[norm] = col
        self._table = table

    def match(self, header: Any) -> LogicalColumn | None:
        return self._table.get(normalize_header(header))


@dataclass(frozen=True)
class HeaderResolution:
    mapping: dict[str, str]  # logical key -> literal header
    positions: dict[str, int]  # logical key -> column index in file
    warnings: list[str] = field(default_factory=list)


def resolve_headers(
    headers: Iterable[Any], lookup: HeaderLookup, *, strict: bool = False
) -> HeaderResolution:
    """Resolve literal headers in file order; first unclaimed match wins.

    Raises:
        MissingColumnsError: any logical column unresolved (all are named)
        DuplicateColumnsError: strict=True and a column matched twice
    """
    mapping: dict[str, str] = {}
    positions: dict[str, int] = {}
    duplicates: list[str] = []
    for idx, header in enumerate(headers):
        col = lookup.match(header)
        if col is None:
            continue
        if col.key in mapping:
            duplicates.append(f"duplicate column for {col.canonical}: '{header}' ignored")
            continue
        mapping[col.key] = str(header)
        positions[col.key] = idx

    missing = [c.canonical for c in lookup.columns if c.key not in mapping]
    if missing:
        raise MissingColumnsError(missing)
    if duplicates and strict:
        raise DuplicateColumnsError(duplicates)
    return HeaderResolution(mapping=mapping, positions=positions, warnings=duplicates)

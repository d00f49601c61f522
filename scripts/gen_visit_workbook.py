#!/usr/bin/env python3
"""Synthetic field-visit workbook generator (sample data / performance runs).

The generated workbook uses the export layout the ingestion engine expects:
- Row 1: header row with the seven canonical column names
- Row 2+: one visit per row

Optionally sprinkles in blank rows and invalid rows so the per-row error
path can be exercised.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

HEADERS = [
    "Name of the Project Location",
    "Date of Visit",
    "No. of composters",
    "Sum of Wet Waste (Kg)",
    "Sum of Brown Waste (Kg)",
    "Sum of Leachate (Litre)",
    "Sum of Harvest (Kg)",
]

LOCATIONS = [
    "Manav Rachna University",
    "Sector 21 RWA",
    "Green Valley School",
    "City Hospital Canteen",
    "Lakeview Apartments",
]


def generate_visits(rows: int, invalid_ratio: float = 0.0, blank_ratio: float = 0.0, seed: int = 42) -> pd.DataFrame:
    """Build a DataFrame of visits with realistic measurement ranges."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2025-01-01", periods=max(1, rows // len(LOCATIONS) + 1), freq="D")

    data = {
        HEADERS[0]: [LOCATIONS[i % len(LOCATIONS)] for i in range(rows)],
        HEADERS[1]: [dates[i // len(LOCATIONS)].strftime("%d-%m-%Y") for i in range(rows)],
        HEADERS[2]: rng.integers(1, 12, rows).tolist(),
        HEADERS[3]: np.round(rng.uniform(0, 80, rows), 1).tolist(),
        HEADERS[4]: np.round(rng.uniform(0, 10, rows), 1).tolist(),
        HEADERS[5]: np.round(rng.uniform(0, 3, rows), 2).tolist(),
        HEADERS[6]: np.round(rng.uniform(0, 20, rows), 1).tolist(),
    }
    df = pd.DataFrame(data, dtype=object)

    if invalid_ratio > 0:
        bad = rng.random(rows) < invalid_ratio
        df.loc[bad, HEADERS[1]] = "31-02-2025"
    if blank_ratio > 0:
        blank = rng.random(rows) < blank_ratio
        df.loc[blank, :] = ""
    return df


def create_workbook(output_path: Path, df: pd.DataFrame, sheet_name: str = "Visits") -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, header=True, index=False)
    print(f"Created workbook: {output_path}")
    print(f"  Rows: {len(df):,} (+ 1 header row)")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic composting field-visit workbooks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 1,000 clean visits
  %(prog)s visits.xlsx --rows 1000

  # Right at the engine row cap, with 1%% invalid dates and 2%% blank rows
  %(prog)s big.xlsx --rows 50000 --invalid-ratio 0.01 --blank-ratio 0.02
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of data rows (default: 1,000)")
    parser.add_argument("--invalid-ratio", type=float, default=0.0, help="Share of rows with an impossible date")
    parser.add_argument("--blank-ratio", type=float, default=0.0, help="Share of fully blank rows")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    for name in ("invalid_ratio", "blank_ratio"):
        if not 0 <= getattr(args, name) <= 1:
            print(f"Error: --{name.replace('_', '-')} must be between 0 and 1", file=sys.stderr)
            return 1

    df = generate_visits(args.rows, args.invalid_ratio, args.blank_ratio, args.seed)
    try:
        create_workbook(args.output, df)
    except OSError as e:
        print(f"Error writing workbook: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

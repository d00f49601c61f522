from __future__ import annotations

from ..models.outcome import IngestionOutcome

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(file_name: str, outcome: IngestionOutcome) -> str:
    """Render the SUMMARY line for one upload.

    Format:
    SUMMARY file={name} created={n} updated={n} skipped={n} batches={n} elapsed_sec={x}

    Examples:
        >>> render_summary_line("visits.xlsx", IngestionOutcome(created=3, updated=1, batches=1))
        'SUMMARY file=visits.xlsx created=3 updated=1 skipped=0 batches=1 elapsed_sec=0'
    """
    return (
        f"SUMMARY file={file_name} "
        f"created={outcome.created} "
        f"updated={outcome.updated} "
        f"skipped={outcome.skipped} "
        f"batches={outcome.batches} "
        f"elapsed_sec={_format_seconds(outcome.elapsed_seconds)}"
    )

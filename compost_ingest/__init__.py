"""Workbook ingestion & reconciliation engine for composting field-visit exports."""

__version__ = "0.1.0"

"""Reporting package — CSV, JSON and console output."""

from .csv_export import ExportError, export_csv
from .json_export import export_json
from .console import format_summary, print_summary

__all__ = [
    "ExportError",
    "export_csv",
    "export_json",
    "format_summary",
    "print_summary",
]

"""
CSV exporter — one row per assignment record, sorted by category and policy name.
"""

from __future__ import annotations

import csv
from pathlib import Path

from ..assignments.aggregator import RecordAggregator
from ..assignments.models import REPORT_COLUMNS


class ExportError(Exception):
    """Raised when a report file cannot be written."""
    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Failed to write {path}: {reason}")


def export_csv(aggregator: RecordAggregator, path: Path) -> Path:
    """
    Write the aggregate to a CSV file.

    Returns:
        Path to the created CSV file.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="", encoding="utf-8-sig") as fh:
            writer = csv.DictWriter(fh, fieldnames=REPORT_COLUMNS)
            writer.writeheader()
            for record in aggregator.sorted_records():
                writer.writerow(record.to_row())
    except OSError as e:
        raise ExportError(path, str(e)) from e
    return path

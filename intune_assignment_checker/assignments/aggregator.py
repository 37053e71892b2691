"""
Record aggregator — the run's single, append-only collection of assignment
records, plus the summary the reports are built from.
"""

from __future__ import annotations

from typing import Iterable

from .models import AggregateSummary, AssignmentRecord, AssignmentType, CategoryCounts


class RecordAggregator:
    """Keeps records in arrival order; sorting happens only at export time."""

    def __init__(self):
        self._records: list[AssignmentRecord] = []

    def append(self, record: AssignmentRecord):
        self._records.append(record)

    def extend(self, records: Iterable[AssignmentRecord]):
        self._records.extend(records)

    @property
    def records(self) -> tuple[AssignmentRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def sorted_records(self) -> list[AssignmentRecord]:
        """Records ordered by (category, policy name)."""
        return sorted(self._records, key=lambda r: r.sort_key)

    def summary(self) -> AggregateSummary:
        summary = AggregateSummary(total=len(self._records))
        for record in self._records:
            counts = summary.per_category.setdefault(record.category, CategoryCounts())
            if record.assignment_type is AssignmentType.EXCLUDED:
                counts.excluded += 1
            else:
                counts.included += 1
        return summary

"""
Console summary — totals, per-category counts and the full sorted listing.
"""

from __future__ import annotations

from typing import Callable

from ..assignments.aggregator import RecordAggregator
from ..assignments.models import Group


def format_summary(aggregator: RecordAggregator, group: Group) -> list[str]:
    summary = aggregator.summary()
    lines = [
        f"Assignments for group '{group.display_name}' ({group.id})",
        f"Total assignments: {summary.total}",
        "",
    ]
    for category, counts in summary.per_category.items():
        lines.append(f"  {category}: {counts.included} included, {counts.excluded} excluded")

    records = aggregator.sorted_records()
    if records:
        lines.append("")
        lines.append(f"  {'Category':<36s} {'Policy':<40s} {'Platform':<22s} {'Type':<9s} Intent")
        lines.append(f"  {'─'*36} {'─'*40} {'─'*22} {'─'*9} {'─'*10}")
        for r in records:
            lines.append(
                f"  {r.category:<36s} {r.policy_name:<40s} {r.platform:<22s} "
                f"{r.assignment_type.value:<9s} {r.intent}"
            )
    return lines


def print_summary(
    aggregator: RecordAggregator,
    group: Group,
    out: Callable[[str], None] = print,
):
    for line in format_summary(aggregator, group):
        out(line)

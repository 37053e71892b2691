"""
Assignment filter — narrows a resource's raw assignments to the target group
and classifies each one as an inclusion or exclusion.
"""

from __future__ import annotations

from typing import Iterable

from .models import FilteredAssignment, RawAssignmentTarget

DEFAULT_APP_INTENT = "available"


def filter_assignments(
    raw_assignments: Iterable[dict],
    group_id: str,
    carries_intent: bool = False,
) -> list[FilteredAssignment]:
    """
    Keep assignments whose target groupId equals group_id (exact match).

    When carries_intent is set (applications), the assignment's intent is
    passed through, defaulting to "available"; other categories get None.
    """
    matched = []
    for assignment in raw_assignments:
        target = RawAssignmentTarget.from_assignment(assignment)
        if target.group_id is None or target.group_id != group_id:
            continue
        intent = None
        if carries_intent:
            intent = assignment.get("intent") or DEFAULT_APP_INTENT
        matched.append(FilteredAssignment(is_exclusion=target.is_exclusion, intent=intent))
    return matched

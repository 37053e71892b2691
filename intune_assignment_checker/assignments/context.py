"""
Run context — everything one checker run shares, passed explicitly to each
collector instead of living in module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from ..config import CheckerConfig
from ..graph.client import GraphClient
from .aggregator import RecordAggregator
from .dispatcher import ResourceTypeDispatcher
from .models import AssignmentRecord, FilteredAssignment, Group, ResourceDescriptor


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunContext:
    graph: GraphClient
    group: Group
    config: CheckerConfig = field(default_factory=CheckerConfig)
    aggregator: RecordAggregator = field(default_factory=RecordAggregator)
    clock: Callable[[], datetime] = _utcnow
    dispatcher: Optional[ResourceTypeDispatcher] = None

    def __post_init__(self):
        if self.dispatcher is None:
            self.dispatcher = ResourceTypeDispatcher(self.graph)

    def make_record(
        self,
        category: str,
        resource: ResourceDescriptor,
        platform: str,
        assignment: FilteredAssignment,
    ) -> AssignmentRecord:
        return AssignmentRecord(
            group_id=self.group.id,
            group_name=self.group.display_name,
            category=category,
            policy_name=resource.display_name,
            policy_id=resource.id,
            platform=platform,
            assignment_type=assignment.assignment_type,
            intent=assignment.intent or "N/A",
            collected_at=self.clock(),
        )

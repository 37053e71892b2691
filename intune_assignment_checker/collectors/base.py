"""
Base collector class — one collector per resource category.

A collector lists its category's resources, resolves each resource's
assignment endpoint, keeps the assignments that target the run's group and
turns them into AssignmentRecords. Failed Graph calls are recorded in the
result metadata and simply contribute no records.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..assignments.context import RunContext
from ..assignments.filters import filter_assignments
from ..assignments.models import (
    AssignmentRecord,
    ResourceCategory,
    ResourceDescriptor,
)
from ..assignments.platforms import platform_for
from ..graph.client import GraphAPIError

logger = logging.getLogger("intune_assignment_checker.collectors")


class CollectorResult:
    """Records and diagnostics from one category traversal."""

    def __init__(self, collector_name: str):
        self.collector_name = collector_name
        self.records: list[AssignmentRecord] = []
        self.metadata: dict[str, Any] = {
            "collector": collector_name,
            "started_at": None,
            "completed_at": None,
            "duration_seconds": 0,
            "resources_listed": 0,
            "records_collected": 0,
            "endpoints_queried": 0,
            "failed_requests": 0,
            "warnings": [],
            "skipped_resources": [],
        }

    def add_records(self, records: list[AssignmentRecord]):
        self.records.extend(records)
        self.metadata["records_collected"] += len(records)

    def add_warning(self, warning: str):
        self.metadata["warnings"].append(warning)
        logger.warning(f"[{self.collector_name}] {warning}")

    def add_failure(self, error: GraphAPIError):
        self.metadata["failed_requests"] += 1
        self.add_warning(f"Request failed: {error}")

    def add_skipped(self, resource: ResourceDescriptor, reason: str):
        self.metadata["skipped_resources"].append({
            "id": resource.id,
            "displayName": resource.display_name,
            "reason": reason,
        })
        logger.info(f"[{self.collector_name}] Skipped {resource.display_name}: {reason}")

    @property
    def failed(self) -> bool:
        return self.metadata["failed_requests"] > 0


class CategoryCollector(ABC):
    """
    Abstract base class for all category collectors.

    Subclasses name their category and implement list_resources(); the base
    class handles dispatch, filtering, labelling, timing and aggregation.
    """

    name: str = "base"
    category: ResourceCategory
    carries_intent: bool = False

    def __init__(self, context: RunContext):
        self.context = context

    @property
    def graph(self):
        return self.context.graph

    @property
    def dispatcher(self):
        return self.context.dispatcher

    async def execute(self) -> CollectorResult:
        """
        Run the traversal and append its records to the run's aggregator.
        """
        result = CollectorResult(self.name)
        result.metadata["started_at"] = time.time()
        logger.info(f"[{self.name}] Collecting {self.category.label} assignments...")

        await self.collect(result)
        self.context.aggregator.extend(result.records)

        result.metadata["completed_at"] = time.time()
        result.metadata["duration_seconds"] = round(
            result.metadata["completed_at"] - result.metadata["started_at"], 2
        )
        logger.info(
            f"[{self.name}] Completed in {result.metadata['duration_seconds']}s — "
            f"{len(result.records)} records"
        )
        return result

    async def collect(self, result: CollectorResult):
        resources = await self.list_resources(result)
        result.metadata["resources_listed"] = len(resources)

        if self.context.config.parallel_resources:
            # gather keeps submission order, so records stay in listing order
            batches = await asyncio.gather(
                *(self.collect_resource(r, result) for r in resources)
            )
        else:
            batches = [await self.collect_resource(r, result) for r in resources]

        for records in batches:
            result.add_records(records)

    @abstractmethod
    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        raise NotImplementedError

    def category_label(self, resource: ResourceDescriptor) -> str:
        return self.category.label

    def platform(self, resource: ResourceDescriptor) -> str:
        return platform_for(self.category, resource)

    async def collect_resource(
        self,
        resource: ResourceDescriptor,
        result: CollectorResult,
    ) -> list[AssignmentRecord]:
        try:
            url = await self.dispatcher.assignments_url_for(self.category, resource)
        except GraphAPIError as e:
            result.add_failure(e)
            return []
        if url is None:
            result.add_skipped(resource, "no assignment endpoint for resource type")
            return []

        assignments = await self.safe_get_all(url, result)
        matches = filter_assignments(
            assignments,
            self.context.group.id,
            carries_intent=self.carries_intent,
        )
        if not matches:
            return []

        label = self.category_label(resource)
        platform = self.platform(resource)
        return [
            self.context.make_record(label, resource, platform, match)
            for match in matches
        ]

    async def safe_get_all(
        self,
        endpoint: str,
        result: CollectorResult,
        params: Optional[dict] = None,
    ) -> list[dict]:
        """Get all pages; a failure is recorded and whatever was read is returned."""
        fetched = await self.graph.get_all_pages(endpoint, params=params, beta=True)
        result.metadata["endpoints_queried"] += 1
        if fetched.error is not None:
            result.add_failure(fetched.error)
        return fetched.items

    async def list_descriptors(
        self,
        endpoint: str,
        result: CollectorResult,
        params: Optional[dict] = None,
        **extra: Any,
    ) -> list[ResourceDescriptor]:
        items = await self.safe_get_all(endpoint, result, params=params)
        return [
            ResourceDescriptor.from_graph(item, **extra)
            for item in items
            if item.get("id")
        ]

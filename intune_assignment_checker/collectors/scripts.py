"""
Script collector — platform scripts and proactive remediations.
"""

from __future__ import annotations

from ..assignments.models import ResourceCategory, ResourceDescriptor, ScriptKind
from .base import CategoryCollector, CollectorResult


class ScriptCollector(CategoryCollector):
    name = "scripts"
    category = ResourceCategory.SCRIPT

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        resources = []
        for kind in ScriptKind:
            resources.extend(await self.list_descriptors(
                self.dispatcher.listing_url(self.category, script_kind=kind),
                result,
                script_kind=kind,
            ))
        return resources

    def category_label(self, resource: ResourceDescriptor) -> str:
        return (resource.script_kind or ScriptKind.POWERSHELL).value

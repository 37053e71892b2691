"""
App protection, app configuration and mobile app collectors.
"""

from __future__ import annotations

from ..assignments.models import ResourceCategory, ResourceDescriptor
from .base import CategoryCollector, CollectorResult


class AppProtectionCollector(CategoryCollector):
    """
    MAM policies are listed from the shared managedAppPolicies collection;
    the dispatcher fetches each policy's detail record to find the
    platform-specific assignment endpoint.
    """
    name = "app_protection"
    category = ResourceCategory.APP_PROTECTION_POLICY

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        return await self.list_descriptors(self.dispatcher.listing_url(self.category), result)


class AppConfigurationCollector(CategoryCollector):
    name = "app_configuration"
    category = ResourceCategory.APP_CONFIGURATION_POLICY

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        return await self.list_descriptors(self.dispatcher.listing_url(self.category), result)


class ApplicationCollector(CategoryCollector):
    name = "applications"
    category = ResourceCategory.APPLICATION
    carries_intent = True

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        # Unassigned apps cannot target the group
        return await self.list_descriptors(
            self.dispatcher.listing_url(self.category),
            result,
            params={"$filter": "isAssigned eq true"},
        )

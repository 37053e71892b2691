"""
Device configuration, settings catalog and compliance policy collectors.
"""

from __future__ import annotations

from ..assignments.models import ResourceCategory, ResourceDescriptor
from .base import CategoryCollector, CollectorResult


class DeviceConfigurationCollector(CategoryCollector):
    name = "device_configuration"
    category = ResourceCategory.DEVICE_CONFIGURATION

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        return await self.list_descriptors(
            self.dispatcher.listing_url(self.category),
            result,
            params={"$select": "id,displayName"},
        )


class SettingsCatalogCollector(CategoryCollector):
    name = "settings_catalog"
    category = ResourceCategory.SETTINGS_CATALOG

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        return await self.list_descriptors(
            self.dispatcher.listing_url(self.category),
            result,
            params={"$select": "id,name,platforms"},
        )


class CompliancePolicyCollector(CategoryCollector):
    name = "compliance_policy"
    category = ResourceCategory.COMPLIANCE_POLICY

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        return await self.list_descriptors(
            self.dispatcher.listing_url(self.category),
            result,
            params={"$select": "id,displayName"},
        )

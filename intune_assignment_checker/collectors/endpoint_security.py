"""
Endpoint security collector — intents, labelled by template family.
"""

from __future__ import annotations

from ..assignments.models import ResourceCategory, ResourceDescriptor
from ..assignments.platforms import endpoint_security_category
from .base import CategoryCollector, CollectorResult


class EndpointSecurityCollector(CategoryCollector):
    name = "endpoint_security"
    category = ResourceCategory.ENDPOINT_SECURITY_POLICY

    async def list_resources(self, result: CollectorResult) -> list[ResourceDescriptor]:
        return await self.list_descriptors(self.dispatcher.listing_url(self.category), result)

    def category_label(self, resource: ResourceDescriptor) -> str:
        return endpoint_security_category(resource.template_id)

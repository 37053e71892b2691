"""
Resource type dispatcher — maps a resource category to its listing endpoint
and to the assignment endpoint for a given resource.

App protection policies share one collection (managedAppPolicies) but their
assignments live under the concrete Android/iOS/Windows collections, so the
dispatcher first reads the policy's own @odata.type to pick the right one.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..graph.client import GraphClient
from .models import (
    AppProtectionSubtype,
    ResourceCategory,
    ResourceDescriptor,
    ScriptKind,
)

logger = logging.getLogger("intune_assignment_checker.dispatcher")

LISTING_ENDPOINTS: dict[ResourceCategory, str] = {
    ResourceCategory.DEVICE_CONFIGURATION: "deviceManagement/deviceConfigurations",
    ResourceCategory.SETTINGS_CATALOG: "deviceManagement/configurationPolicies",
    ResourceCategory.COMPLIANCE_POLICY: "deviceManagement/deviceCompliancePolicies",
    ResourceCategory.APP_PROTECTION_POLICY: "deviceAppManagement/managedAppPolicies",
    ResourceCategory.APP_CONFIGURATION_POLICY: "deviceAppManagement/mobileAppConfigurations",
    ResourceCategory.APPLICATION: "deviceAppManagement/mobileApps",
    ResourceCategory.ENDPOINT_SECURITY_POLICY: "deviceManagement/intents",
}

SCRIPT_LISTING_ENDPOINTS: dict[ScriptKind, str] = {
    ScriptKind.POWERSHELL: "deviceManagement/deviceManagementScripts",
    ScriptKind.PROACTIVE_REMEDIATION: "deviceManagement/deviceHealthScripts",
}

APP_PROTECTION_ASSIGNMENT_COLLECTIONS: dict[AppProtectionSubtype, str] = {
    AppProtectionSubtype.ANDROID: "deviceAppManagement/androidManagedAppProtections",
    AppProtectionSubtype.IOS: "deviceAppManagement/iosManagedAppProtections",
    AppProtectionSubtype.WINDOWS: "deviceAppManagement/windowsManagedAppProtections",
}


class ResourceTypeDispatcher:
    """Builds assignment URLs; all device-management traffic goes to beta."""

    def __init__(self, graph: GraphClient):
        self.graph = graph

    def listing_url(
        self,
        category: ResourceCategory,
        script_kind: Optional[ScriptKind] = None,
    ) -> str:
        if category is ResourceCategory.SCRIPT:
            if script_kind is None:
                raise ValueError("Script listings need a ScriptKind")
            return self.graph.build_url(SCRIPT_LISTING_ENDPOINTS[script_kind], beta=True)
        return self.graph.build_url(LISTING_ENDPOINTS[category], beta=True)

    def detail_url(self, resource_id: str) -> str:
        return self.graph.build_url(
            f"{LISTING_ENDPOINTS[ResourceCategory.APP_PROTECTION_POLICY]}/{resource_id}",
            beta=True,
        )

    async def assignments_url_for(
        self,
        category: ResourceCategory,
        resource: ResourceDescriptor,
    ) -> Optional[str]:
        """
        Return the assignment listing URL for a resource, or None when the
        resource's sub-type has no known assignment endpoint.

        For app protection policies this issues the detail request; a failed
        detail request raises GraphAPIError for the caller to record.
        """
        if category is ResourceCategory.APP_PROTECTION_POLICY:
            return await self._app_protection_assignments_url(resource)

        if category is ResourceCategory.SCRIPT:
            kind = resource.script_kind or ScriptKind.POWERSHELL
            collection = SCRIPT_LISTING_ENDPOINTS[kind]
        else:
            collection = LISTING_ENDPOINTS[category]
        return self.graph.build_url(f"{collection}/{resource.id}/assignments", beta=True)

    async def _app_protection_assignments_url(
        self,
        resource: ResourceDescriptor,
    ) -> Optional[str]:
        detail = await self.graph.get(self.detail_url(resource.id))
        odata_type = detail.get("@odata.type")
        # The detail record's type is authoritative for platform labelling too
        if odata_type:
            resource.discriminator = odata_type

        subtype = AppProtectionSubtype.from_odata_type(odata_type)
        if subtype is None:
            logger.info(
                f"Skipping app protection policy '{resource.display_name}' "
                f"({resource.id}): unsupported type {odata_type!r}"
            )
            return None

        collection = APP_PROTECTION_ASSIGNMENT_COLLECTIONS[subtype]
        return self.graph.build_url(f"{collection}/{resource.id}/assignments", beta=True)

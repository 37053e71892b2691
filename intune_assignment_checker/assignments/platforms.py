"""
Platform labelling for assignment records.
"""

from __future__ import annotations

from typing import Optional

from .models import EndpointSecurityFamily, ResourceCategory, ResourceDescriptor

DEFAULT_PLATFORM = "Multi-Platform"

# Categories whose platform never depends on the resource itself
FIXED_PLATFORMS = {
    ResourceCategory.SCRIPT: "Windows",
    ResourceCategory.APP_CONFIGURATION_POLICY: "Mobile",
    ResourceCategory.ENDPOINT_SECURITY_POLICY: "Windows",
    ResourceCategory.APPLICATION: "Multi-Platform",
}


def classify_platform(resource: ResourceDescriptor) -> str:
    """Derive a platform label from the resource's @odata.type."""
    discriminator = (resource.discriminator or "").lower()
    if discriminator:
        if "android" in discriminator:
            if "workprofile" in discriminator:
                return "Android Work Profile"
            if "deviceowner" in discriminator:
                return "Android Enterprise"
            return "Android"
        if "ios" in discriminator or "ipad" in discriminator:
            return "iOS/iPadOS"
        if "macos" in discriminator:
            return "macOS"
        if "windows" in discriminator:
            return "Windows"

    if resource.platforms:
        return ", ".join(resource.platforms)
    return DEFAULT_PLATFORM


def platform_for(category: ResourceCategory, resource: ResourceDescriptor) -> str:
    fixed = FIXED_PLATFORMS.get(category)
    if fixed is not None:
        return fixed
    return classify_platform(resource)


def endpoint_security_family(template_id: Optional[str]) -> EndpointSecurityFamily:
    """First family whose token appears in the template id; OTHER if none does."""
    template = (template_id or "").lower()
    for family in EndpointSecurityFamily:
        if family.token and family.token.lower() in template:
            return family
    return EndpointSecurityFamily.OTHER


def endpoint_security_category(template_id: Optional[str]) -> str:
    family = endpoint_security_family(template_id)
    return f"{ResourceCategory.ENDPOINT_SECURITY_POLICY.label} - {family.display_name}"

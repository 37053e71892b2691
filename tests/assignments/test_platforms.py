from __future__ import annotations

import pytest

from intune_assignment_checker.assignments.models import (
    EndpointSecurityFamily,
    ResourceCategory,
    ResourceDescriptor,
)
from intune_assignment_checker.assignments.platforms import (
    classify_platform,
    endpoint_security_category,
    endpoint_security_family,
    platform_for,
)


def _resource(discriminator=None, platforms=None) -> ResourceDescriptor:
    return ResourceDescriptor(id="p1", display_name="Policy", discriminator=discriminator, platforms=platforms)


@pytest.mark.parametrize(
    "discriminator, expected",
    [
        ("#microsoft.graph.androidWorkProfileGeneralDeviceConfiguration", "Android Work Profile"),
        ("#microsoft.graph.androidDeviceOwnerGeneralDeviceConfiguration", "Android Enterprise"),
        ("#microsoft.graph.androidManagedAppProtection", "Android"),
        ("#microsoft.graph.iosGeneralDeviceConfiguration", "iOS/iPadOS"),
        ("#microsoft.graph.iPadOSWebClip", "iOS/iPadOS"),
        ("#microsoft.graph.macOSCustomConfiguration", "macOS"),
        ("#microsoft.graph.windows10GeneralConfiguration", "Windows"),
        ("#microsoft.graph.windowsManagedAppProtection", "Windows"),
    ],
)
def test_classify_by_discriminator(discriminator: str, expected: str) -> None:
    assert classify_platform(_resource(discriminator)) == expected


def test_falls_back_to_platforms_list_then_default() -> None:
    assert classify_platform(_resource(platforms=["windows10", "macOS"])) == "windows10, macOS"
    assert classify_platform(_resource("#microsoft.graph.webApp")) == "Multi-Platform"
    assert classify_platform(_resource()) == "Multi-Platform"


def test_settings_catalog_platforms_string_is_split() -> None:
    resource = ResourceDescriptor.from_graph({"id": "sc1", "name": "Edge", "platforms": "windows10,macOS"})
    assert resource.display_name == "Edge"
    assert classify_platform(resource) == "windows10, macOS"


@pytest.mark.parametrize(
    "category, expected",
    [
        (ResourceCategory.SCRIPT, "Windows"),
        (ResourceCategory.APP_CONFIGURATION_POLICY, "Mobile"),
        (ResourceCategory.ENDPOINT_SECURITY_POLICY, "Windows"),
        (ResourceCategory.APPLICATION, "Multi-Platform"),
    ],
)
def test_fixed_platform_categories_bypass_classifier(category: ResourceCategory, expected: str) -> None:
    resource = _resource("#microsoft.graph.iosVppApp")
    assert platform_for(category, resource) == expected


def test_classified_categories_use_discriminator() -> None:
    resource = _resource("#microsoft.graph.macOSCompliancePolicy")
    assert platform_for(ResourceCategory.COMPLIANCE_POLICY, resource) == "macOS"


@pytest.mark.parametrize(
    "template_id, expected",
    [
        ("endpointSecurityAntivirus", "Endpoint Security - Antivirus"),
        ("endpointSecurityDiskEncryption", "Endpoint Security - Disk Encryption"),
        ("endpointSecurityFirewall", "Endpoint Security - Firewall"),
        ("endpointSecurityEndpointDetectionAndResponse", "Endpoint Security - EDR"),
        ("endpointSecurityAttackSurfaceReductionRules", "Endpoint Security - ASR"),
        ("4356d05c-a4ab-4a07-9ece-739f7c792910", "Endpoint Security - Other"),
        (None, "Endpoint Security - Other"),
    ],
)
def test_endpoint_security_category(template_id, expected: str) -> None:
    assert endpoint_security_category(template_id) == expected


def test_endpoint_security_first_match_wins() -> None:
    family = endpoint_security_family("antivirus-and-firewall")
    assert family is EndpointSecurityFamily.ANTIVIRUS

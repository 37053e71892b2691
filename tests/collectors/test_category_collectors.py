from __future__ import annotations

import asyncio
import logging

import httpx
import pytest
import respx

from intune_assignment_checker.assignments.context import RunContext
from intune_assignment_checker.assignments.models import AssignmentType, Group
from intune_assignment_checker.collectors import (
    ALL_COLLECTORS,
    AppConfigurationCollector,
    AppProtectionCollector,
    ApplicationCollector,
    CompliancePolicyCollector,
    DeviceConfigurationCollector,
    EndpointSecurityCollector,
    ScriptCollector,
    SettingsCatalogCollector,
)
from intune_assignment_checker.config import CheckerConfig
from intune_assignment_checker.graph.client import GraphClient
from intune_assignment_checker.safety.guardian import ReadOnlyGuardian

from tests.factories import BETA, FIXED_NOW, LISTINGS, assignment, page


def _context(client: GraphClient, group: Group, config: CheckerConfig) -> RunContext:
    return RunContext(graph=client, group=group, config=config, clock=lambda: FIXED_NOW)


def test_traversal_order_is_fixed() -> None:
    assert ALL_COLLECTORS == [
        DeviceConfigurationCollector,
        SettingsCatalogCollector,
        CompliancePolicyCollector,
        AppProtectionCollector,
        AppConfigurationCollector,
        ApplicationCollector,
        ScriptCollector,
        EndpointSecurityCollector,
    ]


@pytest.mark.asyncio
async def test_device_configuration_records(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    graph_router.get(LISTINGS["deviceConfigurations"]).mock(
        return_value=httpx.Response(200, json=page([
            {"id": "dc1", "displayName": "Baseline", "@odata.type": "#microsoft.graph.windows10GeneralConfiguration"},
            {"id": "dc2", "displayName": "Other", "@odata.type": "#microsoft.graph.iosGeneralDeviceConfiguration"},
        ]))
    )
    graph_router.get(f"{BETA}/deviceManagement/deviceConfigurations/dc1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment()]))
    )
    graph_router.get(f"{BETA}/deviceManagement/deviceConfigurations/dc2/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment("someone-else")]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        context = _context(client, group, sequential_config)
        result = await DeviceConfigurationCollector(context).execute()

    assert len(result.records) == 1
    record = result.records[0]
    assert record.category == "Device Configuration"
    assert record.policy_name == "Baseline"
    assert record.policy_id == "dc1"
    assert record.platform == "Windows"
    assert record.assignment_type is AssignmentType.INCLUDED
    assert record.intent == "N/A"
    assert record.group_id == group.id
    assert record.collected_at == FIXED_NOW
    assert context.aggregator.records == (record,)
    assert result.metadata["resources_listed"] == 2


@pytest.mark.asyncio
async def test_settings_catalog_uses_name_and_platforms(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    graph_router.get(LISTINGS["configurationPolicies"]).mock(
        return_value=httpx.Response(200, json=page([
            {"id": "sc1", "name": "Edge-Policy", "platforms": "windows10"},
        ]))
    )
    graph_router.get(f"{BETA}/deviceManagement/configurationPolicies/sc1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment(exclusion=True)]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        result = await SettingsCatalogCollector(_context(client, group, sequential_config)).execute()

    assert [(r.policy_name, r.platform, r.assignment_type) for r in result.records] == [
        ("Edge-Policy", "windows10", AssignmentType.EXCLUDED),
    ]


@pytest.mark.asyncio
async def test_app_protection_uses_subtype_endpoint(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    graph_router.get(LISTINGS["managedAppPolicies"]).mock(
        return_value=httpx.Response(200, json=page([
            {"id": "ap1", "displayName": "Android MAM"},
            {"id": "ap2", "displayName": "Targeted config"},
        ]))
    )
    graph_router.get(f"{BETA}/deviceAppManagement/managedAppPolicies/ap1").mock(
        return_value=httpx.Response(200, json={"id": "ap1", "@odata.type": "#microsoft.graph.androidManagedAppProtection"})
    )
    graph_router.get(f"{BETA}/deviceAppManagement/managedAppPolicies/ap2").mock(
        return_value=httpx.Response(200, json={"id": "ap2", "@odata.type": "#microsoft.graph.targetedManagedAppConfiguration"})
    )
    android = graph_router.get(f"{BETA}/deviceAppManagement/androidManagedAppProtections/ap1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment()]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        result = await AppProtectionCollector(_context(client, group, sequential_config)).execute()

    assert android.called
    assert len(result.records) == 1
    assert result.records[0].category == "App Protection"
    assert result.records[0].platform == "Android"
    assert result.metadata["skipped_resources"][0]["id"] == "ap2"
    assert not result.failed


@pytest.mark.asyncio
async def test_application_records_carry_intent(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    listing = graph_router.get(LISTINGS["mobileApps"]).mock(
        return_value=httpx.Response(200, json=page([{"id": "app1", "displayName": "Company Portal"}]))
    )
    graph_router.get(f"{BETA}/deviceAppManagement/mobileApps/app1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment(intent="required")]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        result = await ApplicationCollector(_context(client, group, sequential_config)).execute()

    assert listing.calls.last.request.url.params["$filter"] == "isAssigned eq true"
    record = result.records[0]
    assert (record.category, record.platform, record.intent) == ("Application", "Multi-Platform", "required")


@pytest.mark.asyncio
async def test_app_configuration_is_mobile(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    graph_router.get(LISTINGS["mobileAppConfigurations"]).mock(
        return_value=httpx.Response(200, json=page([
            {"id": "ac1", "displayName": "Outlook config", "@odata.type": "#microsoft.graph.iosMobileAppConfiguration"},
        ]))
    )
    graph_router.get(f"{BETA}/deviceAppManagement/mobileAppConfigurations/ac1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment()]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        result = await AppConfigurationCollector(_context(client, group, sequential_config)).execute()

    assert [(r.category, r.platform) for r in result.records] == [("App Configuration", "Mobile")]


@pytest.mark.asyncio
async def test_scripts_cover_both_kinds(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    graph_router.get(LISTINGS["deviceManagementScripts"]).mock(
        return_value=httpx.Response(200, json=page([{"id": "ps1", "displayName": "Set-Wallpaper"}]))
    )
    graph_router.get(LISTINGS["deviceHealthScripts"]).mock(
        return_value=httpx.Response(200, json=page([{"id": "hs1", "displayName": "Fix-Spooler"}]))
    )
    graph_router.get(f"{BETA}/deviceManagement/deviceManagementScripts/ps1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment()]))
    )
    graph_router.get(f"{BETA}/deviceManagement/deviceHealthScripts/hs1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment(exclusion=True)]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        result = await ScriptCollector(_context(client, group, sequential_config)).execute()

    assert [(r.category, r.policy_name, r.platform, r.assignment_type) for r in result.records] == [
        ("PowerShell Script", "Set-Wallpaper", "Windows", AssignmentType.INCLUDED),
        ("Proactive Remediation", "Fix-Spooler", "Windows", AssignmentType.EXCLUDED),
    ]


@pytest.mark.asyncio
async def test_endpoint_security_firewall_exclusion(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    graph_router.get(LISTINGS["intents"]).mock(
        return_value=httpx.Response(200, json=page([
            {"id": "es1", "displayName": "Block inbound", "templateId": "endpointSecurityFirewall"},
        ]))
    )
    graph_router.get(f"{BETA}/deviceManagement/intents/es1/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment(exclusion=True)]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        result = await EndpointSecurityCollector(_context(client, group, sequential_config)).execute()

    record = result.records[0]
    assert record.category == "Endpoint Security - Firewall"
    assert record.platform == "Windows"
    assert record.assignment_type is AssignmentType.EXCLUDED


@pytest.mark.asyncio
async def test_failed_assignment_call_degrades_to_no_records(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
) -> None:
    graph_router.get(LISTINGS["deviceCompliancePolicies"]).mock(
        return_value=httpx.Response(200, json=page([
            {"id": "cp1", "displayName": "Broken"},
            {"id": "cp2", "displayName": "Healthy", "@odata.type": "#microsoft.graph.windows10CompliancePolicy"},
        ]))
    )
    graph_router.get(f"{BETA}/deviceManagement/deviceCompliancePolicies/cp1/assignments").mock(
        return_value=httpx.Response(503)
    )
    graph_router.get(f"{BETA}/deviceManagement/deviceCompliancePolicies/cp2/assignments").mock(
        return_value=httpx.Response(200, json=page([assignment()]))
    )

    async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
        result = await CompliancePolicyCollector(_context(client, group, sequential_config)).execute()

    assert [r.policy_name for r in result.records] == ["Healthy"]
    assert result.failed
    assert result.metadata["failed_requests"] == 1


@pytest.mark.asyncio
async def test_failed_listing_yields_empty_category(
    graph_router: respx.Router,
    group: Group,
    sequential_config: CheckerConfig,
    caplog: pytest.LogCaptureFixture,
) -> None:
    graph_router.get(LISTINGS["deviceConfigurations"]).mock(return_value=httpx.Response(403))

    with caplog.at_level(logging.DEBUG, logger="intune_assignment_checker"):
        async with GraphClient("token", ReadOnlyGuardian(), sequential_config) as client:
            result = await DeviceConfigurationCollector(_context(client, group, sequential_config)).execute()

    assert result.records == []
    assert result.failed
    warnings = [r for r in caplog.records if r.levelno >= logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].name == "intune_assignment_checker.collectors"


@pytest.mark.asyncio
async def test_parallel_fetch_keeps_listing_order(
    graph_router: respx.Router,
    group: Group,
) -> None:
    config = CheckerConfig(max_concurrent_requests=4, parallel_resources=True)
    names = [f"Policy {i}" for i in range(6)]
    graph_router.get(LISTINGS["deviceConfigurations"]).mock(
        return_value=httpx.Response(200, json=page([
            {"id": f"dc{i}", "displayName": name} for i, name in enumerate(names)
        ]))
    )

    async def slow_first(request: httpx.Request) -> httpx.Response:
        # Earlier resources answer last
        index = int(request.url.path.split("/")[-2][2:])
        await asyncio.sleep(0.01 * (len(names) - index))
        return httpx.Response(200, json=page([assignment()]))

    graph_router.get(url__regex=rf"{BETA}/deviceManagement/deviceConfigurations/dc\d+/assignments").mock(
        side_effect=slow_first
    )

    async with GraphClient("token", ReadOnlyGuardian(), config) as client:
        context = _context(client, group, config)
        await DeviceConfigurationCollector(context).execute()

    assert [r.policy_name for r in context.aggregator.records] == names

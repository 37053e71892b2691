from .base import CategoryCollector, CollectorResult
from .configuration import (
    CompliancePolicyCollector,
    DeviceConfigurationCollector,
    SettingsCatalogCollector,
)
from .apps import AppConfigurationCollector, AppProtectionCollector, ApplicationCollector
from .scripts import ScriptCollector
from .endpoint_security import EndpointSecurityCollector

# Traversal order; records are aggregated category by category in this order
ALL_COLLECTORS = [
    DeviceConfigurationCollector,
    SettingsCatalogCollector,
    CompliancePolicyCollector,
    AppProtectionCollector,
    AppConfigurationCollector,
    ApplicationCollector,
    ScriptCollector,
    EndpointSecurityCollector,
]

__all__ = [
    "CategoryCollector",
    "CollectorResult",
    "DeviceConfigurationCollector",
    "SettingsCatalogCollector",
    "CompliancePolicyCollector",
    "AppProtectionCollector",
    "AppConfigurationCollector",
    "ApplicationCollector",
    "ScriptCollector",
    "EndpointSecurityCollector",
    "ALL_COLLECTORS",
]

"""
Assignment data models — groups, resource descriptors, and the normalized
assignment record every category traversal produces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..config import EXCLUSION_TARGET_TYPE


class ResourceCategory(Enum):
    """The eight resource families, in traversal order."""
    DEVICE_CONFIGURATION = "Device Configuration"
    SETTINGS_CATALOG = "Settings Catalog"
    COMPLIANCE_POLICY = "Compliance Policy"
    APP_PROTECTION_POLICY = "App Protection"
    APP_CONFIGURATION_POLICY = "App Configuration"
    APPLICATION = "Application"
    SCRIPT = "Script"
    ENDPOINT_SECURITY_POLICY = "Endpoint Security"

    @property
    def label(self) -> str:
        return self.value


class ScriptKind(Enum):
    POWERSHELL = "PowerShell Script"
    PROACTIVE_REMEDIATION = "Proactive Remediation"


class AppProtectionSubtype(Enum):
    """Concrete managed-app protection types behind managedAppPolicies."""
    ANDROID = "#microsoft.graph.androidManagedAppProtection"
    IOS = "#microsoft.graph.iosManagedAppProtection"
    WINDOWS = "#microsoft.graph.windowsManagedAppProtection"

    @classmethod
    def from_odata_type(cls, odata_type: Optional[str]) -> Optional["AppProtectionSubtype"]:
        for member in cls:
            if member.value == odata_type:
                return member
        return None


class EndpointSecurityFamily(Enum):
    """Template families, in match order; OTHER is the fallback."""
    ANTIVIRUS = ("antivirus", "Antivirus")
    DISK_ENCRYPTION = ("diskEncryption", "Disk Encryption")
    FIREWALL = ("firewall", "Firewall")
    EDR = ("endpointDetection", "EDR")
    ASR = ("attackSurface", "ASR")
    OTHER = ("", "Other")

    def __init__(self, token: str, display_name: str):
        self.token = token
        self.display_name = display_name


class AssignmentType(Enum):
    INCLUDED = "Included"
    EXCLUDED = "Excluded"


@dataclass(frozen=True)
class Group:
    """The run's target group. Resolved once, never changed."""
    id: str
    display_name: str

    @classmethod
    def from_graph(cls, data: dict) -> "Group":
        return cls(id=data.get("id", ""), display_name=data.get("displayName") or "")


@dataclass
class ResourceDescriptor:
    """One policy, app, script or intent as returned by its listing endpoint."""
    id: str
    display_name: str
    discriminator: Optional[str] = None          # @odata.type
    platforms: Optional[list[str]] = None
    template_id: Optional[str] = None            # endpoint security intents only
    script_kind: Optional[ScriptKind] = None     # scripts only

    @classmethod
    def from_graph(cls, data: dict, **extra: Any) -> "ResourceDescriptor":
        # Settings catalog policies carry "name" instead of "displayName"
        return cls(
            id=data.get("id", ""),
            display_name=data.get("displayName") or data.get("name") or "",
            discriminator=data.get("@odata.type"),
            platforms=_split_platforms(data.get("platforms")),
            template_id=data.get("templateId"),
            **extra,
        )


@dataclass(frozen=True)
class RawAssignmentTarget:
    group_id: Optional[str]
    target_discriminator: str = ""

    @classmethod
    def from_assignment(cls, assignment: dict) -> "RawAssignmentTarget":
        target = assignment.get("target") or {}
        return cls(
            group_id=target.get("groupId"),
            target_discriminator=target.get("@odata.type") or "",
        )

    @property
    def is_exclusion(self) -> bool:
        return self.target_discriminator == EXCLUSION_TARGET_TYPE


@dataclass(frozen=True)
class FilteredAssignment:
    """A raw assignment that targets the resolved group."""
    is_exclusion: bool
    intent: Optional[str] = None

    @property
    def assignment_type(self) -> AssignmentType:
        return AssignmentType.EXCLUDED if self.is_exclusion else AssignmentType.INCLUDED


@dataclass(frozen=True)
class AssignmentRecord:
    """Normalized output unit: one row of the report."""
    group_id: str
    group_name: str
    category: str
    policy_name: str
    policy_id: str
    platform: str
    assignment_type: AssignmentType
    intent: str
    collected_at: datetime

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.category, self.policy_name)

    def to_row(self) -> dict[str, str]:
        """Export row keyed by the report column names."""
        return {
            "GroupName": self.group_name,
            "GroupId": self.group_id,
            "Category": self.category,
            "PolicyName": self.policy_name,
            "PolicyId": self.policy_id,
            "Platform": self.platform,
            "AssignmentType": self.assignment_type.value,
            "Intent": self.intent,
            "CollectedAt": self.collected_at.isoformat(),
        }


REPORT_COLUMNS = [
    "GroupName", "GroupId", "Category", "PolicyName", "PolicyId",
    "Platform", "AssignmentType", "Intent", "CollectedAt",
]


@dataclass
class CategoryCounts:
    included: int = 0
    excluded: int = 0


@dataclass
class AggregateSummary:
    total: int = 0
    per_category: dict[str, CategoryCounts] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "categories": {
                name: {"included": c.included, "excluded": c.excluded}
                for name, c in self.per_category.items()
            },
        }


def _split_platforms(value: Any) -> Optional[list[str]]:
    # Graph returns flag enums as "windows10,macOS"
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    if isinstance(value, (list, tuple)):
        return [str(p) for p in value]
    return [str(value)]

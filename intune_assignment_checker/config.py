"""
Configuration module for the Intune Group Assignment Checker.
Defines tunable parameters, Graph API constants, and output settings.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


# ─── Tenant Authentication ───────────────────────────────────────────────────

@dataclass
class CertificateAuth:
    """Certificate-based app-only authentication configuration."""
    tenant_id: str
    client_id: str
    certificate_path: str          # Path to base64-encoded PFX
    certificate_password: str = "" # Falls back to INTUNE_CERT_PASSWORD, then a prompt


@dataclass
class SecretAuth:
    """Client-secret app-only authentication configuration."""
    tenant_id: str
    client_id: str
    client_secret: str


@dataclass
class DelegatedAuth:
    """Delegated (device code) authentication configuration."""
    tenant_id: str
    client_id: str
    scopes: list[str] = field(default_factory=lambda: [
        "https://graph.microsoft.com/DeviceManagementConfiguration.Read.All",
        "https://graph.microsoft.com/DeviceManagementApps.Read.All",
        "https://graph.microsoft.com/DeviceManagementManagedDevices.Read.All",
        "https://graph.microsoft.com/Group.Read.All",
    ])


@dataclass
class AuthConfig:
    """Authentication configuration — certificate, secret or delegated."""
    mode: str = "certificate"
    certificate: Optional[CertificateAuth] = None
    secret: Optional[SecretAuth] = None
    delegated: Optional[DelegatedAuth] = None


# ─── Graph API Settings ─────────────────────────────────────────────────────

GRAPH_BASE_URL = "https://graph.microsoft.com"
GRAPH_API_VERSION = "v1.0"
GRAPH_BETA_VERSION = "beta"

REQUEST_TIMEOUT_SECONDS = 60.0
CONNECT_TIMEOUT_SECONDS = 30.0

MAX_CONCURRENT_REQUESTS = 4       # Parallel requests to Graph
MAX_PAGES_PER_ENDPOINT = 10000    # Safety cap on pagination loops

# Assignment target type that marks a group as excluded
EXCLUSION_TARGET_TYPE = "#microsoft.graph.exclusionGroupAssignmentTarget"

GUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


# ─── Collection Settings ────────────────────────────────────────────────────

@dataclass
class CheckerConfig:
    """Controls for assignment collection behavior."""
    max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS
    max_pages: int = MAX_PAGES_PER_ENDPOINT
    parallel_resources: bool = True   # Fetch per-resource assignments concurrently


# ─── Output Configuration ───────────────────────────────────────────────────

EXPORT_FORMATS = ("csv", "json")


@dataclass
class OutputConfig:
    """Export destination and format settings."""
    export_path: str = ""
    formats: list[str] = field(default_factory=lambda: ["csv"])
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    def default_export_path(self, group_name: str) -> Path:
        """Derive the export file from the group display name and run timestamp."""
        safe_name = re.sub(r"[^\w\-]+", "_", group_name).strip("_") or "group"
        return Path.cwd() / f"IntuneAssignments_{safe_name}_{self.timestamp}.csv"

    def resolve_export_path(self, group_name: str) -> Path:
        if self.export_path:
            return Path(self.export_path).expanduser()
        return self.default_export_path(group_name)


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class AppConfig:
    """Top-level configuration for the checker."""
    auth: AuthConfig = field(default_factory=AuthConfig)
    checker: CheckerConfig = field(default_factory=CheckerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    verbose: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> "AppConfig":
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = cls()
        if "auth" in data:
            auth_data = data["auth"]
            config.auth.mode = auth_data.get("mode", "certificate")
            if "certificate" in auth_data:
                c = auth_data["certificate"]
                config.auth.certificate = CertificateAuth(
                    tenant_id=c["tenant_id"],
                    client_id=c["client_id"],
                    certificate_path=c.get("certificate_path", "./base64.txt"),
                    certificate_password=c.get("certificate_password", ""),
                )
            if "secret" in auth_data:
                s = auth_data["secret"]
                config.auth.secret = SecretAuth(
                    tenant_id=s["tenant_id"],
                    client_id=s["client_id"],
                    client_secret=s.get("client_secret", ""),
                )
            if "delegated" in auth_data:
                d = auth_data["delegated"]
                config.auth.delegated = DelegatedAuth(
                    tenant_id=d["tenant_id"],
                    client_id=d["client_id"],
                )
        for section, target in (("checker", config.checker), ("output", config.output)):
            for k, v in data.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
        config.verbose = data.get("verbose", False)
        return config

    def apply_environment(self, environ: Optional[dict[str, str]] = None) -> None:
        """Fill missing credentials from INTUNE_* environment variables."""
        env = os.environ if environ is None else environ
        tenant_id = env.get("INTUNE_TENANT_ID", "")
        client_id = env.get("INTUNE_CLIENT_ID", "")

        if self.auth.mode == "certificate" and not self.auth.certificate:
            if tenant_id and client_id:
                self.auth.certificate = CertificateAuth(
                    tenant_id=tenant_id,
                    client_id=client_id,
                    certificate_path=env.get("INTUNE_CERT_PATH", "./base64.txt"),
                    certificate_password=env.get("INTUNE_CERT_PASSWORD", ""),
                )
        elif self.auth.mode == "secret" and not self.auth.secret:
            if tenant_id and client_id and env.get("INTUNE_CLIENT_SECRET"):
                self.auth.secret = SecretAuth(
                    tenant_id=tenant_id,
                    client_id=client_id,
                    client_secret=env["INTUNE_CLIENT_SECRET"],
                )
        elif self.auth.mode == "delegated" and not self.auth.delegated:
            if tenant_id and client_id:
                self.auth.delegated = DelegatedAuth(tenant_id=tenant_id, client_id=client_id)


# ─── Required Graph API Permissions (Read-Only) ──────────────────────────────

REQUIRED_PERMISSIONS = {
    "Group.Read.All": "Resolve the target group by ID or display name",
    "DeviceManagementConfiguration.Read.All": (
        "Read device configurations, settings catalog, compliance, "
        "scripts, remediations and endpoint security intents"
    ),
    "DeviceManagementApps.Read.All": (
        "Read mobile apps, app protection and app configuration policies"
    ),
    "DeviceManagementManagedDevices.Read.All": "Read proactive remediation scripts",
}

"""
Configuration module for the Power Platform tenant inventory.
Defines API endpoints, authentication settings, and output options.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


# ─── Tenant Authentication ───────────────────────────────────────────────────

# Well-known public client used by the Power Apps admin PowerShell module
DEFAULT_PUBLIC_CLIENT_ID = "1950a258-227b-4e31-a9cf-717495945fc2"
DEFAULT_AUTHORITY_TENANT = "organizations"

# Admin session: environments, apps, custom connectors (BAP and Power Apps hosts)
ADMIN_SCOPES = ["https://service.powerapps.com/.default"]
# Admin session, Flow host: flows and flow owners
FLOW_SCOPES = ["https://service.flow.microsoft.com/.default"]
# Governance session: DLP policies and environment role assignments
GOVERNANCE_SCOPES = ["https://service.powerapps.com/.default"]


@dataclass
class CertificateAuth:
    """Certificate-based app-only authentication configuration."""
    tenant_id: str
    client_id: str
    certificate_path: str          # Path to base64-encoded PFX
    certificate_password: str = "" # Will be prompted if empty


@dataclass
class PasswordAuth:
    """Non-interactive username/password sign-in."""
    username: str
    password: str


@dataclass
class AuthConfig:
    """Authentication configuration: interactive, password, or certificate."""
    mode: str = "interactive"
    tenant_id: str = DEFAULT_AUTHORITY_TENANT
    client_id: str = DEFAULT_PUBLIC_CLIENT_ID
    admin_scopes: list[str] = field(default_factory=lambda: list(ADMIN_SCOPES))
    flow_scopes: list[str] = field(default_factory=lambda: list(FLOW_SCOPES))
    governance_scopes: list[str] = field(default_factory=lambda: list(GOVERNANCE_SCOPES))
    password: Optional[PasswordAuth] = None
    certificate: Optional[CertificateAuth] = None

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant_id}"


# ─── Admin API Settings ──────────────────────────────────────────────────────

BAP_BASE_URL = "https://api.bap.microsoft.com"
POWERAPPS_BASE_URL = "https://api.powerapps.com"
FLOW_BASE_URL = "https://api.flow.microsoft.com"
FLOW_HOST = "api.flow.microsoft.com"
API_VERSION = "2016-11-01"

ALLOWED_HOSTS = {
    "api.bap.microsoft.com",
    "api.powerapps.com",
    "api.flow.microsoft.com",
}

ENVIRONMENTS_ENDPOINT = (
    f"{BAP_BASE_URL}/providers/Microsoft.BusinessAppPlatform/scopes/admin/environments"
)
APPS_ENDPOINT = (
    f"{POWERAPPS_BASE_URL}/providers/Microsoft.PowerApps/scopes/admin"
    "/environments/{environment}/apps"
)
FLOWS_ENDPOINT = (
    f"{FLOW_BASE_URL}/providers/Microsoft.ProcessSimple/scopes/admin"
    "/environments/{environment}/v2/flows"
)
FLOW_OWNERS_ENDPOINT = (
    f"{FLOW_BASE_URL}/providers/Microsoft.ProcessSimple/scopes/admin"
    "/environments/{environment}/flows/{flow}/owners"
)
CUSTOM_CONNECTORS_ENDPOINT = (
    f"{POWERAPPS_BASE_URL}/providers/Microsoft.PowerApps/scopes/admin"
    "/environments/{environment}/apis"
)
ROLE_ASSIGNMENTS_ENDPOINT = (
    f"{BAP_BASE_URL}/providers/Microsoft.BusinessAppPlatform/scopes/admin"
    "/environments/{environment}/roleAssignments"
)
DLP_POLICIES_ENDPOINT = f"{BAP_BASE_URL}/providers/PowerPlatform.Governance/v2/policies"

# Throttling honoured by the HTTP client (429/503/504 only)
MAX_RETRIES = 5
INITIAL_BACKOFF_SECONDS = 2.0
MAX_BACKOFF_SECONDS = 120.0
BACKOFF_MULTIPLIER = 2.0

# Pagination
MAX_PAGES_PER_ENDPOINT = 10000   # Safety cap on pagination loops


# ─── Collection Settings ────────────────────────────────────────────────────

@dataclass
class CollectionConfig:
    """Controls for data collection behavior."""
    max_pages: int = MAX_PAGES_PER_ENDPOINT
    include_flow_owners: bool = True      # One extra request per flow


# ─── Output Configuration ───────────────────────────────────────────────────

DEFAULT_REPORT_PATH = "PowerPlatformInventory.xlsx"


@dataclass
class OutputConfig:
    """Output workbook settings."""
    report_path: str = DEFAULT_REPORT_PATH

    @property
    def path(self) -> Path:
        return Path(self.report_path)


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class InventoryConfig:
    """Top-level configuration for an inventory run."""
    auth: AuthConfig = field(default_factory=AuthConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    verbose: bool = False

    @classmethod
    def from_file(cls, path) -> "InventoryConfig":
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = cls()
        if "auth" in data:
            auth_data = data["auth"]
            config.auth.mode = auth_data.get("mode", config.auth.mode)
            config.auth.tenant_id = auth_data.get("tenant_id", config.auth.tenant_id)
            config.auth.client_id = auth_data.get("client_id", config.auth.client_id)
            if "certificate" in auth_data:
                c = auth_data["certificate"]
                config.auth.certificate = CertificateAuth(
                    tenant_id=c.get("tenant_id", config.auth.tenant_id),
                    client_id=c.get("client_id", config.auth.client_id),
                    certificate_path=c.get("certificate_path", "./base64.txt"),
                    certificate_password=c.get("certificate_password", ""),
                )
            if "password" in auth_data:
                p = auth_data["password"]
                config.auth.password = PasswordAuth(
                    username=p.get("username", ""),
                    password=p.get("password", ""),
                )
        if "collection" in data:
            for k, v in data["collection"].items():
                if hasattr(config.collection, k):
                    setattr(config.collection, k, v)
        if "output" in data:
            for k, v in data["output"].items():
                if hasattr(config.output, k):
                    setattr(config.output, k, v)
        config.verbose = data.get("verbose", False)
        return config

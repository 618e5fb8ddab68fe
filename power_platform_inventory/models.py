"""
Row models — flat snapshots of remote admin objects, one type per report sheet.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Iterable, Sequence

JOIN_SEPARATOR = ";"


def dig(record: Any, *path: str, default: Any = None) -> Any:
    """
    Walk nested mappings along ``path``.

    Returns ``default`` as soon as a step is missing, ``None``, or the
    current value is not a mapping. Never raises.
    """
    current = record
    for key in path:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def first_non_empty(record: Any, paths: Iterable[Sequence[str]]) -> str:
    """Return the first non-empty string found along ``paths``, else ''."""
    for path in paths:
        value = dig(record, *path)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def join_values(values: Iterable[str]) -> str:
    return JOIN_SEPARATOR.join(values)


class _Row:
    """Mixin giving each row its sheet header and cell values."""

    @classmethod
    def columns(cls) -> list[str]:
        return [f.metadata["column"] for f in fields(cls)]

    def values(self) -> list[Any]:
        return [getattr(self, f.name) for f in fields(self)]


def _col(name: str, default: Any = ""):
    return field(default=default, metadata={"column": name})


@dataclass
class EnvironmentRow(_Row):
    environment_id: str = _col("EnvironmentId")
    display_name: str = _col("DisplayName")
    region: str = _col("Region")
    sku: str = _col("Sku")
    is_default: bool = _col("IsDefault", False)
    created_time: str = _col("CreatedTime")
    environment_type: str = _col("EnvironmentType")


@dataclass
class AppRow(_Row):
    environment_id: str = _col("EnvironmentId")
    app_name: str = _col("AppName")
    app_id: str = _col("AppId")
    owner: str = _col("Owner")
    connector_count: int = _col("ConnectorCount", 0)
    connectors: str = _col("Connectors")


@dataclass
class FlowRow(_Row):
    environment_id: str = _col("EnvironmentId")
    flow_name: str = _col("FlowName")
    flow_id: str = _col("FlowId")
    owners: str = _col("Owners")
    connector_count: int = _col("ConnectorCount", 0)
    connectors: str = _col("Connectors")


@dataclass
class ConnectorUsageRow(_Row):
    environment_id: str = _col("EnvironmentId")
    parent_type: str = _col("ParentType")   # App, Flow or CustomConnector
    parent_name: str = _col("ParentName")
    connector_name: str = _col("ConnectorName")


@dataclass
class DlpPolicyRow(_Row):
    policy_name: str = _col("PolicyName")
    policy_id: str = _col("PolicyId")
    created_time: str = _col("CreatedTime")
    last_modified_time: str = _col("LastModifiedTime")
    mode: str = _col("Mode")


@dataclass
class RoleAssignmentRow(_Row):
    environment_id: str = _col("EnvironmentId")
    role_name: str = _col("RoleName")
    principal_type: str = _col("PrincipalType")
    principal_name: str = _col("PrincipalName")


# Sheet name -> row type, in workbook order
SHEETS: dict[str, type] = {
    "Apps": AppRow,
    "Flows": FlowRow,
    "Connectors": ConnectorUsageRow,
    "DLPPolicies": DlpPolicyRow,
    "Environments": EnvironmentRow,
    "SecurityRoles": RoleAssignmentRow,
}


@dataclass
class Inventory:
    """All row collections for one report; each list is append-only."""
    apps: list[AppRow] = field(default_factory=list)
    flows: list[FlowRow] = field(default_factory=list)
    connectors: list[ConnectorUsageRow] = field(default_factory=list)
    dlp_policies: list[DlpPolicyRow] = field(default_factory=list)
    environments: list[EnvironmentRow] = field(default_factory=list)
    role_assignments: list[RoleAssignmentRow] = field(default_factory=list)

    def sheets(self) -> list[tuple[str, type, list]]:
        """(sheet name, row type, rows) in workbook order."""
        rows = [
            self.apps,
            self.flows,
            self.connectors,
            self.dlp_policies,
            self.environments,
            self.role_assignments,
        ]
        return [(name, row_type, r) for (name, row_type), r in zip(SHEETS.items(), rows)]

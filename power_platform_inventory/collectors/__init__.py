from .base import BaseCollector, CollectorResult
from .environments import EnvironmentCollector
from .apps import AppCollector
from .flows import FlowCollector
from .connectors import CustomConnectorCollector, extract_connectors
from .roles import RoleAssignmentCollector
from .dlp import DlpPolicyCollector

# Run once per environment, in this order
ENVIRONMENT_COLLECTORS = [
    AppCollector,
    FlowCollector,
    CustomConnectorCollector,
]
# Per-environment collectors that need the governance session
GOVERNANCE_ENVIRONMENT_COLLECTORS = [
    RoleAssignmentCollector,
]

__all__ = [
    "BaseCollector",
    "CollectorResult",
    "EnvironmentCollector",
    "AppCollector",
    "FlowCollector",
    "CustomConnectorCollector",
    "RoleAssignmentCollector",
    "DlpPolicyCollector",
    "extract_connectors",
    "ENVIRONMENT_COLLECTORS",
    "GOVERNANCE_ENVIRONMENT_COLLECTORS",
]

"""Shared fixtures: an in-memory admin client and canned API records."""
import asyncio

import pytest

from power_platform_inventory.api.client import AdminAPIError
from power_platform_inventory.config import (
    APPS_ENDPOINT,
    CUSTOM_CONNECTORS_ENDPOINT,
    DLP_POLICIES_ENDPOINT,
    ENVIRONMENTS_ENDPOINT,
    FLOW_OWNERS_ENDPOINT,
    FLOWS_ENDPOINT,
    ROLE_ASSIGNMENTS_ENDPOINT,
)


class FakeAdminClient:
    """Serves canned listings by URL; an Exception value is raised instead."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    async def get_all_pages(self, url, params=None):
        self.calls.append(url)
        value = self.responses.get(url, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


def run(coro):
    return asyncio.run(coro)


def environment(env_id, display_name=None, is_default=False):
    return {
        "name": env_id,
        "location": "unitedstates",
        "properties": {
            "displayName": display_name or env_id,
            "environmentSku": "Production",
            "isDefault": is_default,
            "createdTime": "2024-01-01T00:00:00Z",
            "environmentType": "Production",
        },
    }


def connection_refs(*names):
    return {
        f"shared_{n.lower()}": {"displayName": n, "id": f"/providers/Microsoft.PowerApps/apis/shared_{n.lower()}"}
        for n in names
    }


def app(app_id, name, owner="owner@contoso.com", connectors=()):
    props = {"displayName": name, "connectionReferences": connection_refs(*connectors)}
    if owner:
        props["owner"] = {"displayName": owner}
    return {"name": app_id, "properties": props}


def flow(flow_id, name, connectors=()):
    return {
        "name": flow_id,
        "properties": {"displayName": name, "connectionReferences": connection_refs(*connectors)},
    }


def owner(display_name):
    return {"properties": {"principal": {"displayName": display_name, "type": "User"}}}


def role_assignment(role, principal, principal_type="User"):
    return {
        "properties": {
            "roleName": role,
            "principal": {"displayName": principal, "type": principal_type},
        }
    }


def apps_url(env):
    return APPS_ENDPOINT.format(environment=env)


def flows_url(env):
    return FLOWS_ENDPOINT.format(environment=env)


def owners_url(env, flow_id):
    return FLOW_OWNERS_ENDPOINT.format(environment=env, flow=flow_id)


def custom_connectors_url(env):
    return CUSTOM_CONNECTORS_ENDPOINT.format(environment=env)


def roles_url(env):
    return ROLE_ASSIGNMENTS_ENDPOINT.format(environment=env)


ENVIRONMENTS_URL = ENVIRONMENTS_ENDPOINT
DLP_URL = DLP_POLICIES_ENDPOINT


@pytest.fixture
def api_error():
    return AdminAPIError(500, "Internal Server Error", "https://api.bap.microsoft.com/x")

"""
Power Apps Collector
Enumerates canvas/model-driven apps per environment with owner and connector usage.
"""

from __future__ import annotations

import logging
from typing import Optional

from .base import BaseCollector
from .connectors import extract_connectors, usage_rows
from ..config import APPS_ENDPOINT
from ..models import AppRow, Inventory, dig, first_non_empty, join_values

logger = logging.getLogger("power_platform_inventory.collectors.apps")


# Owner resolution order; first non-empty value wins
OWNER_PATHS = (
    ("properties", "owner", "displayName"),
    ("properties", "createdBy", "userPrincipalName"),
    ("internal", "properties", "createdBy", "userPrincipalName"),
)


def resolve_owner(app: dict) -> str:
    return first_non_empty(app, OWNER_PATHS)


class AppCollector(BaseCollector):
    name = "apps"
    description = "Apps, owners and the connectors they reference"

    async def collect(self, inventory: Inventory, environment_id: Optional[str] = None) -> int:
        apps = await self.safe_get_all(APPS_ENDPOINT.format(environment=environment_id))
        if apps is None:
            return 0

        rows = []
        usage = []
        for app in apps:
            app_name = dig(app, "properties", "displayName", default="")
            connectors = extract_connectors(dig(app, "properties"))

            rows.append(AppRow(
                environment_id=environment_id,
                app_name=app_name,
                app_id=dig(app, "name", default=""),
                owner=resolve_owner(app),
                connector_count=len(connectors),
                connectors=join_values(connectors),
            ))
            usage.extend(usage_rows(environment_id, "App", app_name, connectors))

        inventory.apps.extend(rows)
        inventory.connectors.extend(usage)
        return len(rows)

"""
Environment Collector
Lists every environment in admin scope; its ids drive the per-environment loop.
"""

from __future__ import annotations

from typing import Optional

from .base import BaseCollector
from ..config import ENVIRONMENTS_ENDPOINT
from ..models import EnvironmentRow, Inventory, dig


class EnvironmentCollector(BaseCollector):
    name = "environments"
    description = "Tenant environments"

    async def collect(self, inventory: Inventory, environment_id: Optional[str] = None) -> int:
        environments = await self.safe_get_all(ENVIRONMENTS_ENDPOINT)
        if environments is None:
            return 0

        rows = [
            EnvironmentRow(
                environment_id=dig(env, "name", default=""),
                display_name=dig(env, "properties", "displayName", default=""),
                region=dig(env, "location", default=""),
                sku=dig(env, "properties", "environmentSku", default=""),
                is_default=bool(dig(env, "properties", "isDefault", default=False)),
                created_time=dig(env, "properties", "createdTime", default=""),
                environment_type=dig(env, "properties", "environmentType", default=""),
            )
            for env in environments
        ]
        inventory.environments.extend(rows)
        return len(rows)

"""
Cloud Flow Collector
Enumerates flows per environment, resolves owners, and records connector usage.
"""

from __future__ import annotations

import logging
from typing import Optional

from .base import BaseCollector
from .connectors import extract_connectors, usage_rows
from ..config import FLOWS_ENDPOINT, FLOW_OWNERS_ENDPOINT
from ..models import FlowRow, Inventory, dig, join_values

logger = logging.getLogger("power_platform_inventory.collectors.flows")


class FlowCollector(BaseCollector):
    name = "flows"
    description = "Cloud flows, owners and the connectors they reference"

    async def collect(self, inventory: Inventory, environment_id: Optional[str] = None) -> int:
        flows = await self.safe_get_all(FLOWS_ENDPOINT.format(environment=environment_id))
        if flows is None:
            return 0

        rows = []
        usage = []
        for flow in flows:
            flow_id = dig(flow, "name", default="")
            flow_name = dig(flow, "properties", "displayName", default="")
            connectors = extract_connectors(dig(flow, "properties"))

            rows.append(FlowRow(
                environment_id=environment_id,
                flow_name=flow_name,
                flow_id=flow_id,
                owners=await self._owners(environment_id, flow_id),
                connector_count=len(connectors),
                connectors=join_values(connectors),
            ))
            usage.extend(usage_rows(environment_id, "Flow", flow_name, connectors))

        inventory.flows.extend(rows)
        inventory.connectors.extend(usage)
        return len(rows)

    async def _owners(self, environment_id: str, flow_id: str) -> str:
        """Semicolon-joined owner display names; '' when the lookup fails."""
        if not self.config.include_flow_owners or not flow_id:
            return ""
        url = FLOW_OWNERS_ENDPOINT.format(environment=environment_id, flow=flow_id)
        try:
            owners = await self.client.get_all_pages(url)
            self.result.metadata["endpoints_queried"] += 1
        except Exception as e:
            self.result.add_warning(f"Owner lookup failed for flow {flow_id}: {e}")
            return ""
        return join_values(
            name for name in (
                dig(owner, "properties", "principal", "displayName") for owner in owners
            ) if name
        )

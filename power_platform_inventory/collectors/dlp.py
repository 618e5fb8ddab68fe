"""
DLP Policy Collector
Tenant-wide data loss prevention policies; fetched once per run.
"""

from __future__ import annotations

from typing import Optional

from .base import BaseCollector
from ..config import DLP_POLICIES_ENDPOINT
from ..models import DlpPolicyRow, Inventory, dig


class DlpPolicyCollector(BaseCollector):
    name = "dlp_policies"
    description = "Tenant DLP policies"

    async def collect(self, inventory: Inventory, environment_id: Optional[str] = None) -> int:
        policies = await self.safe_get_all(DLP_POLICIES_ENDPOINT)
        if policies is None:
            return 0

        rows = [
            DlpPolicyRow(
                policy_name=dig(p, "displayName", default=""),
                policy_id=dig(p, "name", default=""),
                created_time=dig(p, "createdTime", default=""),
                last_modified_time=dig(p, "lastModifiedTime", default=""),
                mode=dig(p, "environmentType", default=""),
            )
            for p in policies
        ]
        inventory.dlp_policies.extend(rows)
        return len(rows)

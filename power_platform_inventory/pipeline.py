"""
Inventory pipeline — environments, then each environment's resources, then DLP.
Every remote call is awaited in turn; nothing runs concurrently.
"""

from __future__ import annotations

import logging
from typing import Optional

from .api.client import AdminClient
from .collectors import (
    CollectorResult,
    DlpPolicyCollector,
    EnvironmentCollector,
    ENVIRONMENT_COLLECTORS,
    GOVERNANCE_ENVIRONMENT_COLLECTORS,
)
from .config import CollectionConfig
from .models import Inventory

logger = logging.getLogger("power_platform_inventory.pipeline")


async def run_inventory(
    admin: AdminClient,
    governance: Optional[AdminClient],
    config: Optional[CollectionConfig] = None,
) -> tuple[Inventory, list[CollectorResult]]:
    """
    Collect the full tenant inventory.

    ``governance`` may be None when the secondary sign-in failed; DLP
    policies and role assignments are then skipped.
    """
    config = config or CollectionConfig()
    inventory = Inventory()

    env_collector = EnvironmentCollector(admin, config)
    await env_collector.execute(inventory)
    environment_ids = [row.environment_id for row in inventory.environments]
    logger.info(f"Found {len(environment_ids)} environments.")

    per_environment = [cls(admin, config) for cls in ENVIRONMENT_COLLECTORS]
    per_environment += [cls(governance, config) for cls in GOVERNANCE_ENVIRONMENT_COLLECTORS]

    for index, environment_id in enumerate(environment_ids, start=1):
        print(f"  [{index}/{len(environment_ids)}] {environment_id}")
        for collector in per_environment:
            await collector.execute(inventory, environment_id)

    dlp_collector = DlpPolicyCollector(governance, config)
    await dlp_collector.execute(inventory)

    results = [env_collector, *per_environment, dlp_collector]
    return inventory, [c.result for c in results]

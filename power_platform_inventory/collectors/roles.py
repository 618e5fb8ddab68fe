"""
Environment Role Assignment Collector
Flattens per-environment role grants (Environment Admin, Environment Maker, ...).
"""

from __future__ import annotations

import logging
from typing import Optional

from .base import BaseCollector
from ..config import ROLE_ASSIGNMENTS_ENDPOINT
from ..models import Inventory, RoleAssignmentRow, dig, first_non_empty

logger = logging.getLogger("power_platform_inventory.collectors.roles")


def role_name(assignment: dict) -> str:
    name = dig(assignment, "properties", "roleName")
    if name:
        return name
    role_id = dig(assignment, "properties", "roleId", default="")
    return role_id.rstrip("/").rsplit("/", 1)[-1] if isinstance(role_id, str) else ""


class RoleAssignmentCollector(BaseCollector):
    name = "role_assignments"
    description = "Environment role assignments"

    async def collect(self, inventory: Inventory, environment_id: Optional[str] = None) -> int:
        assignments = await self.safe_get_all(
            ROLE_ASSIGNMENTS_ENDPOINT.format(environment=environment_id)
        )
        if assignments is None:
            return 0

        rows = [
            RoleAssignmentRow(
                environment_id=environment_id,
                role_name=role_name(a),
                principal_type=dig(a, "properties", "principal", "type", default=""),
                principal_name=first_non_empty(a, (
                    ("properties", "principal", "displayName"),
                    ("properties", "principal", "email"),
                )),
            )
            for a in assignments
        ]
        inventory.role_assignments.extend(rows)
        return len(rows)

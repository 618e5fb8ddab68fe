"""
Connector extraction and custom connector collection.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .base import BaseCollector
from ..config import CUSTOM_CONNECTORS_ENDPOINT
from ..models import ConnectorUsageRow, Inventory, dig, first_non_empty

logger = logging.getLogger("power_platform_inventory.collectors.connectors")

# Descriptor keys tried in order: readable name, then raw API identifiers
CONNECTOR_NAME_PATHS = (("displayName",), ("id",), ("apiName",))


def extract_connectors(properties: Any) -> list[str]:
    """
    Read ``connectionReferences`` from an app or flow property bag.

    Returns one name per reference in mapping order, duplicates kept.
    A missing or malformed bag yields an empty list for the whole object.
    """
    references = dig(properties, "connectionReferences")
    if references is None:
        return []
    if not isinstance(references, dict):
        logger.debug(f"connectionReferences is {type(references).__name__}, not a mapping")
        return []

    names = []
    for ref_name, descriptor in references.items():
        if not isinstance(descriptor, dict):
            logger.debug(f"Connection reference {ref_name!r} is malformed; ignoring all references")
            return []
        names.append(first_non_empty(descriptor, CONNECTOR_NAME_PATHS))
    return names


def usage_rows(
    environment_id: str,
    parent_type: str,
    parent_name: str,
    connectors: list[str],
) -> list[ConnectorUsageRow]:
    return [
        ConnectorUsageRow(
            environment_id=environment_id,
            parent_type=parent_type,
            parent_name=parent_name,
            connector_name=connector,
        )
        for connector in connectors
    ]


class CustomConnectorCollector(BaseCollector):
    name = "custom_connectors"
    description = "Custom connectors per environment"

    async def collect(self, inventory: Inventory, environment_id: Optional[str] = None) -> int:
        connectors = await self.safe_get_all(
            CUSTOM_CONNECTORS_ENDPOINT.format(environment=environment_id),
            params={"$filter": f"environment eq '{environment_id}'"},
        )
        if connectors is None:
            return 0

        rows = []
        for connector in connectors:
            name = first_non_empty(connector, (("properties", "displayName"), ("name",)))
            rows.extend(usage_rows(environment_id, "CustomConnector", name, [name]))

        inventory.connectors.extend(rows)
        return len(rows)

"""
Base collector class — Abstract interface for all data collectors.
Defines the contract for tenant-wide and per-environment collection.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..api.client import AdminClient, AdminAPIError
from ..config import CollectionConfig
from ..models import Inventory

logger = logging.getLogger("power_platform_inventory.collectors")


class CollectorResult:
    """Collection status for one report section."""

    def __init__(self, collector_name: str):
        self.collector_name = collector_name
        self.metadata: dict[str, Any] = {
            "collector": collector_name,
            "started_at": None,
            "completed_at": None,
            "duration_seconds": 0.0,
            "items_collected": 0,
            "errors": [],
            "warnings": [],
            "endpoints_queried": 0,
            "skipped_sections": [],
            "permission_gaps": [],
        }

    def add_items(self, count: int):
        self.metadata["items_collected"] += count

    def add_error(self, error: str):
        self.metadata["errors"].append(error)
        logger.error(f"[{self.collector_name}] {error}")

    def add_warning(self, warning: str):
        self.metadata["warnings"].append(warning)
        logger.warning(f"[{self.collector_name}] {warning}")

    def add_skipped(self, section: str, reason: str):
        self.metadata["skipped_sections"].append({"section": section, "reason": reason})
        logger.info(f"[{self.collector_name}] Skipped {section}: {reason}")

    @property
    def status(self) -> str:
        """ok, partial, failed or skipped."""
        m = self.metadata
        if m["skipped_sections"] and not m["endpoints_queried"]:
            return "skipped"
        if m["errors"] or m["permission_gaps"]:
            return "partial" if m["items_collected"] else "failed"
        if m["warnings"]:
            return "partial"
        return "ok"

    def to_dict(self) -> dict:
        return {"status": self.status, **self.metadata}


class BaseCollector(ABC):
    """
    Abstract base class for all collectors.

    Subclasses implement collect() and append rows to the Inventory.
    The base class provides:
      - Timing and metadata
      - Error handling wrapper
      - Skipping when the required session is unavailable
    """

    name: str = "base"
    description: str = "Base collector"

    def __init__(
        self,
        client: Optional[AdminClient],
        config: Optional[CollectionConfig] = None,
    ):
        self.client = client
        self.config = config or CollectionConfig()
        self.result = CollectorResult(self.name)

    async def execute(self, inventory: Inventory, environment_id: Optional[str] = None) -> CollectorResult:
        """
        Run one collection pass with timing and error handling.
        Per-environment collectors are executed once per environment.
        """
        section = environment_id or "tenant"
        if self.result.metadata["started_at"] is None:
            self.result.metadata["started_at"] = time.time()

        if self.client is None:
            self.result.add_skipped(section, "session not available")
            return self.result

        started = time.time()
        logger.debug(f"[{self.name}] Collecting {section}...")
        try:
            count = await self.collect(inventory, environment_id)
            self.result.add_items(count)
        except Exception as e:
            self.result.add_error(f"Collection failed for {section}: {type(e).__name__}: {e}")
            logger.debug(f"[{self.name}] Collection failed for {section}", exc_info=True)

        self.result.metadata["completed_at"] = time.time()
        self.result.metadata["duration_seconds"] = round(
            self.result.metadata["duration_seconds"] + time.time() - started, 2
        )
        return self.result

    @abstractmethod
    async def collect(self, inventory: Inventory, environment_id: Optional[str] = None) -> int:
        """
        Implement data collection logic.
        Append rows to the inventory only after the listing succeeded,
        and return the number of primary rows added.
        """
        raise NotImplementedError

    async def safe_get_all(self, url: str, params: Optional[dict] = None) -> Optional[list]:
        """Get all pages; record failures and return None instead of raising."""
        try:
            data = await self.client.get_all_pages(url, params=params)
            self.result.metadata["endpoints_queried"] += 1
            return data
        except AdminAPIError as e:
            if e.status_code == 403:
                self.result.add_warning(f"Permission denied: {url} — {e}")
                self.result.metadata["permission_gaps"].append(url)
            else:
                self.result.add_error(f"Failed to paginate {url}: {e}")
            return None
        except Exception as e:
            self.result.add_error(f"Failed to paginate {url}: {type(e).__name__}: {e}")
            return None

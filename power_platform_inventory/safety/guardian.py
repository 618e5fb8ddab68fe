"""
Safety Guardian — Enforces strict read-only operation.
Validates HTTP methods and target hosts, blocks anything else, and logs safety events.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urlsplit

from ..config import ALLOWED_HOSTS

logger = logging.getLogger("power_platform_inventory.safety")

READ_METHODS = {"GET", "HEAD", "OPTIONS"}


class SafetyViolation(Exception):
    """Raised when a write operation or a foreign host is attempted."""
    pass


class SafetyGuardian:
    """
    Validates every outbound HTTP request to ensure read-only operation
    against the Power Platform admin hosts.
    Maintains an audit log of all safety checks and violations.
    """

    def __init__(self, allowed_hosts: Optional[Iterable[str]] = None):
        self.allowed_hosts = set(allowed_hosts if allowed_hosts is not None else ALLOWED_HOSTS)
        self.violations: list[dict] = []
        self.checks_performed: int = 0
        self.started_at: str = datetime.now(timezone.utc).isoformat()

    def validate_request(self, method: str, url: str) -> bool:
        """
        Validate that a request is read-only and targets a known host.
        Returns True if safe, raises SafetyViolation if not.
        """
        self.checks_performed += 1
        method_upper = method.upper()

        if method_upper not in READ_METHODS:
            self._record_violation(method_upper, url, "Write HTTP method blocked")
            raise SafetyViolation(
                f"SAFETY VIOLATION: Write method blocked: {method_upper} {url}"
            )

        host = (urlsplit(url).hostname or "").lower()
        if host not in self.allowed_hosts:
            self._record_violation(method_upper, url, f"Host not allowed: {host or '<none>'}")
            raise SafetyViolation(
                f"SAFETY VIOLATION: Request to unknown host blocked: {method_upper} {url}"
            )

        return True

    def _record_violation(self, method: str, url: str, reason: str):
        """Record a safety violation for audit."""
        violation = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": method,
            "url": url,
            "reason": reason,
        }
        self.violations.append(violation)
        logger.critical(f"SAFETY VIOLATION: {reason} — {method} {url}")

    def get_audit_record(self) -> dict:
        """Return the full safety audit record."""
        return {
            "mode": "READ-ONLY",
            "started_at": self.started_at,
            "checks_performed": self.checks_performed,
            "violations_detected": len(self.violations),
            "violations": self.violations,
            "status": "CLEAN" if not self.violations else "VIOLATIONS_DETECTED",
        }

    @staticmethod
    def print_banner():
        """Print the read-only banner."""
        print("=" * 75)
        print("  POWER PLATFORM TENANT INVENTORY -- READ-ONLY")
        print("  * All API calls are GET/read-only")
        print("  * No environments, apps, flows or policies will be modified")
        print("  * Safety Guardian enforces read-only at the HTTP layer")
        print("=" * 75)

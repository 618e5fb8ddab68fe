"""
Power Platform Tenant Inventory — Main Orchestrator

Usage:
    python -m power_platform_inventory                                 # device-code sign-in
    python -m power_platform_inventory --username admin@contoso.com --password ...
    python -m power_platform_inventory --report-path ./inventory.xlsx
    python -m power_platform_inventory --config config.json
    python -m power_platform_inventory --tenant-id <GUID> --client-id <GUID> --cert-path ./base64.txt

This tool is STRICTLY READ-ONLY. It will NEVER modify the tenant.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Optional

from . import __version__
from .config import InventoryConfig, CertificateAuth, PasswordAuth, FLOW_HOST
from .safety.guardian import SafetyGuardian
from .auth.authenticator import Authenticator, AuthenticationError
from .api.client import AdminClient
from .collectors import CollectorResult
from .pipeline import run_inventory
from .reporting import export_xlsx

logger = logging.getLogger("power_platform_inventory")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="power_platform_inventory",
        description="Power Platform tenant inventory to a multi-sheet workbook (READ-ONLY)",
    )
    parser.add_argument(
        "--username", "-u",
        type=str,
        default=None,
        help="Sign in non-interactively as this user (requires --password)",
    )
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password for --username (plaintext)",
    )
    parser.add_argument(
        "--report-path", "-o",
        type=Path,
        default=None,
        help="Output workbook path (default: ./PowerPlatformInventory.xlsx)",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--tenant-id",
        type=str,
        default=None,
        help="Tenant ID (default: organizations)",
    )
    parser.add_argument(
        "--client-id",
        type=str,
        default=None,
        help="Client ID of the public or app-only client",
    )
    parser.add_argument(
        "--cert-path",
        type=Path,
        help="Path to base64-encoded PFX; switches to certificate (app-only) auth",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> InventoryConfig:
    """Build inventory configuration from a config file and CLI args."""
    if args.config and args.config.exists():
        config = InventoryConfig.from_file(args.config)
    else:
        config = InventoryConfig()

    auth = config.auth
    if args.tenant_id:
        auth.tenant_id = args.tenant_id
    if args.client_id:
        auth.client_id = args.client_id

    if args.cert_path:
        auth.mode = "certificate"
        auth.certificate = CertificateAuth(
            tenant_id=auth.tenant_id,
            client_id=auth.client_id,
            certificate_path=str(args.cert_path),
        )
    elif args.username and args.password:
        auth.mode = "password"
        auth.password = PasswordAuth(username=args.username, password=args.password)

    if args.report_path:
        config.output.report_path = str(args.report_path)
    config.verbose = config.verbose or args.verbose
    return config


def has_partial_credentials(args: argparse.Namespace) -> bool:
    """--username without --password (or the reverse), with no certificate."""
    return not args.cert_path and bool(args.username) != bool(args.password)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # msal and httpx are chatty at DEBUG
    for noisy in ("msal", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def print_summary(results: list[CollectorResult]) -> None:
    """Per-section collection status; failures never reach the workbook."""
    for result in results:
        status = result.status
        marker = {"ok": "✅", "partial": "⚠ ", "failed": "❌", "skipped": "⏭ "}[status]
        m = result.metadata
        print(f"  {marker} {result.collector_name:20s} {status:8s} "
              f"{m['items_collected']:6d} items ({m['duration_seconds']}s)")
        for w in m["warnings"]:
            print(f"      ⚠  {w}")
        for e in m["errors"]:
            print(f"      ❌ {e}")
        logger.debug(f"{result.collector_name}: {result.to_dict()}")


async def main_async(argv: Optional[list[str]] = None) -> int:
    """Async entry point."""
    args = parse_args(argv)
    config = build_config(args)
    configure_logging(config.verbose)
    if has_partial_credentials(args):
        logger.warning("Both --username and --password are needed; falling back to interactive sign-in.")

    guardian = SafetyGuardian()
    guardian.print_banner()
    print(f" Power Platform Tenant Inventory v{__version__}")
    print(f"📂 Report:  {config.output.path.resolve()}")

    # --- Authentication ---
    print("\n🔐 Authenticating...")
    authenticator = Authenticator(config.auth)
    try:
        sessions = authenticator.connect()
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        print("❌ Authentication failed. Exiting.")
        return 1
    print("✅ Authentication successful.")
    if sessions.governance_token is None:
        print("⚠  Governance session unavailable: DLP policies and role assignments will be empty.")

    # --- Collection ---
    print("\n" + "=" * 70)
    print(" DATA COLLECTION")
    print("=" * 70)
    async with AsyncExitStack() as stack:
        admin = await stack.enter_async_context(
            AdminClient(
                sessions.admin_token,
                guardian,
                max_pages=config.collection.max_pages,
                host_tokens={FLOW_HOST: sessions.flow_token} if sessions.flow_token else None,
            )
        )
        governance = None
        if sessions.governance_token:
            governance = await stack.enter_async_context(
                AdminClient(sessions.governance_token, guardian, max_pages=config.collection.max_pages)
            )
        inventory, results = await run_inventory(admin, governance, config.collection)
        stats = admin.get_stats()

    print("\n" + "=" * 70)
    print(" COLLECTION SUMMARY")
    print("=" * 70)
    print_summary(results)
    audit = guardian.get_audit_record()
    logger.info(
        f"Admin API: {stats['total_requests']} requests, "
        f"{stats['throttle_events']} throttle events; "
        f"{audit['checks_performed']} safety checks, status {audit['status']}"
    )
    for violation in audit["violations"]:
        logger.warning(f"Blocked request: {violation['method']} {violation['url']} ({violation['reason']})")

    # --- Report ---
    path = export_xlsx(inventory, config.output.path)
    print(f"\n  📊 Workbook: {path.resolve()}")
    for sheet_name, _, rows in inventory.sheets():
        print(f"      {sheet_name:15s} {len(rows)} rows")
    return 0


def main():
    """Synchronous entry point for `python -m power_platform_inventory`."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()

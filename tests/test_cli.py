"""Tests for argument parsing, configuration merging and the run entry point."""
import json
import logging
from unittest.mock import patch

from openpyxl import load_workbook

from power_platform_inventory import __main__ as cli
from power_platform_inventory.auth.authenticator import AuthenticationError, Sessions
from power_platform_inventory.collectors import CollectorResult
from power_platform_inventory.config import DEFAULT_REPORT_PATH, FLOW_HOST, InventoryConfig
from power_platform_inventory.models import AppRow, EnvironmentRow, FlowRow, Inventory


def config_for(*argv):
    return cli.build_config(cli.parse_args(list(argv)))


def test_defaults_to_interactive_and_default_report():
    config = config_for()
    assert config.auth.mode == "interactive"
    assert config.output.report_path == DEFAULT_REPORT_PATH


def test_username_and_password_select_password_mode():
    config = config_for("--username", "admin@contoso.com", "--password", "pw", "--report-path", "out.xlsx")
    assert config.auth.mode == "password"
    assert config.auth.password.username == "admin@contoso.com"
    assert config.output.report_path == "out.xlsx"


def test_username_alone_stays_interactive():
    assert config_for("--username", "admin@contoso.com").auth.mode == "interactive"


def test_cert_path_selects_certificate_mode():
    config = config_for("--tenant-id", "t-1", "--client-id", "c-1", "--cert-path", "cert.txt")
    assert config.auth.mode == "certificate"
    assert config.auth.certificate.tenant_id == "t-1"
    assert config.auth.certificate.client_id == "c-1"


def test_config_file_loaded_and_overridden(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "auth": {"tenant_id": "contoso.onmicrosoft.com"},
        "collection": {"include_flow_owners": False, "unknown": 1},
        "output": {"report_path": "from-file.xlsx"},
        "verbose": True,
    }))
    config = config_for("--config", str(path), "--report-path", "cli.xlsx")

    assert config.auth.tenant_id == "contoso.onmicrosoft.com"
    assert config.collection.include_flow_owners is False
    assert config.output.report_path == "cli.xlsx"
    assert config.verbose is True


def test_from_file_certificate_section(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"auth": {
        "mode": "certificate",
        "certificate": {"tenant_id": "t", "client_id": "c", "certificate_path": "pfx.txt"},
    }}))
    config = InventoryConfig.from_file(path)
    assert config.auth.mode == "certificate"
    assert config.auth.certificate.certificate_path == "pfx.txt"


def test_primary_auth_failure_exits_nonzero(tmp_path):
    report = tmp_path / "report.xlsx"
    with patch.object(cli.Authenticator, "connect", side_effect=AuthenticationError("denied")):
        code = cli.asyncio.run(cli.main_async(["--report-path", str(report)]))
    assert code == 1
    assert not report.exists()


def test_from_file_password_section(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"auth": {
        "mode": "password",
        "password": {"username": "admin@contoso.com", "password": "pw"},
    }}))
    config = InventoryConfig.from_file(path)
    assert config.auth.mode == "password"
    assert config.auth.password.username == "admin@contoso.com"
    assert config.auth.password.password == "pw"


def test_partial_credentials_warning_logged_after_setup(tmp_path, caplog):
    caplog.set_level(logging.WARNING, logger="power_platform_inventory")
    with patch.object(cli, "configure_logging") as configure, \
            patch.object(cli.Authenticator, "connect", side_effect=AuthenticationError("denied")):
        configure.side_effect = lambda verbose: caplog.clear()
        cli.asyncio.run(cli.main_async([
            "--username", "admin@contoso.com", "--report-path", str(tmp_path / "r.xlsx"),
        ]))

    configure.assert_called_once()
    assert "falling back to interactive sign-in" in caplog.text


# ─── Successful run ──────────────────────────────────────────────────────────

def sample_inventory():
    inventory = Inventory()
    inventory.environments.append(
        EnvironmentRow("env-1", "Contoso", "europe", "Production", True, "2024-01-01", "Production")
    )
    inventory.apps.append(AppRow("env-1", "Expenses", "app-1", "alice@contoso.com", 1, "SharePoint"))
    inventory.flows.append(FlowRow("env-1", "Approvals", "flow-1", "bob@contoso.com", 0, ""))
    return inventory


def test_successful_run_writes_workbook(tmp_path, caplog):
    caplog.set_level(logging.DEBUG, logger="power_platform_inventory")
    report = tmp_path / "out" / "inventory.xlsx"
    seen = {}

    async def fake_run_inventory(admin, governance, config):
        seen["admin"] = admin
        seen["governance"] = governance
        result = CollectorResult("environments")
        result.add_items(1)
        return sample_inventory(), [result]

    sessions = Sessions(admin_token="admin-token", flow_token="flow-token", governance_token="gov-token")
    with patch.object(cli.Authenticator, "connect", return_value=sessions), \
            patch.object(cli, "run_inventory", new=fake_run_inventory):
        code = cli.asyncio.run(cli.main_async(["--report-path", str(report), "--verbose"]))

    assert code == 0
    assert seen["admin"].access_token == "admin-token"
    assert seen["admin"].host_tokens == {FLOW_HOST: "flow-token"}
    assert seen["governance"].access_token == "gov-token"

    wb = load_workbook(report)
    assert wb.sheetnames == ["Apps", "Flows", "Connectors", "DLPPolicies", "Environments", "SecurityRoles"]
    assert wb["Apps"].cell(row=2, column=2).value == "Expenses"
    assert wb["Flows"].cell(row=2, column=4).value == "bob@contoso.com"
    assert wb["DLPPolicies"].max_row == 1

    assert "environments: {'status': 'ok'" in caplog.text
    assert "status CLEAN" in caplog.text


def test_missing_governance_session_passes_no_client(tmp_path):
    seen = {}

    async def fake_run_inventory(admin, governance, config):
        seen["governance"] = governance
        return Inventory(), []

    with patch.object(cli.Authenticator, "connect", return_value=Sessions("admin-token", "flow-token")), \
            patch.object(cli, "run_inventory", new=fake_run_inventory):
        code = cli.asyncio.run(cli.main_async(["--report-path", str(tmp_path / "r.xlsx")]))

    assert code == 0
    assert seen["governance"] is None
    assert load_workbook(tmp_path / "r.xlsx").sheetnames[0] == "Apps"

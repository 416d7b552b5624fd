from contextlib import contextmanager

import pytest
from typer.testing import CliRunner

from cli.main import app
from models.entities import ActionOutcome, ProvisioningEvent

ENV = {"COLUMNS": "200", "MSSQL_DSN": None}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def audit_store(monkeypatch, audit_session):
    """Point the CLI's audit store at the in-memory session."""

    @contextmanager
    def fake_get_session():
        yield audit_session
        audit_session.commit()

    monkeypatch.setattr("models.database.get_session", fake_get_session)
    monkeypatch.setattr("models.database.init_db", lambda: None)
    return audit_session


def invoke(runner, *args):
    return runner.invoke(app, list(args), env=ENV)


def test_banner_without_command(runner):
    result = invoke(runner)
    assert result.exit_code == 0
    assert "Quick Start" in result.output


def test_demo_roles_scenario(runner):
    result = invoke(runner, "demo", "roles")
    assert result.exit_code == 0
    assert "Member grants on server-role:300" in result.output


def test_demo_all_scenarios(runner):
    result = invoke(runner, "demo", "all", "--visit-policy", "on-discovery")
    assert result.exit_code == 0
    assert "Permission Grants" in result.output


def test_demo_unknown_scenario(runner):
    result = invoke(runner, "demo", "bogus")
    assert result.exit_code == 1
    assert "Unknown scenario" in result.output


def test_server_required(runner):
    result = invoke(runner, "roles", "list")
    assert result.exit_code == 1
    assert "No server configured" in result.output


def test_roles_list(runner):
    result = invoke(runner, "--dsn", "demo", "roles", "list", "--database", "sales")
    assert result.exit_code == 0
    assert "Analysts" in result.output
    assert "database-role:sales:16400" in result.output


def test_role_members_all_pages(runner):
    result = invoke(runner, "--dsn", "demo", "roles", "members", "server-role:300", "--all")
    assert result.exit_code == 0
    assert "257" in result.output
    assert "Last page" in result.output


def test_role_members_single_page_prints_token(runner):
    result = invoke(runner, "--dsn", "demo", "roles", "members", "server-role:300", "--page-size", "1")
    assert result.exit_code == 0
    assert "Next token" in result.output


def test_role_members_bad_token(runner):
    result = invoke(runner, "--dsn", "demo", "roles", "members", "server-role:300", "--token", "garbage")
    assert result.exit_code == 1
    assert "Error" in result.output


def test_permission_grants(runner):
    result = invoke(runner, "--dsn", "demo", "permissions", "grants", "database:5")
    assert result.exit_code == 0
    assert "database:5:SL-grant" in result.output


def test_entitlements(runner):
    result = invoke(runner, "--dsn", "demo", "entitlements", "server-role:300")
    assert result.exit_code == 0
    assert "server-role:300:member" in result.output


def test_provision_grant_is_audited(runner, audit_store):
    result = invoke(runner, "--dsn", "demo", "provision", "grant", "server-role:301:member", "258")
    assert result.exit_code == 0
    assert "Granted" in result.output

    events = audit_store.query(ProvisioningEvent).all()
    assert [(e.entitlement_id, e.outcome) for e in events] == [("server-role:301:member", ActionOutcome.SUCCESS)]


def test_failed_provisioning_keeps_audit_event(runner, audit_store):
    result = invoke(runner, "--dsn", "demo", "provision", "grant", "database:5:COSQ", "258")
    assert result.exit_code == 1

    events = audit_store.query(ProvisioningEvent).all()
    assert [e.outcome for e in events] == [ActionOutcome.FAILURE]


def test_create_sql_login_shows_password(runner, audit_store):
    result = invoke(runner, "--dsn", "demo", "provision", "create-login", "erin", "--type", "sql")
    assert result.exit_code == 0
    assert "Password (shown once)" in result.output


def test_audit_logs_and_stats(runner, audit_store):
    invoke(runner, "--dsn", "demo", "provision", "disable-login", "258")

    logs = invoke(runner, "audit", "logs")
    assert logs.exit_code == 0
    assert "disable-login" in logs.output

    stats = invoke(runner, "audit", "stats")
    assert stats.exit_code == 0
    assert "Total Actions:" in stats.output


def test_audit_export(runner, audit_store, tmp_path):
    output = tmp_path / "events.csv"
    result = invoke(runner, "audit", "export", "-o", str(output), "-f", "csv")
    assert result.exit_code == 0
    assert output.read_text().startswith("timestamp,action")

import string

import pytest

from core.exceptions import ProvisioningError
from core.provisioner import PASSWORD_LENGTH, SPECIAL_CHARS, Provisioner, generate_password
from models.entities import ActionOutcome, ProvisioningAction
from models.principals import Grant, ResourceId, Scope
from mssqldb.models import LoginType
from scenarios import demo_data

ALICE = ResourceId("user", str(demo_data.ALICE))
CAROL = ResourceId("user", str(demo_data.CAROL))


@pytest.fixture
def provisioner(demo_catalog, audit):
    return Provisioner(demo_catalog, audit=audit)


def test_generated_password_meets_complexity():
    password = generate_password()
    assert len(password) == PASSWORD_LENGTH
    assert any(c in string.ascii_uppercase for c in password)
    assert any(c in string.ascii_lowercase for c in password)
    assert any(c in string.digits for c in password)
    assert any(c in SPECIAL_CHARS for c in password)


def test_generated_passwords_differ():
    assert generate_password() != generate_password()


def test_grant_database_permission_creates_user(provisioner, demo_catalog):
    """carol has no user in sales yet."""
    grant = provisioner.grant(f"database:{demo_data.SALES_DB}:SL-grant", CAROL)

    assert grant.entitlement_id == f"database:{demo_data.SALES_DB}:SL-grant"
    assert demo_catalog.statements == [
        "USE [sales]; CREATE USER [carol] FOR LOGIN [carol]",
        "GRANT SELECT ON DATABASE::[sales] TO [carol] WITH GRANT OPTION",
    ]
    user = demo_catalog.get_database_user_for_login("sales", demo_data.CAROL)
    records, _ = demo_catalog.list_permissions(Scope.DATABASE, "", 100, database_name="sales")
    assert any(r.principal_id == user.id and r.state == "W" and r.permissions == "SL" for r in records)


def test_grant_to_existing_database_user(provisioner, demo_catalog):
    provisioner.grant(f"database:{demo_data.SALES_DB}:VW", ALICE)
    assert demo_catalog.statements == ["GRANT VIEW DEFINITION ON DATABASE::[sales] TO [alice]"]


def test_grant_server_role_membership(provisioner, demo_catalog):
    provisioner.grant(f"server-role:{demo_data.MANAGERS}:member", CAROL)
    members, _ = demo_catalog.list_role_members("server-role", str(demo_data.MANAGERS), "", 100)
    assert demo_data.CAROL in [m.id for m in members]


def test_grant_database_role_membership(provisioner, demo_catalog):
    provisioner.grant(f"database-role:sales:{demo_data.READERS}:member", CAROL)
    assert demo_catalog.statements[-1] == "USE [sales]; ALTER ROLE [Readers] ADD MEMBER [carol]"


def test_revoke_role_membership(provisioner, demo_catalog):
    manager = ResourceId("server-role", str(demo_data.MANAGERS))
    provisioner.revoke(Grant(resource=manager, entitlement="member", principal=ResourceId("user", str(demo_data.BOB))))
    members, _ = demo_catalog.list_role_members("server-role", str(demo_data.MANAGERS), "", 100)
    assert members == []


def test_revoke_grant_option_keeps_permission(provisioner, demo_catalog):
    """alice holds SL,IN,UP with grant option in sales."""
    database = ResourceId("database", str(demo_data.SALES_DB))
    provisioner.revoke(Grant(resource=database, entitlement="SL-grant", principal=ALICE))

    assert demo_catalog.statements == [
        "REVOKE GRANT OPTION FOR SELECT ON DATABASE::[sales] FROM [alice] CASCADE"
    ]
    records, _ = demo_catalog.list_permissions(Scope.DATABASE, "", 100, database_name="sales")
    alice = [(r.state, r.permissions) for r in records if r.principal_id == demo_data.SALES_ALICE]
    assert alice == [("W", "IN,UP"), ("G", "SL")]


def test_revoke_without_database_user_is_a_noop(provisioner, demo_catalog, audit):
    database = ResourceId("database", str(demo_data.SALES_DB))
    provisioner.revoke(Grant(resource=database, entitlement="SL", principal=CAROL))
    assert demo_catalog.statements == []
    assert audit.get_events()[0].outcome == ActionOutcome.SUCCESS


@pytest.mark.parametrize(
    "entitlement_id, principal",
    [
        ("database:5:SL", ResourceId("group", str(demo_data.DBA_TEAM))),
        ("schema:sales:1:SL", CAROL),
        ("server-role:301:SL", CAROL),
        ("database:5:COSQ", CAROL),
        ("not-an-entitlement", CAROL),
        ("database:99:SL", CAROL),
    ],
)
def test_unsupported_requests_raise_provisioning_error(provisioner, entitlement_id, principal):
    with pytest.raises(ProvisioningError):
        provisioner.grant(entitlement_id, principal)


def test_every_action_is_audited(provisioner, audit):
    provisioner.grant(f"server-role:{demo_data.MANAGERS}:member", CAROL)
    with pytest.raises(ProvisioningError):
        provisioner.grant("database:5:COSQ", CAROL)

    events = audit.get_events()
    assert [(e.action, e.outcome) for e in events] == [
        (ProvisioningAction.GRANT, ActionOutcome.FAILURE),
        (ProvisioningAction.GRANT, ActionOutcome.SUCCESS),
    ]
    assert events[1].entitlement_id == f"server-role:{demo_data.MANAGERS}:member"
    assert events[1].principal_id == str(demo_data.CAROL)
    assert events[1].server_name == "DEMO-SQL01"


def test_create_sql_login_returns_password_once(provisioner, demo_catalog, audit):
    created = provisioner.create_login(LoginType.SQL, "erin")

    assert created.password is not None
    assert created.name == "erin"
    assert demo_catalog.get_login(created.principal.resource).name == "erin"
    event = audit.get_events(action=ProvisioningAction.CREATE_LOGIN)[0]
    assert created.password not in (event.detail or "")


def test_create_windows_login_with_domain(provisioner):
    created = provisioner.create_login(LoginType.WINDOWS, "frank", domain="CORP")
    assert created.name == "CORP\\frank"
    assert created.password is None


def test_create_login_rejects_unsafe_names(provisioner, audit):
    with pytest.raises(ProvisioningError):
        provisioner.create_login(LoginType.SQL, "bad]name")
    assert audit.get_events()[0].outcome == ActionOutcome.FAILURE


def test_disable_login(provisioner, demo_catalog):
    provisioner.disable_login(str(demo_data.CAROL))
    assert demo_catalog.get_login(demo_data.CAROL).is_disabled


def test_without_audit_logger(demo_catalog):
    Provisioner(demo_catalog).disable_login(str(demo_data.CAROL))
    assert demo_catalog.statements == ["ALTER LOGIN [carol] DISABLE"]

import pytest

from core.connector import SQLServerConnector
from core.exceptions import DecodeError
from core.vocabulary import vocabulary_for
from models.principals import EntitlementPurpose, ResourceId, Scope
from scenarios import demo_data


@pytest.fixture
def connector(demo_catalog):
    return SQLServerConnector(demo_catalog)


def all_grants(fetch, resource, page_size=100):
    grants, token = [], ""
    while True:
        page = fetch(resource, token, page_size)
        grants.extend(page.grants)
        token = page.next_token
        if not token:
            return grants


def test_validate_returns_server_name(connector):
    assert connector.validate() == "DEMO-SQL01"


def test_server_permission_grants(connector):
    grants = all_grants(connector.permission_grants, ResourceId("server", "DEMO-SQL01"))
    assert [g.entitlement_id for g in grants] == [
        "server:DEMO-SQL01:CO",
        "server:DEMO-SQL01:COSQ",
        "server:DEMO-SQL01:VWSS",
        "server:DEMO-SQL01:ALDB-grant",
        "server:DEMO-SQL01:VWDB-grant",
        "server:DEMO-SQL01:VWSS",
    ]


def test_database_permission_grants(connector):
    grants = all_grants(connector.permission_grants, ResourceId("database", str(demo_data.SALES_DB)))
    assert [(g.entitlement, str(g.principal)) for g in grants] == [
        ("SL-grant", "user:256"),
        ("IN-grant", "user:256"),
        ("UP-grant", "user:256"),
        ("CO", "user:257"),
        ("SL", "user:257"),
        ("SL", f"database-role:sales:{demo_data.READERS}"),
    ]


def test_schema_and_table_permission_grants(connector):
    schema = ResourceId("schema", f"sales:{demo_data.DBO_SCHEMA}")
    table = ResourceId("table", f"sales:{demo_data.ORDERS_TABLE}")

    assert [(g.entitlement, str(g.principal)) for g in all_grants(connector.permission_grants, schema)] == [
        ("SL", f"database-role:sales:{demo_data.ANALYSTS}"),
        ("EX", f"database-role:sales:{demo_data.ANALYSTS}"),
        ("VW", f"user:{demo_data.DAVE}"),
    ]
    assert [g.entitlement_id for g in all_grants(connector.permission_grants, table)] == [
        f"table:sales:{demo_data.ORDERS_TABLE}:SL",
        f"table:sales:{demo_data.ORDERS_TABLE}:UP",
    ]


def test_permission_grants_are_paged(connector):
    resource = ResourceId("database", str(demo_data.SALES_DB))
    first = connector.permission_grants(resource, "", page_size=2)
    assert first.next_token == "2"
    assert all_grants(connector.permission_grants, resource, page_size=1) == \
        all_grants(connector.permission_grants, resource, page_size=100)


def test_invalid_page_token(connector):
    with pytest.raises(DecodeError):
        connector.permission_grants(ResourceId("server", "DEMO-SQL01"), "not-an-offset")


def test_roles_have_no_permission_listing(connector):
    with pytest.raises(ValueError):
        connector.permission_grants(ResourceId("server-role", "300"))


def test_role_grants_delegate_to_walker(connector):
    grants = all_grants(connector.role_grants, ResourceId("server-role", str(demo_data.ADMINS)))
    assert {str(g.principal) for g in grants} == {"server-role:301", "user:256", "user:257"}


def test_database_entitlements_include_grant_variants(connector):
    resource = ResourceId("database", "5")
    entitlements = connector.entitlements(resource)
    ids = {e.id for e in entitlements}

    assert len(entitlements) == 2 * len(vocabulary_for(Scope.DATABASE))
    assert "database:5:SL" in ids
    assert "database:5:SL-grant" in ids
    names = {e.slug: e.display_name for e in entitlements}
    assert names["SL-grant"] == "Select (With Grant)"


def test_table_entitlements_have_no_grant_variants(connector):
    entitlements = connector.entitlements(ResourceId("table", "sales:1"))
    assert len(entitlements) == len(vocabulary_for(Scope.TABLE))
    assert not any(e.slug.endswith("-grant") for e in entitlements)


def test_user_entitlements_use_login_vocabulary(connector):
    slugs = {e.slug for e in connector.entitlements(ResourceId("user", "256"))}
    assert slugs == {"AL", "CL", "IM", "VW"}


def test_role_entitlement_is_membership(connector):
    [entitlement] = connector.entitlements(ResourceId("database-role", "sales:16400"))
    assert entitlement.id == "database-role:sales:16400:member"
    assert entitlement.purpose is EntitlementPurpose.ASSIGNMENT
    assert "database-role" in entitlement.grantable_to


def test_other_resources_offer_nothing(connector):
    assert connector.entitlements(ResourceId("endpoint", "1")) == []

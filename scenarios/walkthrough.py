"""
Demo Walkthrough
================

Runs the traversal engine and the permission decoder against the demo
catalog and prints every page, so the paging, cycle handling and decoding
can be followed call by call.

Scenarios:
1. roles - Admins/Managers flattened one member per call
2. cycle - Ops and OnCall are members of each other
3. diamond - a database role reachable through two paths, under both visit policies
4. permissions - server, database, schema and table grants
5. provisioning - grant, revoke and login creation against the demo catalog
"""

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box
from rich.markup import escape

from core.connector import SQLServerConnector
from core.token_codec import describe
from core.walker import VisitPolicy
from models.principals import (
    DATABASE, DATABASE_ROLE, SCHEMA, SERVER, SERVER_ROLE, TABLE, ResourceId
)
from mssqldb.models import LoginType
from . import demo_data

console = Console()


def run_scenarios(scenario_name: str = "all", visit_policy: VisitPolicy = VisitPolicy.ON_COMPLETION):
    """
    Run demo scenarios.

    Args:
        scenario_name: roles, cycle, diamond, permissions, provisioning or all
        visit_policy: visit policy for the roles and cycle scenarios
    """
    scenarios = {
        'roles': lambda: run_roles_scenario(visit_policy),
        'cycle': lambda: run_cycle_scenario(visit_policy),
        'diamond': run_diamond_scenario,
        'permissions': run_permissions_scenario,
        'provisioning': run_provisioning_scenario
    }

    console.print(Panel(
        "[bold]SQL Server Access Inventory Walkthrough[/bold]\n\n"
        "Flattens nested role membership one page per call and decodes\n"
        "permission rows into grants, using an in-memory demo catalog.",
        title="Demo",
        box=box.DOUBLE
    ))

    if scenario_name == "all":
        for func in scenarios.values():
            console.print(f"\n[bold cyan]{'=' * 60}[/bold cyan]")
            func()
    elif scenario_name in scenarios:
        scenarios[scenario_name]()
    else:
        raise ValueError(f"Unknown scenario: {scenario_name}. Available: {', '.join(scenarios)}, all")


def run_roles_scenario(visit_policy: VisitPolicy = VisitPolicy.ON_COMPLETION):
    console.print(Panel(
        "[bold]Scenario: Nested server roles[/bold]\n\n"
        "Admins has members Managers and alice; Managers has member bob.\n"
        "Page size 1, so each call expands a single member.",
        title="Roles Scenario",
        box=box.ROUNDED
    ))
    catalog = demo_data.build_demo_catalog()
    connector = SQLServerConnector(catalog, visit_policy=visit_policy)
    _print_walk(connector, ResourceId(SERVER_ROLE, str(demo_data.ADMINS)), page_size=1)


def run_cycle_scenario(visit_policy: VisitPolicy = VisitPolicy.ON_COMPLETION):
    console.print(Panel(
        "[bold]Scenario: Membership cycle[/bold]\n\n"
        "Ops contains OnCall and OnCall contains Ops. The walk terminates and\n"
        "each role is fetched once.",
        title="Cycle Scenario",
        box=box.ROUNDED
    ))
    catalog = demo_data.build_demo_catalog()
    connector = SQLServerConnector(catalog, visit_policy=visit_policy)
    _print_walk(connector, ResourceId(SERVER_ROLE, str(demo_data.OPS)))
    console.print(f"Membership fetches: {len(catalog.fetch_log)}")


def run_diamond_scenario():
    console.print(Panel(
        "[bold]Scenario: Diamond of database roles[/bold]\n\n"
        "Analysts contains Base and Readers; Readers also contains Base.\n"
        "on-completion may expand Base twice; on-discovery expands it once.\n"
        "report_reader has no login and order_app is an application role; both are skipped.",
        title="Diamond Scenario",
        box=box.ROUNDED
    ))
    root = ResourceId(DATABASE_ROLE, f"{demo_data.SALES}:{demo_data.ANALYSTS}")
    for policy in VisitPolicy:
        catalog = demo_data.build_demo_catalog()
        connector = SQLServerConnector(catalog, visit_policy=policy)
        console.print(f"\n[bold]Visit policy: {policy.value}[/bold]")
        _print_walk(connector, root)
        fetched = [key for _, key, _ in catalog.fetch_log]
        console.print(f"Roles fetched: {', '.join(fetched)}")


def run_permissions_scenario():
    console.print(Panel(
        "[bold]Scenario: Permission decoding[/bold]\n\n"
        "State G emits the code, W emits code-grant. Unknown codes and DENY rows\n"
        "are dropped; database users without a login are skipped.",
        title="Permissions Scenario",
        box=box.ROUNDED
    ))
    connector = SQLServerConnector(demo_data.build_demo_catalog())
    resources = [
        ResourceId(SERVER, "DEMO-SQL01"),
        ResourceId(DATABASE, str(demo_data.SALES_DB)),
        ResourceId(SCHEMA, f"{demo_data.SALES}:{demo_data.DBO_SCHEMA}"),
        ResourceId(TABLE, f"{demo_data.SALES}:{demo_data.ORDERS_TABLE}"),
    ]

    table = Table(title="Permission Grants", box=box.ROUNDED)
    table.add_column("Resource", style="cyan")
    table.add_column("Entitlement", style="magenta")
    table.add_column("Principal", style="green")

    for resource in resources:
        for page in _pages(connector.permission_grants, resource):
            for grant in page.grants:
                table.add_row(str(resource), grant.entitlement, str(grant.principal))

    console.print(table)


def run_provisioning_scenario():
    console.print(Panel(
        "[bold]Scenario: Provisioning[/bold]\n\n"
        "Creates a SQL login, grants it SELECT on sales (creating the database\n"
        "user), adds it to Managers, then revokes the role membership.",
        title="Provisioning Scenario",
        box=box.ROUNDED
    ))
    catalog = demo_data.build_demo_catalog()
    connector = SQLServerConnector(catalog)
    provisioner = connector.provisioner

    created = provisioner.create_login(LoginType.SQL, "erin")
    console.print(f"Created login [cyan]{created.name}[/cyan] as {created.principal}")

    provisioner.grant(f"{DATABASE}:{demo_data.SALES_DB}:SL", created.principal)
    membership = provisioner.grant(f"{SERVER_ROLE}:{demo_data.MANAGERS}:member", created.principal)
    provisioner.revoke(membership)

    console.print("\n[bold]Statements issued:[/bold]")
    for statement in catalog.statements:
        console.print(f"  [dim]{escape(statement)}[/dim]")


def _pages(fetch, resource, page_size: int = 100):
    token = ""
    while True:
        page = fetch(resource, token, page_size)
        yield page
        if page.is_last:
            return
        token = page.next_token


def _print_walk(connector: SQLServerConnector, root: ResourceId, page_size: int = 100):
    table = Table(title=f"Member grants on {root}", box=box.ROUNDED)
    table.add_column("Call", justify="right")
    table.add_column("Grants", style="green")
    table.add_column("Pending", style="dim")

    for call, page in enumerate(_pages(connector.role_grants, root, page_size), 1):
        grants = "\n".join(str(grant.principal) for grant in page.grants) or "-"
        pending = describe(page.next_token)["pending"]
        table.add_row(str(call), grants, ", ".join(pending) or "(done)")

    console.print(table)


if __name__ == "__main__":
    run_scenarios("all")

"""
Demo Data
=========

Builds an in-memory SQL Server catalog that exercises every path of the
traversal engine and the permission decoder:

- Server roles ``Admins`` -> {``Managers``, alice}, ``Managers`` -> {bob}
- Server roles ``Ops`` <-> ``OnCall`` forming a membership cycle
- Database roles in ``sales`` forming a diamond:
  ``Analysts`` -> {``Base``, ``Readers``, dave}, ``Readers`` -> {``Base``, bob}
- A database user without a login and an application role in ``Base``
- Permission rows at server, database, schema and table scope, including a
  code outside the vocabulary and a DENY row
- An OFFLINE database
"""

from models.principals import DATABASE_ROLE, SERVER_ROLE, Scope
from .catalog import InMemoryCatalog

# Logins
ALICE = 256
BOB = 257
CAROL = 258
DAVE = 259
DBA_TEAM = 260
SVC_REPORT = 261

# Server roles
ADMINS = 300
MANAGERS = 301
OPS = 303
ONCALL = 304

# Databases
SALES_DB = 5
ARCHIVE_DB = 6
SALES = "sales"

# sales principals
SALES_ALICE = 5
SALES_BOB = 6
SALES_REPORT_READER = 7
SALES_DAVE = 8
SALES_APP_ROLE = 9
ANALYSTS = 16400
READERS = 16401
BASE = 16402

DBO_SCHEMA = 1
ORDERS_TABLE = 245575913


def build_demo_catalog(skip_unavailable_databases: bool = False) -> InMemoryCatalog:
    """Create the demo catalog from scratch."""
    catalog = InMemoryCatalog(server_name="DEMO-SQL01", skip_unavailable_databases=skip_unavailable_databases)

    # ================================================================
    # Databases, schemas, tables
    # ================================================================
    catalog.add_database(1, "master")
    catalog.add_database(SALES_DB, SALES)
    catalog.add_database(ARCHIVE_DB, "archive", state_desc="OFFLINE")
    catalog.add_schema(SALES, DBO_SCHEMA, "dbo")
    catalog.add_table(SALES, ORDERS_TABLE, DBO_SCHEMA, "orders")

    # ================================================================
    # Server principals
    # ================================================================
    catalog.add_login(ALICE, "alice", 'S')
    catalog.add_login(BOB, "CORP\\bob", 'U')
    catalog.add_login(CAROL, "carol", 'S')
    catalog.add_login(DAVE, "dave@corp.example", 'E')
    catalog.add_login(DBA_TEAM, "CORP\\dba-team", 'G')
    catalog.add_login(SVC_REPORT, "svc_report", 'S')

    catalog.add_server_role(ADMINS, "Admins")
    catalog.add_server_role(MANAGERS, "Managers")
    catalog.add_server_role(OPS, "Ops")
    catalog.add_server_role(ONCALL, "OnCall")

    catalog.add_member(SERVER_ROLE, str(ADMINS), MANAGERS, "Managers", 'R')
    catalog.add_member(SERVER_ROLE, str(ADMINS), ALICE, "alice", 'S')
    catalog.add_member(SERVER_ROLE, str(MANAGERS), BOB, "CORP\\bob", 'U')

    # Ops and OnCall are members of each other
    catalog.add_member(SERVER_ROLE, str(OPS), ONCALL, "OnCall", 'R')
    catalog.add_member(SERVER_ROLE, str(OPS), DBA_TEAM, "CORP\\dba-team", 'G')
    catalog.add_member(SERVER_ROLE, str(ONCALL), OPS, "Ops", 'R')
    catalog.add_member(SERVER_ROLE, str(ONCALL), CAROL, "carol", 'S')

    # ================================================================
    # sales principals
    # ================================================================
    catalog.add_database_principal(SALES, SALES_ALICE, "alice", 'S', login_id=ALICE)
    catalog.add_database_principal(SALES, SALES_BOB, "CORP\\bob", 'U', login_id=BOB)
    catalog.add_database_principal(SALES, SALES_REPORT_READER, "report_reader", 'S', login_id=None)
    catalog.add_database_principal(SALES, SALES_DAVE, "dave@corp.example", 'E', login_id=DAVE)
    catalog.add_database_principal(SALES, SALES_APP_ROLE, "order_app", 'A', login_id=None)

    catalog.add_database_role(SALES, ANALYSTS, "Analysts")
    catalog.add_database_role(SALES, READERS, "Readers")
    catalog.add_database_role(SALES, BASE, "Base")

    analysts, readers, base = (f"{SALES}:{ANALYSTS}", f"{SALES}:{READERS}", f"{SALES}:{BASE}")
    catalog.add_member(DATABASE_ROLE, analysts, BASE, "Base", 'R')
    catalog.add_member(DATABASE_ROLE, analysts, READERS, "Readers", 'R')
    catalog.add_member(DATABASE_ROLE, analysts, SALES_DAVE, "dave@corp.example", 'E')
    catalog.add_member(DATABASE_ROLE, readers, BASE, "Base", 'R')
    catalog.add_member(DATABASE_ROLE, readers, SALES_BOB, "CORP\\bob", 'U')
    catalog.add_member(DATABASE_ROLE, base, SALES_ALICE, "alice", 'S')
    catalog.add_member(DATABASE_ROLE, base, SALES_REPORT_READER, "report_reader", 'S')
    catalog.add_member(DATABASE_ROLE, base, SALES_APP_ROLE, "order_app", 'A')

    # ================================================================
    # Permissions
    # ================================================================
    catalog.add_permission(Scope.SERVER, ALICE, "alice", 'S', 'G', "CO,COSQ,VWSS")
    catalog.add_permission(Scope.SERVER, ADMINS, "Admins", 'R', 'W', "ALDB,VWDB")
    catalog.add_permission(Scope.SERVER, DBA_TEAM, "CORP\\dba-team", 'G', 'G', "VWSS,XYZZ")
    catalog.add_permission(Scope.SERVER, SVC_REPORT, "svc_report", 'S', 'D', "SHDN")

    catalog.add_permission(Scope.DATABASE, SALES_ALICE, "alice", 'S', 'W', "SL,IN,UP", database_name=SALES)
    catalog.add_permission(Scope.DATABASE, SALES_BOB, "CORP\\bob", 'U', 'G', "CO,SL", database_name=SALES)
    catalog.add_permission(Scope.DATABASE, SALES_REPORT_READER, "report_reader", 'S', 'G', "SL", database_name=SALES)
    catalog.add_permission(Scope.DATABASE, READERS, "Readers", 'R', 'G', "SL", database_name=SALES)

    catalog.add_permission(
        Scope.SCHEMA, ANALYSTS, "Analysts", 'R', 'G', "SL,EX", database_name=SALES, securable_id=DBO_SCHEMA
    )
    catalog.add_permission(
        Scope.SCHEMA, SALES_DAVE, "dave@corp.example", 'E', 'G', "VW", database_name=SALES, securable_id=DBO_SCHEMA
    )
    catalog.add_permission(
        Scope.TABLE, SALES_BOB, "CORP\\bob", 'U', 'G', "SL,UP", database_name=SALES, securable_id=ORDERS_TABLE
    )

    return catalog

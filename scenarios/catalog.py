"""
In-Memory Catalog
=================

A stand-in for mssqldb.Client that keeps the SQL Server security catalog in
dictionaries. Implements the three capabilities the core consumes, the
catalog getters and listings used by the CLI, and the provisioning
statements, so the whole tool can run without a server.

Extras for demos and tests:

- ``fetch_log`` records every membership fetch as (kind, role_key, cursor)
- ``inject_failure(operation, times)`` makes the next calls of an operation
  raise UpstreamFetchError ('members', 'principals' or 'permissions')
- ``statements`` records the T-SQL a real client would have executed
"""

import dataclasses
import logging
from typing import Dict, List, Optional, Tuple

from core import resolver
from core.exceptions import NoServerPrincipal, UpstreamFetchError
from core.vocabulary import vocabulary_for
from models.principals import (
    DATABASE_ROLE, SERVER_ROLE, PermissionRecord, PrincipalRef, RoleMember,
    Scope, role_key
)
from mssqldb.client import check_identifier
from mssqldb.models import (
    DatabaseModel, LoginType, PrincipalModel, SchemaModel, ServerModel, TableModel
)
from mssqldb.pager import Pager, paginate

logger = logging.getLogger(__name__)

FAILURE_OPERATIONS = ('members', 'principals', 'permissions')

_TYPE_DESC = {
    'S': 'SQL_LOGIN',
    'U': 'WINDOWS_LOGIN',
    'G': 'WINDOWS_GROUP',
    'E': 'EXTERNAL_LOGIN',
    'X': 'EXTERNAL_GROUP',
    'R': 'ROLE',
    'A': 'APPLICATION_ROLE',
}

_LOGIN_TYPE_TAGS = {
    LoginType.WINDOWS: 'U',
    LoginType.SQL: 'S',
    LoginType.AZURE_AD: 'E',
    LoginType.ENTRA_ID: 'E',
}


def _page(rows, pager: Pager):
    offset, limit = pager.parse()
    return paginate(list(rows)[offset:offset + limit + 1], offset, limit)


class InMemoryCatalog:
    """
    Dictionary-backed SQL Server catalog.

    Args:
        server_name: value reported by get_server()
        skip_unavailable_databases: leave non-ONLINE databases out of listings
    """

    def __init__(self, server_name: str = "DEMO-SQL01", skip_unavailable_databases: bool = False):
        self.server_name = server_name
        self.skip_unavailable_databases = skip_unavailable_databases

        self.databases: Dict[int, DatabaseModel] = {}
        self.schemas: Dict[Tuple[str, int], SchemaModel] = {}
        self.tables: Dict[Tuple[str, int], TableModel] = {}
        self.logins: Dict[int, PrincipalModel] = {}
        self.server_roles: Dict[int, PrincipalModel] = {}
        self.database_principals: Dict[Tuple[str, int], PrincipalModel] = {}
        self.database_logins: Dict[Tuple[str, int], Optional[int]] = {}
        self.members: Dict[Tuple[str, str], List[RoleMember]] = {}
        self.permissions: Dict[Tuple[Scope, Optional[str], Optional[int]], List[PermissionRecord]] = {}

        self.fetch_log: List[Tuple[str, str, str]] = []
        self.statements: List[str] = []
        self._failures = {operation: 0 for operation in FAILURE_OPERATIONS}

    # ------------------------------------------------------------------
    # Building the catalog
    # ------------------------------------------------------------------

    def add_database(self, database_id: int, name: str, state_desc: str = "ONLINE") -> DatabaseModel:
        database = DatabaseModel(id=database_id, name=name, state_desc=state_desc)
        self.databases[database_id] = database
        return database

    def add_schema(self, database_name: str, schema_id: int, name: str, owner_id: int = 1) -> SchemaModel:
        schema = SchemaModel(id=schema_id, owner_id=owner_id, name=name)
        self.schemas[(database_name, schema_id)] = schema
        return schema

    def add_table(self, database_name: str, object_id: int, schema_id: int, name: str) -> TableModel:
        table = TableModel(id=object_id, schema_id=schema_id, name=name)
        self.tables[(database_name, object_id)] = table
        return table

    def add_login(self, principal_id: int, name: str, type_tag: str = 'S') -> PrincipalModel:
        login = PrincipalModel(id=principal_id, name=name, type_desc=_TYPE_DESC.get(type_tag, ""), type=type_tag)
        self.logins[principal_id] = login
        return login

    def add_server_role(self, principal_id: int, name: str) -> PrincipalModel:
        role = PrincipalModel(id=principal_id, name=name, type_desc="SERVER_ROLE", type='R')
        self.server_roles[principal_id] = role
        self.members.setdefault((SERVER_ROLE, str(principal_id)), [])
        return role

    def add_database_role(self, database_name: str, principal_id: int, name: str) -> PrincipalModel:
        role = PrincipalModel(id=principal_id, name=name, type_desc="DATABASE_ROLE", type='R')
        self.database_principals[(database_name, principal_id)] = role
        self.members.setdefault((DATABASE_ROLE, role_key(Scope.DATABASE, principal_id, database_name)), [])
        return role

    def add_database_principal(
        self,
        database_name: str,
        principal_id: int,
        name: str,
        type_tag: str = 'S',
        login_id: Optional[int] = None
    ) -> PrincipalModel:
        """Add a database user or group; ``login_id`` None means it has no login."""
        principal = PrincipalModel(
            id=principal_id, name=name, type_desc=_TYPE_DESC.get(type_tag, ""), type=type_tag
        )
        self.database_principals[(database_name, principal_id)] = principal
        self.database_logins[(database_name, principal_id)] = login_id
        return principal

    def add_member(self, kind: str, key: str, member_id: int, name: str, type_tag: str) -> None:
        self.members.setdefault((kind, key), []).append(RoleMember(id=member_id, name=name, type_tag=type_tag))

    def add_permission(
        self,
        scope: Scope,
        principal_id: int,
        principal_name: str,
        principal_type: str,
        state: str,
        permissions: str,
        database_name: Optional[str] = None,
        securable_id: Optional[int] = None
    ) -> PermissionRecord:
        record = PermissionRecord(
            principal_id=principal_id,
            principal_name=principal_name,
            principal_type=principal_type,
            state=state,
            permissions=permissions,
            database_name=database_name
        )
        self.permissions.setdefault((scope, database_name, securable_id), []).append(record)
        return record

    def inject_failure(self, operation: str, times: int = 1) -> None:
        if operation not in self._failures:
            raise ValueError(f"unknown operation {operation!r}; expected one of {FAILURE_OPERATIONS}")
        self._failures[operation] += times

    def _maybe_fail(self, operation: str) -> None:
        if self._failures[operation] > 0:
            self._failures[operation] -= 1
            raise UpstreamFetchError(f"injected {operation} failure")

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def list_role_members(self, kind: str, role_key: str, cursor: str, page_size: int):
        self._maybe_fail('members')
        self.fetch_log.append((kind, role_key, cursor))
        return _page(self.members.get((kind, role_key), []), Pager(token=cursor, size=page_size))

    def map_database_principal(self, database_name: str, principal_id) -> PrincipalRef:
        self._maybe_fail('principals')
        login_id = self.database_logins.get((database_name, int(principal_id)))
        if login_id is None or login_id not in self.logins:
            raise NoServerPrincipal(database_name, principal_id)
        login = self.logins[login_id]
        return PrincipalRef(
            id=str(login.id),
            category=resolver.resolve(login.type, Scope.SERVER),
            scope=Scope.SERVER,
            name=login.name
        )

    def list_permissions(
        self,
        scope: Scope,
        cursor: str,
        page_size: int,
        database_name: Optional[str] = None,
        securable_id: Optional[int] = None
    ):
        self._maybe_fail('permissions')
        records = self.permissions.get((scope, database_name, securable_id), [])
        return _page(records, Pager(token=cursor, size=page_size))

    # ------------------------------------------------------------------
    # Getters and listings
    # ------------------------------------------------------------------

    def get_server(self) -> ServerModel:
        return ServerModel(name=self.server_name)

    def list_databases(self, pager: Pager):
        databases, next_token = _page(sorted(self.databases.values(), key=lambda d: d.id), pager)
        if self.skip_unavailable_databases:
            databases = [db for db in databases if db.is_online]
        return databases, next_token

    def get_database(self, database_id: int) -> DatabaseModel:
        try:
            return self.databases[int(database_id)]
        except KeyError:
            raise UpstreamFetchError(f"database not found: {database_id}") from None

    def _database_name_exists(self, database_name: str) -> None:
        if not any(db.name == database_name for db in self.databases.values()):
            raise UpstreamFetchError(f"database not found: {database_name}")

    def list_schemas(self, database_name: str, pager: Pager):
        rows = [s for (db, _), s in sorted(self.schemas.items()) if db == database_name]
        return _page(rows, pager)

    def list_tables(self, database_name: str, schema_id: int, pager: Pager):
        rows = [
            t for (db, _), t in sorted(self.tables.items())
            if db == database_name and t.schema_id == schema_id
        ]
        return _page(rows, pager)

    def list_logins(self, pager: Pager):
        return _page([self.logins[k] for k in sorted(self.logins)], pager)

    def get_login(self, principal_id) -> PrincipalModel:
        try:
            return self.logins[int(principal_id)]
        except KeyError:
            raise UpstreamFetchError(f"login not found: {principal_id}") from None

    def get_login_by_name(self, name: str) -> PrincipalModel:
        for login in self.logins.values():
            if login.name == name:
                return login
        raise UpstreamFetchError(f"login not found: {name}")

    def list_server_roles(self, pager: Pager):
        return _page([self.server_roles[k] for k in sorted(self.server_roles)], pager)

    def get_server_role(self, role_id) -> PrincipalModel:
        try:
            return self.server_roles[int(role_id)]
        except KeyError:
            raise UpstreamFetchError(f"server role not found: {role_id}") from None

    def list_database_roles(self, database_name: str, pager: Pager):
        rows = [
            p for (db, _), p in sorted(self.database_principals.items())
            if db == database_name and p.type == 'R'
        ]
        return _page(rows, pager)

    def get_database_role(self, database_name: str, role_id) -> PrincipalModel:
        principal = self.database_principals.get((database_name, int(role_id)))
        if principal is None or principal.type != 'R':
            raise UpstreamFetchError(f"database role not found: {database_name}:{role_id}")
        return principal

    def get_database_user_for_login(self, database_name: str, login_id) -> Optional[PrincipalModel]:
        for (db, principal_id), mapped in self.database_logins.items():
            if db == database_name and mapped == int(login_id):
                return self.database_principals[(db, principal_id)]
        return None

    # ------------------------------------------------------------------
    # Provisioning statements
    # ------------------------------------------------------------------

    def _database_principal_by_name(self, database_name: str, name: str) -> PrincipalModel:
        for (db, _), principal in self.database_principals.items():
            if db == database_name and principal.name == name:
                return principal
        raise UpstreamFetchError(f"principal {name} not found in {database_name}")

    def _next_id(self, ids) -> int:
        return max(ids, default=255) + 1

    def create_login(self, login_type: LoginType, username: str, domain=None, password=None) -> None:
        check_identifier(username)
        name = f"{domain}\\{username}" if domain and login_type is LoginType.WINDOWS else username
        if login_type is LoginType.SQL and not password:
            raise ValueError("SQL logins need a password")
        self.statements.append(f"CREATE LOGIN [{name}]")
        self.add_login(self._next_id(self.logins), name, _LOGIN_TYPE_TAGS[login_type])

    def disable_login(self, login_name: str) -> None:
        login = self.get_login_by_name(login_name)
        self.statements.append(f"ALTER LOGIN [{login_name}] DISABLE")
        self.logins[login.id] = dataclasses.replace(login, is_disabled=True)

    def create_database_user_for_login(self, database_name: str, login_name: str) -> None:
        check_identifier(database_name)
        self._database_name_exists(database_name)
        login = self.get_login_by_name(login_name)
        ids = [pid for (db, pid) in self.database_principals if db == database_name]
        self.statements.append(f"USE [{database_name}]; CREATE USER [{login_name}] FOR LOGIN [{login_name}]")
        self.add_database_principal(database_name, self._next_id(ids), login.name, login.type, login.id)

    def grant_database_permission(self, database_name: str, permission: str, user_name: str, with_grant=False):
        user = self._database_principal_by_name(database_name, user_name)
        code = self._permission_code(permission)
        self.statements.append(
            f"GRANT {permission} ON DATABASE::[{database_name}] TO [{user_name}]"
            + (" WITH GRANT OPTION" if with_grant else "")
        )
        self.add_permission(
            Scope.DATABASE, user.id, user.name, user.type, 'W' if with_grant else 'G', code,
            database_name=database_name
        )
        logger.debug("granted %s on %s to %s", code, database_name, user_name)

    def revoke_database_permission(self, database_name: str, permission: str, user_name: str, grant_option_only=False):
        user = self._database_principal_by_name(database_name, user_name)
        code = self._permission_code(permission)
        prefix = "GRANT OPTION FOR " if grant_option_only else ""
        self.statements.append(f"REVOKE {prefix}{permission} ON DATABASE::[{database_name}] FROM [{user_name}] CASCADE")

        key = (Scope.DATABASE, database_name, None)
        kept = []
        for record in self.permissions.get(key, []):
            codes = record.permissions.split(",")
            if record.principal_id != user.id or code not in codes:
                kept.append(record)
                continue
            if grant_option_only and record.state == 'G':
                kept.append(record)
                continue
            rest = [c for c in codes if c != code]
            if rest:
                kept.append(dataclasses.replace(record, permissions=",".join(rest)))
            if grant_option_only:
                # permission stays granted, without the option
                kept.append(dataclasses.replace(record, state='G', permissions=code))
        self.permissions[key] = kept

    def add_server_role_member(self, role_name: str, login_name: str) -> None:
        role = self._server_role_by_name(role_name)
        login = self.get_login_by_name(login_name)
        self.statements.append(f"ALTER SERVER ROLE [{role_name}] ADD MEMBER [{login_name}]")
        self.add_member(SERVER_ROLE, str(role.id), login.id, login.name, login.type)

    def remove_server_role_member(self, role_name: str, login_name: str) -> None:
        role = self._server_role_by_name(role_name)
        self.statements.append(f"ALTER SERVER ROLE [{role_name}] DROP MEMBER [{login_name}]")
        key = (SERVER_ROLE, str(role.id))
        self.members[key] = [m for m in self.members.get(key, []) if m.name != login_name]

    def add_database_role_member(self, database_name: str, role_name: str, user_name: str) -> None:
        role = self._database_principal_by_name(database_name, role_name)
        user = self._database_principal_by_name(database_name, user_name)
        self.statements.append(f"USE [{database_name}]; ALTER ROLE [{role_name}] ADD MEMBER [{user_name}]")
        self.add_member(DATABASE_ROLE, role_key(Scope.DATABASE, role.id, database_name), user.id, user.name, user.type)

    def remove_database_role_member(self, database_name: str, role_name: str, user_name: str) -> None:
        role = self._database_principal_by_name(database_name, role_name)
        self.statements.append(f"USE [{database_name}]; ALTER ROLE [{role_name}] DROP MEMBER [{user_name}]")
        key = (DATABASE_ROLE, role_key(Scope.DATABASE, role.id, database_name))
        self.members[key] = [m for m in self.members.get(key, []) if m.name != user_name]

    def _server_role_by_name(self, name: str) -> PrincipalModel:
        for role in self.server_roles.values():
            if role.name == name:
                return role
        raise UpstreamFetchError(f"server role not found: {name}")

    def _permission_code(self, permission: str) -> str:
        vocabulary = vocabulary_for(Scope.DATABASE)
        for code in vocabulary:
            if vocabulary.statement_name(code) == permission:
                return code
        raise ValueError(f"unknown database permission: {permission!r}")

"""
External Capabilities
=====================

Interfaces the traversal engine and the grant synthesizer consume. The SQL
Server client (mssqldb.Client) implements them against a live server and
scenarios.catalog.InMemoryCatalog implements them for demos and tests.

Implementations raise UpstreamFetchError when the backing store fails and
NoServerPrincipal when a database principal has no login.
"""

from typing import List, Optional, Protocol, Tuple

from models.principals import PermissionRecord, PrincipalRef, RoleMember, Scope


class RoleMembershipSource(Protocol):
    def list_role_members(
        self,
        kind: str,
        role_key: str,
        cursor: str,
        page_size: int
    ) -> Tuple[List[RoleMember], str]:
        """
        Fetch one page of a role's direct members.

        Args:
            kind: ``server-role`` or ``database-role``
            role_key: scope-qualified role key
            cursor: position returned by the previous page ('' for the first)
            page_size: page size hint

        Returns:
            Tuple of (members, next_cursor); next_cursor is '' on the last page
        """
        ...


class PrincipalMapper(Protocol):
    def map_database_principal(self, database_name: str, principal_id: int) -> PrincipalRef:
        """Return the server principal sharing the database principal's SID."""
        ...


class PermissionSource(Protocol):
    def list_permissions(
        self,
        scope: Scope,
        cursor: str,
        page_size: int,
        database_name: Optional[str] = None,
        securable_id: Optional[int] = None
    ) -> Tuple[List[PermissionRecord], str]:
        """Fetch one page of permission rows grouped by (principal, state)."""
        ...

"""
Provisioner
===========

Applies grant and revoke requests from the governance platform to SQL
Server, and manages logins.

Supported entitlements:

    database:<id>:<code>[-grant]       GRANT <permission> ON DATABASE
    server-role:<id>:member            ALTER SERVER ROLE ... ADD MEMBER
    database-role:<db>:<id>:member     ALTER ROLE ... ADD MEMBER

Only ``user`` principals (server logins) can be provisioned. When the login
has no user in the target database, one is created for it first.

Every action, successful or not, is written to the audit trail when an
AuditLogger is attached.
"""

import logging
import secrets
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from models.entities import ActionOutcome, ProvisioningAction
from models.principals import (
    DATABASE, DATABASE_ROLE, MEMBER_ENTITLEMENT, SERVER_ROLE, USER, Grant,
    ResourceId, Scope, parse_entitlement_id, split_database_key
)
from mssqldb.models import LoginType
from .exceptions import AccessInventoryError, ProvisioningError
from .vocabulary import parse_entitlement_slug, vocabulary_for

logger = logging.getLogger(__name__)

PASSWORD_LENGTH = 16
UPPERCASE_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE_CHARS = "abcdefghijklmnopqrstuvwxyz"
NUMBER_CHARS = "0123456789"
SPECIAL_CHARS = "!@#$%^&*()-_=+[]{}|;:,.<>?"


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """
    Random password meeting SQL Server complexity rules.

    Contains at least one uppercase letter, lowercase letter, digit and
    special character.
    """
    groups = [UPPERCASE_CHARS, LOWERCASE_CHARS, NUMBER_CHARS, SPECIAL_CHARS]
    if length < len(groups):
        raise ValueError(f"password length must be at least {len(groups)}")

    alphabet = "".join(groups)
    chars = [secrets.choice(group) for group in groups]
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(groups)))

    # Fisher-Yates so the required characters are not always up front
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]
    return "".join(chars)


@dataclass(frozen=True)
class CreatedLogin:
    """Result of creating a login. ``password`` is only set for SQL logins."""
    principal: ResourceId
    name: str
    login_type: LoginType
    password: Optional[str] = None


class Provisioner:
    """
    Grant, revoke and login management against one server.

    Args:
        client: mssqldb.Client (or a compatible fake)
        audit: optional AuditLogger
    """

    def __init__(self, client, audit=None):
        self.client = client
        self.audit = audit

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    def grant(self, entitlement_id: str, principal: ResourceId) -> Grant:
        """
        Grant an entitlement to a login.

        Returns:
            The resulting Grant

        Raises:
            ProvisioningError: unsupported entitlement or principal, or the
                server rejected the statement
        """
        with self._audited(ProvisioningAction.GRANT, entitlement_id, principal):
            resource, slug = self._parse(entitlement_id)
            login = self._login(principal)

            if resource.resource_type == DATABASE:
                code, with_grant = parse_entitlement_slug(slug)
                permission = vocabulary_for(Scope.DATABASE).statement_name(code)
                database = self.client.get_database(int(resource.resource))
                user_name = self._ensure_database_user(database.name, login)
                self.client.grant_database_permission(database.name, permission, user_name, with_grant)

            elif resource.resource_type == SERVER_ROLE:
                _require_member(slug)
                role = self.client.get_server_role(resource.resource)
                self.client.add_server_role_member(role.name, login.name)

            elif resource.resource_type == DATABASE_ROLE:
                _require_member(slug)
                database_name, role_id = split_database_key(resource.resource)
                role = self.client.get_database_role(database_name, role_id)
                user_name = self._ensure_database_user(database_name, login)
                self.client.add_database_role_member(database_name, role.name, user_name)

            else:
                raise ProvisioningError(f"cannot grant entitlements on {resource.resource_type} resources")

            logger.info("granted %s to %s", entitlement_id, login.name)
            return Grant(resource=resource, entitlement=slug, principal=principal)

    def revoke(self, grant: Grant) -> None:
        """
        Undo a grant.

        Revoking a ``-grant`` entitlement removes the grant option only; the
        underlying permission stays. Revoking from a login that has no user
        in the database is a no-op.
        """
        with self._audited(ProvisioningAction.REVOKE, grant.entitlement_id, grant.principal):
            resource = grant.resource
            login = self._login(grant.principal)

            if resource.resource_type == DATABASE:
                code, with_grant = parse_entitlement_slug(grant.entitlement)
                permission = vocabulary_for(Scope.DATABASE).statement_name(code)
                database = self.client.get_database(int(resource.resource))
                user = self.client.get_database_user_for_login(database.name, login.id)
                if user is None:
                    logger.info("%s has no user in %s; nothing to revoke", login.name, database.name)
                    return
                self.client.revoke_database_permission(database.name, permission, user.name, with_grant)

            elif resource.resource_type == SERVER_ROLE:
                _require_member(grant.entitlement)
                role = self.client.get_server_role(resource.resource)
                self.client.remove_server_role_member(role.name, login.name)

            elif resource.resource_type == DATABASE_ROLE:
                _require_member(grant.entitlement)
                database_name, role_id = split_database_key(resource.resource)
                role = self.client.get_database_role(database_name, role_id)
                user = self.client.get_database_user_for_login(database_name, login.id)
                if user is None:
                    logger.info("%s has no user in %s; nothing to revoke", login.name, database_name)
                    return
                self.client.remove_database_role_member(database_name, role.name, user.name)

            else:
                raise ProvisioningError(f"cannot revoke entitlements on {resource.resource_type} resources")

            logger.info("revoked %s from %s", grant.entitlement_id, login.name)

    # ------------------------------------------------------------------
    # Logins
    # ------------------------------------------------------------------

    def create_login(self, login_type: LoginType, username: str, domain: Optional[str] = None) -> CreatedLogin:
        """
        Create a server login.

        SQL logins get a generated password, returned once in the result and
        never logged or audited.
        """
        display = f"{domain}\\{username}" if domain and login_type is LoginType.WINDOWS else username
        with self._audited(ProvisioningAction.CREATE_LOGIN, None, None, principal_name=display):
            if not username:
                raise ProvisioningError("username is required")

            password = None
            if login_type is LoginType.SQL:
                password = generate_password()
                logger.debug("generated password for SQL login %s", username)

            self.client.create_login(login_type, username, domain=domain, password=password)
            login = self.client.get_login_by_name(display)
            logger.info("created %s login %s", login_type.value, display)
            return CreatedLogin(
                principal=ResourceId(USER, str(login.id)),
                name=login.name,
                login_type=login_type,
                password=password
            )

    def disable_login(self, principal_id: str) -> None:
        principal = ResourceId(USER, str(principal_id))
        with self._audited(ProvisioningAction.DISABLE_LOGIN, None, principal):
            login = self.client.get_login(principal_id)
            self.client.disable_login(login.name)
            logger.info("disabled login %s", login.name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parse(self, entitlement_id: str):
        try:
            return parse_entitlement_id(entitlement_id)
        except ValueError as e:
            raise ProvisioningError(str(e)) from e

    def _login(self, principal: ResourceId):
        if principal.resource_type != USER:
            raise ProvisioningError(f"only user principals can be provisioned, not {principal.resource_type}")
        return self.client.get_login(principal.resource)

    def _ensure_database_user(self, database_name: str, login) -> str:
        user = self.client.get_database_user_for_login(database_name, login.id)
        if user is not None:
            return user.name
        logger.info("creating user for login %s in %s", login.name, database_name)
        self.client.create_database_user_for_login(database_name, login.name)
        return login.name

    @contextmanager
    def _audited(
        self,
        action: ProvisioningAction,
        entitlement_id: Optional[str],
        principal: Optional[ResourceId],
        principal_name: Optional[str] = None
    ):
        fields = {
            'entitlement_id': entitlement_id,
            'resource_type': entitlement_id.split(":", 1)[0] if entitlement_id else None,
            'principal_type': principal.resource_type if principal else None,
            'principal_id': principal.resource if principal else None,
            'principal_name': principal_name,
        }
        try:
            yield
        except ProvisioningError as e:
            self._record(action, ActionOutcome.FAILURE, detail=str(e), **fields)
            raise
        except (AccessInventoryError, ValueError) as e:
            self._record(action, ActionOutcome.FAILURE, detail=str(e), **fields)
            raise ProvisioningError(f"{action.value} failed: {e}") from e
        self._record(action, ActionOutcome.SUCCESS, **fields)

    def _record(self, action: ProvisioningAction, outcome: ActionOutcome, **fields) -> None:
        if self.audit is None:
            return
        self.audit.log_action(action=action, outcome=outcome, **fields)


def _require_member(slug: str) -> None:
    if slug != MEMBER_ENTITLEMENT:
        raise ProvisioningError(f"roles only offer the {MEMBER_ENTITLEMENT!r} entitlement, not {slug!r}")

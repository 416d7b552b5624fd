"""
Grant Synthesizer
=================

Combines decoded permission slugs with principal resolution into Grants.

Principals are represented on the platform by their server-scope identity:

- roles become role resources directly (``server-role:<id>`` or
  ``database-role:<db>:<id>``),
- users and groups of a database are mapped to their server login; a
  database-local principal without a login cannot be represented and its
  record is skipped,
- principals of unknown type are skipped with a warning.

Grants are emitted in input order. Duplicates are not removed here.
"""

import logging
from typing import Iterable, List, Optional

from models.principals import (
    Grant, PermissionRecord, PrincipalCategory, ResourceId, Scope, role_key
)
from . import resolver
from .capabilities import PrincipalMapper
from .exceptions import NoServerPrincipal, UnknownPrincipalType
from .permissions import PermissionDecoder

logger = logging.getLogger(__name__)


class GrantSynthesizer:
    """
    Decodes a page of permission records into grants on one resource.

    Args:
        principals: database principal -> server login lookup
        decoder: permission decoder; a default one is built when omitted
    """

    def __init__(self, principals: PrincipalMapper, decoder: Optional[PermissionDecoder] = None):
        self.principals = principals
        self.decoder = decoder or PermissionDecoder()

    def grants_for_page(
        self,
        resource: ResourceId,
        scope: Scope,
        records: Iterable[PermissionRecord],
        database_name: Optional[str] = None
    ) -> List[Grant]:
        """
        Turn one page of permission records into grants.

        Args:
            resource: the resource the permissions are held on
            scope: scope the records were read from
            records: raw permission rows
            database_name: database of the records; required below server scope

        Returns:
            Grants in record order
        """
        grants = []
        for record in records:
            slugs = self.decoder.decode(record, scope)
            if not slugs:
                continue

            try:
                principal = self.principal_resource(record, scope, database_name or record.database_name)
            except UnknownPrincipalType as e:
                logger.warning("skipping permissions of %s: %s", record.principal_name, e)
                continue
            except NoServerPrincipal:
                logger.debug("no server principal for database principal %s", record.principal_name)
                continue

            grants.extend(
                Grant(resource=resource, entitlement=slug, principal=principal)
                for slug in slugs
            )
        return grants

    def principal_resource(
        self,
        record: PermissionRecord,
        scope: Scope,
        database_name: Optional[str] = None
    ) -> ResourceId:
        """
        Resource identity of a record's grantee.

        Raises:
            UnknownPrincipalType: the principal type tag is not recognized
            NoServerPrincipal: a database user or group has no login
        """
        category = resolver.resolve(record.principal_type, scope)
        resource_type = resolver.resource_type_for(category, scope, record.principal_type)

        if category is PrincipalCategory.ROLE:
            return ResourceId(resource_type, role_key(
                Scope.SERVER if scope is Scope.SERVER else Scope.DATABASE,
                record.principal_id,
                database_name
            ))

        if not scope.is_database_local:
            return ResourceId(resource_type, str(record.principal_id))

        if not database_name:
            raise ValueError("database-scoped permission records need a database name")
        login = self.principals.map_database_principal(database_name, record.principal_id)
        return ResourceId(resource_type, str(login.id))

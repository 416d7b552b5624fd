"""
SQL Server Connector
====================

Entry point the governance platform calls into. Wires the role-graph walker,
the grant synthesizer and the entitlement catalog to one SQL Server client.

Resource ids handled here:

    server         <anything>            one server per connector
    database       <database id>
    schema         <database>:<schema id>
    table          <database>:<object id>
    user, group    <login principal id>
    server-role    <role principal id>
    database-role  <database>:<role principal id>
"""

import logging
from typing import List, Optional, Tuple

from models.principals import (
    DATABASE, GROUP, MEMBER_ENTITLEMENT, ROLE_RESOURCE_TYPES, SCHEMA, SERVER,
    TABLE, USER, Entitlement, EntitlementPurpose,
    GrantPage, ResourceId, Scope, split_database_key
)
from .grants import GrantSynthesizer
from .permissions import PermissionDecoder
from .provisioner import Provisioner
from .vocabulary import PermissionVocabulary, entitlement_slug, login_vocabulary, vocabulary_for
from .walker import DEFAULT_PAGE_SIZE, RoleGraphWalker, VisitPolicy

logger = logging.getLogger(__name__)

WITH_GRANT_DISPLAY = "{} (With Grant)"

_PERMISSION_SCOPES = {
    SERVER: Scope.SERVER,
    DATABASE: Scope.DATABASE,
    SCHEMA: Scope.SCHEMA,
    TABLE: Scope.TABLE,
}


class SQLServerConnector:
    """
    Grants, entitlements and provisioning for one SQL Server instance.

    Args:
        client: catalog client (mssqldb.Client or an in-memory catalog)
        visit_policy: role visit policy for membership traversal
        audit: optional AuditLogger recording provisioning actions
    """

    def __init__(self, client, visit_policy: VisitPolicy = VisitPolicy.ON_COMPLETION, audit=None):
        self.client = client
        self.walker = RoleGraphWalker(client, client, visit_policy=visit_policy)
        self.synthesizer = GrantSynthesizer(client, PermissionDecoder())
        self.provisioner = Provisioner(client, audit=audit)

    def validate(self) -> str:
        """Check connectivity; returns the server name."""
        server = self.client.get_server()
        logger.info("connected to %s", server.name)
        return server.name

    def role_grants(self, root: ResourceId, token: str = "", page_size: int = DEFAULT_PAGE_SIZE) -> GrantPage:
        """One page of flattened ``member`` grants on a server or database role."""
        return self.walker.next_page(root, token, page_size)

    def permission_grants(
        self,
        resource: ResourceId,
        token: str = "",
        page_size: int = DEFAULT_PAGE_SIZE
    ) -> GrantPage:
        """
        One page of permission grants held on a server, database, schema or table.

        Raises:
            ValueError: the resource type carries no permissions
            DecodeError: the page token is not valid
            UpstreamFetchError: the catalog query failed
        """
        scope, database_name, securable_id = self._securable(resource)
        records, next_token = self.client.list_permissions(
            scope, token, page_size, database_name=database_name, securable_id=securable_id
        )
        grants = self.synthesizer.grants_for_page(resource, scope, records, database_name)
        return GrantPage(grants=tuple(grants), next_token=next_token)

    def entitlements(self, resource: ResourceId) -> List[Entitlement]:
        """Entitlements offered by a resource."""
        if resource.resource_type in (SERVER, DATABASE):
            vocabulary = vocabulary_for(_PERMISSION_SCOPES[resource.resource_type])
            return self._permission_entitlements(resource, vocabulary, with_grant_variants=True)

        if resource.resource_type in (SCHEMA, TABLE):
            vocabulary = vocabulary_for(_PERMISSION_SCOPES[resource.resource_type])
            return self._permission_entitlements(resource, vocabulary)

        if resource.resource_type == USER:
            return self._permission_entitlements(resource, login_vocabulary())

        if resource.resource_type in ROLE_RESOURCE_TYPES:
            return [Entitlement(
                resource=resource,
                slug=MEMBER_ENTITLEMENT,
                display_name="Member",
                purpose=EntitlementPurpose.ASSIGNMENT,
                grantable_to=(USER, GROUP, resource.resource_type)
            )]

        return []

    def _permission_entitlements(
        self,
        resource: ResourceId,
        vocabulary: PermissionVocabulary,
        with_grant_variants: bool = False
    ) -> List[Entitlement]:
        entitlements = []
        for code in vocabulary:
            name = vocabulary.display_name(code)
            entitlements.append(Entitlement(resource=resource, slug=entitlement_slug(code), display_name=name))
            if with_grant_variants:
                entitlements.append(Entitlement(
                    resource=resource,
                    slug=entitlement_slug(code, with_grant=True),
                    display_name=WITH_GRANT_DISPLAY.format(name)
                ))
        return entitlements

    def _securable(self, resource: ResourceId) -> Tuple[Scope, Optional[str], Optional[int]]:
        resource_type = resource.resource_type
        if resource_type == SERVER:
            return Scope.SERVER, None, None
        if resource_type == DATABASE:
            database = self.client.get_database(int(resource.resource))
            return Scope.DATABASE, database.name, None
        if resource_type in (SCHEMA, TABLE):
            database_name, local_id = split_database_key(resource.resource)
            return _PERMISSION_SCOPES[resource_type], database_name, int(local_id)
        raise ValueError(f"no permissions are listed for {resource_type} resources")


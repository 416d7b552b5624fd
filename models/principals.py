"""
Principal and Grant Value Types
===============================

Plain value objects exchanged between the SQL Server client, the traversal
engine and the permission decoder. None of these are persisted; they are
produced and consumed within a single page of work.

Resource identifiers follow the governance platform's convention of a
resource type plus an opaque resource id. Entitlement ids are the resource
id followed by a slug, e.g. ``database:5:SL-grant`` or
``database-role:sales:16384:member``.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# Resource type identifiers
SERVER = "server"
DATABASE = "database"
SCHEMA = "schema"
TABLE = "table"
ENDPOINT = "endpoint"
USER = "user"
GROUP = "group"
SERVER_ROLE = "server-role"
DATABASE_ROLE = "database-role"

ROLE_RESOURCE_TYPES = (SERVER_ROLE, DATABASE_ROLE)

MEMBER_ENTITLEMENT = "member"


class Scope(enum.Enum):
    """Namespaces in which SQL Server records principals and permissions."""
    SERVER = "server"
    DATABASE = "database"
    SCHEMA = "schema"
    TABLE = "table"

    @property
    def is_database_local(self) -> bool:
        """Schema and table permissions are granted to database principals."""
        return self is not Scope.SERVER


class PrincipalCategory(enum.Enum):
    """Semantic category of a principal, independent of its raw type tag."""
    USER = "user"
    GROUP = "group"
    ROLE = "role"
    UNKNOWN = "unknown"


class PermissionState(enum.Enum):
    """State column of sys.server_permissions / sys.database_permissions."""
    GRANTED = "G"
    GRANTED_WITH_OPTION = "W"


@dataclass(frozen=True)
class ResourceId:
    """Identity of a resource on the governance platform."""
    resource_type: str
    resource: str

    def __str__(self):
        return f"{self.resource_type}:{self.resource}"

    @classmethod
    def parse(cls, value: str) -> "ResourceId":
        """
        Parse the ``type:resource`` string form.

        Only the first separator splits; database-scoped ids keep their
        own ``db:id`` structure in the resource part.
        """
        resource_type, sep, resource = value.partition(":")
        if not sep or not resource_type or not resource:
            raise ValueError(f"Malformed resource id: {value!r}")
        return cls(resource_type=resource_type, resource=resource)


@dataclass(frozen=True)
class PrincipalRef:
    """
    A principal at a given scope.

    Identity is the pair (id, scope). A server login and the database user
    mapped to it share a security identifier but are distinct PrincipalRefs.
    """
    id: str
    category: PrincipalCategory
    scope: Scope
    name: Optional[str] = None
    database_name: Optional[str] = None


@dataclass(frozen=True)
class RoleMember:
    """One row of a role's direct membership listing."""
    id: int
    name: str
    type_tag: str


@dataclass(frozen=True)
class PermissionRecord:
    """
    One raw permission row, grouped by (principal, state).

    ``permissions`` holds the comma-joined permission codes exactly as the
    catalog query aggregated them.
    """
    principal_id: int
    principal_name: str
    principal_type: str
    state: str
    permissions: str
    database_name: Optional[str] = None


@dataclass(frozen=True)
class Grant:
    """The unit of output: a principal holding an entitlement on a resource."""
    resource: ResourceId
    entitlement: str
    principal: ResourceId

    @property
    def entitlement_id(self) -> str:
        return entitlement_id(self.resource, self.entitlement)

    @property
    def principal_resource_id(self) -> ResourceId:
        return self.principal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entitlement_id': self.entitlement_id,
            'principal_type': self.principal.resource_type,
            'principal_id': self.principal.resource,
        }


class EntitlementPurpose(enum.Enum):
    PERMISSION = "permission"
    ASSIGNMENT = "assignment"


@dataclass(frozen=True)
class Entitlement:
    """An entitlement offered by a resource."""
    resource: ResourceId
    slug: str
    display_name: str
    purpose: EntitlementPurpose = EntitlementPurpose.PERMISSION
    grantable_to: Tuple[str, ...] = field(default=(USER,))

    @property
    def id(self) -> str:
        return entitlement_id(self.resource, self.slug)


@dataclass(frozen=True)
class GrantPage:
    """Grants produced by one call plus the token for the next call."""
    grants: Tuple[Grant, ...]
    next_token: str = ""

    @property
    def is_last(self) -> bool:
        return self.next_token == ""


def entitlement_id(resource: ResourceId, slug: str) -> str:
    return f"{resource.resource_type}:{resource.resource}:{slug}"


def parse_entitlement_id(value: str) -> Tuple[ResourceId, str]:
    """
    Split an entitlement id into its resource and slug.

    Args:
        value: e.g. ``database-role:sales:16384:member``

    Returns:
        Tuple of (ResourceId, slug)
    """
    head, sep, slug = value.rpartition(":")
    if not sep or not slug:
        raise ValueError(f"Unexpected entitlement id: {value!r}")
    return ResourceId.parse(head), slug


def role_key(scope: Scope, role_id, database_name: Optional[str] = None) -> str:
    """
    Build the scope-qualified key of a role.

    Server roles are keyed by their bare principal id, database roles by
    ``<database>:<principal id>``.
    """
    if scope is Scope.SERVER:
        return str(role_id)
    if not database_name:
        raise ValueError("database roles need a database name")
    return f"{database_name}:{role_id}"


def split_database_key(key: str) -> Tuple[str, str]:
    """Split a ``<database>:<id>`` key into its two parts."""
    database_name, sep, local_id = key.rpartition(":")
    if not sep or not database_name or not local_id:
        raise ValueError(f"Invalid database-scoped id: {key!r}")
    return database_name, local_id

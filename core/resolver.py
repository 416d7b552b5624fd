"""
Principal-Type Resolver
=======================

Single place where SQL Server principal type tags are interpreted.

Tags come from the ``type`` column of sys.server_principals and
sys.database_principals:

    R  role                       G  Windows group
    X  external group (Entra ID)  S  SQL login / SQL user
    U  Windows login / user       C  certificate-mapped
    E  external user (Entra ID)   K  asymmetric-key-mapped

Anything else (application roles, 'A', for instance) resolves to UNKNOWN.
"""

from types import MappingProxyType

from models.principals import (
    DATABASE_ROLE, GROUP, SERVER_ROLE, USER, PrincipalCategory, Scope
)
from .exceptions import UnknownPrincipalType


_TAGS = MappingProxyType({
    'R': PrincipalCategory.ROLE,
    'G': PrincipalCategory.GROUP,
    'X': PrincipalCategory.GROUP,
    'S': PrincipalCategory.USER,
    'U': PrincipalCategory.USER,
    'C': PrincipalCategory.USER,
    'E': PrincipalCategory.USER,
    'K': PrincipalCategory.USER,
})

# Every scope shares the same tag alphabet today.
_TAGS_BY_SCOPE = MappingProxyType({scope: _TAGS for scope in Scope})


def resolve(type_tag: str, scope: Scope) -> PrincipalCategory:
    """
    Map a principal type tag to its category at the given scope.

    Never raises: an unrecognized tag yields PrincipalCategory.UNKNOWN and the
    caller decides whether to skip.
    """
    if not type_tag:
        return PrincipalCategory.UNKNOWN
    return _TAGS_BY_SCOPE[scope].get(type_tag.strip().upper(), PrincipalCategory.UNKNOWN)


def resource_type_for(category: PrincipalCategory, scope: Scope, type_tag: str = "") -> str:
    """
    Resource type used to represent a principal of the given category.

    Users and groups are always represented by their server login, so they
    map to the same resource type at every scope. Roles keep their scope.

    Raises:
        UnknownPrincipalType: for PrincipalCategory.UNKNOWN
    """
    if category is PrincipalCategory.USER:
        return USER
    if category is PrincipalCategory.GROUP:
        return GROUP
    if category is PrincipalCategory.ROLE:
        return SERVER_ROLE if scope is Scope.SERVER else DATABASE_ROLE
    raise UnknownPrincipalType(type_tag)


def scope_of_role_kind(kind: str) -> Scope:
    """Scope in which a role resource type lives."""
    if kind == SERVER_ROLE:
        return Scope.SERVER
    if kind == DATABASE_ROLE:
        return Scope.DATABASE
    raise ValueError(f"not a role resource type: {kind!r}")

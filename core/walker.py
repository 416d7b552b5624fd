"""
Role-Graph Walker
=================

Flattens a role's (possibly nested, possibly cyclic) membership into
``member`` grants on the root role, one page of work per call.

Each call:

1. decodes the caller's token (an empty token starts at the root role),
2. pops the top frontier entry and fetches exactly one page of its direct
   members,
3. emits a grant for every user, group and nested role on that page and
   pushes nested roles that were not visited yet,
4. re-pushes the entry with its next cursor, on top, if the role has more
   pages; otherwise marks it visited,
5. encodes the new token ('' once the frontier is empty).

All state lives in the token. The walker works on copies of the decoded
state, so an exception from the membership source or the principal mapper
leaves the caller's token untouched and the call can simply be retried.

Visit policies
--------------
ON_COMPLETION marks a role visited once all of its pages are expanded. A
role reachable through two branches before either finishes (a diamond) may
then be pushed and expanded twice, emitting duplicate grants for its members.

ON_DISCOVERY marks a role visited when it is first pushed (the root at the
first call). Every role is expanded exactly once.
"""

import enum
import logging
from typing import List, Optional, Set

from models.principals import (
    MEMBER_ENTITLEMENT, ROLE_RESOURCE_TYPES, Grant, GrantPage,
    PrincipalCategory, ResourceId, RoleMember, Scope, role_key,
    split_database_key
)
from models.traversal import FrontierEntry, TraversalToken
from . import resolver, token_codec
from .capabilities import PrincipalMapper, RoleMembershipSource
from .exceptions import NoServerPrincipal, SkippablePrincipal

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class VisitPolicy(enum.Enum):
    ON_COMPLETION = "on-completion"
    ON_DISCOVERY = "on-discovery"


class RoleGraphWalker:
    """
    Resumable, cycle-safe traversal of role membership.

    Args:
        members: source of direct role membership pages
        principals: database principal -> server login lookup
        visit_policy: when a role is considered visited (see module docs)
    """

    def __init__(
        self,
        members: RoleMembershipSource,
        principals: PrincipalMapper,
        visit_policy: VisitPolicy = VisitPolicy.ON_COMPLETION
    ):
        self.members = members
        self.principals = principals
        self.visit_policy = visit_policy

    def next_page(
        self,
        root: ResourceId,
        token: str = "",
        page_size: int = DEFAULT_PAGE_SIZE
    ) -> GrantPage:
        """
        Expand one page of the traversal rooted at ``root``.

        Args:
            root: the role resource whose flattened membership is listed
            token: '' on the first call, then the previous page's next_token
            page_size: page size hint for the membership fetch

        Returns:
            GrantPage with this call's grants and the token for the next call

        Raises:
            DecodeError: token is malformed
            UpstreamFetchError: the membership or principal lookup failed
        """
        if root.resource_type not in ROLE_RESOURCE_TYPES:
            raise ValueError(f"role grants are only available for roles, not {root.resource_type}")

        state = token_codec.decode(token)
        frontier: List[FrontierEntry] = list(state.frontier)
        visited: Set[str] = set(state.visited)

        if not frontier:
            frontier.append(FrontierEntry(kind=root.resource_type, role_key=root.resource))
            if self.visit_policy is VisitPolicy.ON_DISCOVERY:
                visited.add(root.resource)

        entry = frontier.pop()
        members, next_cursor = self.members.list_role_members(
            entry.kind, entry.role_key, entry.cursor, page_size
        )

        grants: List[Grant] = []
        discovered: List[FrontierEntry] = []
        for member in members:
            try:
                principal = self._member_resource(entry, member, visited, discovered)
            except SkippablePrincipal as e:
                logger.debug("skipping member %s of %s: %s", member.name, entry.role_key, e)
                continue
            if principal is None:
                continue
            grants.append(Grant(resource=root, entitlement=MEMBER_ENTITLEMENT, principal=principal))

        frontier.extend(discovered)
        if next_cursor:
            frontier.append(FrontierEntry(kind=entry.kind, role_key=entry.role_key, cursor=next_cursor))
        else:
            visited.add(entry.role_key)

        next_token = token_codec.encode(TraversalToken(frontier=tuple(frontier), visited=frozenset(visited)))
        logger.debug(
            "expanded %s %s: %d grants, %d discovered, %d pending",
            entry.kind, entry.role_key, len(grants), len(discovered), len(frontier)
        )
        return GrantPage(grants=tuple(grants), next_token=next_token)

    def walk(self, root: ResourceId, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Iterate over every page until the traversal is done.

        Convenience for callers that do not need to persist the token.
        """
        token = ""
        while True:
            page = self.next_page(root, token, page_size)
            yield page
            if page.is_last:
                return
            token = page.next_token

    def _member_resource(
        self,
        entry: FrontierEntry,
        member: RoleMember,
        visited: Set[str],
        discovered: List[FrontierEntry]
    ) -> Optional[ResourceId]:
        scope = resolver.scope_of_role_kind(entry.kind)
        category = resolver.resolve(member.type_tag, scope)

        if category in (PrincipalCategory.USER, PrincipalCategory.GROUP):
            resource_type = resolver.resource_type_for(category, scope)
            if scope is Scope.SERVER:
                return ResourceId(resource_type, str(member.id))
            database_name, _ = split_database_key(entry.role_key)
            try:
                login = self.principals.map_database_principal(database_name, member.id)
            except NoServerPrincipal:
                logger.debug(
                    "no server principal for database principal %s in %s",
                    member.name, database_name
                )
                return None
            return ResourceId(resource_type, str(login.id))

        if category is PrincipalCategory.ROLE:
            database_name = None
            if scope is Scope.DATABASE:
                database_name, _ = split_database_key(entry.role_key)
            key = role_key(scope, member.id, database_name)
            if key not in visited:
                discovered.append(FrontierEntry(kind=entry.kind, role_key=key))
                if self.visit_policy is VisitPolicy.ON_DISCOVERY:
                    visited.add(key)
            return ResourceId(entry.kind, key)

        logger.warning(
            "unknown principal type %r for member %s of %s %s",
            member.type_tag, member.name, entry.kind, entry.role_key
        )
        return None

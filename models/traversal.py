"""
Traversal State
===============

Resumable state of a role-membership traversal. The state travels through
the caller as an opaque string (see core.token_codec); nothing is kept on
the server between pages.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple


@dataclass(frozen=True)
class FrontierEntry:
    """
    A role waiting to be expanded (or to have its next page expanded).

    Attributes:
        kind: resource type of the role, ``server-role`` or ``database-role``
        role_key: scope-qualified role key
        cursor: opaque position inside the role's membership listing
    """
    kind: str
    role_key: str
    cursor: str = ""


@dataclass(frozen=True)
class TraversalToken:
    """
    Frontier stack plus visited set.

    The last element of ``frontier`` is the top of the stack. ``visited``
    only grows from one call to the next.
    """
    frontier: Tuple[FrontierEntry, ...] = ()
    visited: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.frontier

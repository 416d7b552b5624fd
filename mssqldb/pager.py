"""
Offset Pager
============

Flat offset pagination for catalog listings. The page token handed to the
caller is the decimal offset of the next page; queries fetch one row more
than the limit to learn whether another page exists.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, TypeVar

from core.exceptions import DecodeError

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000


@dataclass(frozen=True)
class Pager:
    """A page request: opaque token plus page size hint (0 = default)."""
    token: str = ""
    size: int = 0

    def parse(self) -> Tuple[int, int]:
        """
        Resolve the request into (offset, limit).

        Raises:
            DecodeError: the token is not a non-negative offset
        """
        offset = 0
        if self.token:
            try:
                offset = int(self.token)
            except ValueError:
                raise DecodeError(f"invalid page token: {self.token!r}") from None
            if offset < 0:
                raise DecodeError(f"invalid page token: {self.token!r}")

        limit = self.size
        if limit <= 0:
            limit = DEFAULT_PAGE_SIZE
        elif limit > MAX_PAGE_SIZE:
            limit = MAX_PAGE_SIZE

        return offset, limit


def paginate(rows: Sequence[T], offset: int, limit: int) -> Tuple[List[T], str]:
    """
    Trim a ``limit + 1`` row fetch to one page.

    Returns:
        Tuple of (page rows, next page token or '')
    """
    rows = list(rows)
    if len(rows) > limit:
        return rows[:limit], str(offset + limit)
    return rows, ""

"""
Traversal Token Codec
=====================

Serializes a TraversalToken to the opaque string handed to the caller and
back. The format is compact JSON:

    {"v": 1,
     "frontier": [{"kind": "database-role", "role": "sales:16384", "cursor": "100"}],
     "visited": ["sales:16390"]}

The first frontier element is the bottom of the stack. Visited keys are
written sorted so that equal tokens encode to equal strings.

An empty frontier encodes to the empty string, which is how a finished
traversal is signalled to the caller; decoding the empty string yields the
empty token of a first call.
"""

import json
from typing import Any, Dict

from models.principals import DATABASE_ROLE, ROLE_RESOURCE_TYPES, split_database_key
from models.traversal import FrontierEntry, TraversalToken
from .exceptions import DecodeError


FORMAT_VERSION = 1


def encode(token: TraversalToken) -> str:
    """
    Encode a traversal token.

    Returns:
        The opaque token string, or '' when the frontier is empty
    """
    if token.is_empty:
        return ""

    payload = {
        'v': FORMAT_VERSION,
        'frontier': [
            {'kind': entry.kind, 'role': entry.role_key, 'cursor': entry.cursor}
            for entry in token.frontier
        ],
        'visited': sorted(token.visited),
    }
    return json.dumps(payload, separators=(',', ':'))


def decode(value: str) -> TraversalToken:
    """
    Decode a token string produced by encode().

    Raises:
        DecodeError: if the string is not a well-formed token
    """
    if not value:
        return TraversalToken()

    try:
        payload = json.loads(value)
    except json.JSONDecodeError as e:
        raise DecodeError(f"resume token is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError("resume token must be a JSON object")
    if payload.get('v') != FORMAT_VERSION:
        raise DecodeError(f"unsupported resume token version: {payload.get('v')!r}")

    frontier = payload.get('frontier')
    visited = payload.get('visited', [])
    if not isinstance(frontier, list):
        raise DecodeError("resume token frontier must be a list")
    if not isinstance(visited, list) or not all(isinstance(k, str) for k in visited):
        raise DecodeError("resume token visited set must be a list of strings")

    return TraversalToken(
        frontier=tuple(_decode_entry(item) for item in frontier),
        visited=frozenset(visited)
    )


def _decode_entry(item: Any) -> FrontierEntry:
    if not isinstance(item, dict):
        raise DecodeError("frontier entries must be JSON objects")

    kind = item.get('kind')
    role = item.get('role')
    cursor = item.get('cursor', "")

    if kind not in ROLE_RESOURCE_TYPES:
        raise DecodeError(f"unexpected frontier entry kind: {kind!r}")
    if not isinstance(role, str) or not role:
        raise DecodeError("frontier entry is missing its role key")
    _check_role_key(kind, role)
    if not isinstance(cursor, str):
        raise DecodeError("frontier entry cursor must be a string")

    return FrontierEntry(kind=kind, role_key=role, cursor=cursor)


def _check_role_key(kind: str, role: str) -> None:
    """Server-role keys are bare principal ids, database-role keys <database>:<id>."""
    if kind == DATABASE_ROLE:
        try:
            _, local_id = split_database_key(role)
        except ValueError as e:
            raise DecodeError(f"malformed database-role key: {role!r}") from e
    else:
        local_id = role
    if not local_id.isdigit():
        raise DecodeError(f"malformed {kind} key: {role!r}")


def describe(value: str) -> Dict[str, Any]:
    """Human-readable summary of a token, for CLI output."""
    token = decode(value)
    return {
        'pending': [f"{e.kind}:{e.role_key}@{e.cursor or 0}" for e in reversed(token.frontier)],
        'visited': sorted(token.visited),
    }

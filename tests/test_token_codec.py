import json

import pytest

from core import token_codec
from core.exceptions import DecodeError
from core.walker import RoleGraphWalker, VisitPolicy
from models.principals import DATABASE_ROLE, SERVER_ROLE, ResourceId
from models.traversal import FrontierEntry, TraversalToken
from scenarios import demo_data


def test_empty_string_decodes_to_first_call_token():
    """An empty token starts a new traversal."""
    token = token_codec.decode("")
    assert token.frontier == ()
    assert token.visited == frozenset()


def test_empty_frontier_encodes_to_empty_string():
    """A finished traversal is signalled by the empty token, whatever was visited."""
    assert token_codec.encode(TraversalToken()) == ""
    assert token_codec.encode(TraversalToken(visited=frozenset({"300"}))) == ""


def test_token_round_trip():
    """Frontier order, cursors and visited keys survive encode/decode."""
    token = TraversalToken(
        frontier=(
            FrontierEntry(kind=SERVER_ROLE, role_key="301"),
            FrontierEntry(kind=DATABASE_ROLE, role_key="sales:16400", cursor="200"),
        ),
        visited=frozenset({"300", "sales:16402"}),
    )
    assert token_codec.decode(token_codec.encode(token)) == token


def test_encoding_is_deterministic():
    """Visited keys are sorted so equal tokens encode to equal strings."""
    frontier = (FrontierEntry(kind=SERVER_ROLE, role_key="1"),)
    a = TraversalToken(frontier=frontier, visited=frozenset(["b", "a", "c"]))
    b = TraversalToken(frontier=frontier, visited=frozenset(["c", "b", "a"]))
    assert token_codec.encode(a) == token_codec.encode(b)
    assert json.loads(token_codec.encode(a))["visited"] == ["a", "b", "c"]


@pytest.mark.parametrize(
    "value",
    [
        "not json",
        "[]",
        '{"v": 99, "frontier": []}',
        '{"v": 1, "frontier": {}}',
        '{"v": 1, "frontier": [], "visited": [1]}',
        '{"v": 1, "frontier": ["x"]}',
        '{"v": 1, "frontier": [{"kind": "user", "role": "1"}]}',
        '{"v": 1, "frontier": [{"kind": "server-role"}]}',
        '{"v": 1, "frontier": [{"kind": "server-role", "role": "1", "cursor": 5}]}',
        '{"v": 1, "frontier": [{"kind": "database-role", "role": "nocolon", "cursor": ""}]}',
        '{"v": 1, "frontier": [{"kind": "database-role", "role": "sales:", "cursor": ""}]}',
        '{"v": 1, "frontier": [{"kind": "database-role", "role": "sales:abc", "cursor": ""}]}',
        '{"v": 1, "frontier": [{"kind": "server-role", "role": "sales:300", "cursor": ""}]}',
        '{"v": 1, "frontier": [{"kind": "server-role", "role": "admins", "cursor": ""}]}',
    ],
)
def test_malformed_tokens_raise_decode_error(value):
    """Structurally invalid tokens are rejected, never reset to a first call."""
    with pytest.raises(DecodeError):
        token_codec.decode(value)


def test_decode_error_is_a_value_error():
    with pytest.raises(ValueError):
        token_codec.decode("{")


def test_describe_lists_pending_entries_top_first():
    token = TraversalToken(
        frontier=(
            FrontierEntry(kind=SERVER_ROLE, role_key="301"),
            FrontierEntry(kind=SERVER_ROLE, role_key="300", cursor="1"),
        ),
        visited=frozenset({"302"}),
    )
    summary = token_codec.describe(token_codec.encode(token))
    assert summary["pending"] == ["server-role:300@1", "server-role:301@0"]
    assert summary["visited"] == ["302"]


@pytest.mark.parametrize("policy", list(VisitPolicy))
@pytest.mark.parametrize(
    "root",
    [
        ResourceId(SERVER_ROLE, str(demo_data.ADMINS)),
        ResourceId(SERVER_ROLE, str(demo_data.OPS)),
        ResourceId(DATABASE_ROLE, f"{demo_data.SALES}:{demo_data.ANALYSTS}"),
    ],
)
def test_walker_tokens_round_trip(demo_catalog, root, policy):
    """Every intermediate token of a cyclic or diamond walk survives decode/encode."""
    walker = RoleGraphWalker(demo_catalog, demo_catalog, visit_policy=policy)
    tokens = [page.next_token for page in walker.walk(root, page_size=1)]

    assert tokens[-1] == ""
    for value in tokens[:-1]:
        assert value
        assert token_codec.encode(token_codec.decode(value)) == value

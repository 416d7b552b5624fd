import pytest

from core import resolver
from core.exceptions import SkippablePrincipal, UnknownPrincipalType
from models.principals import (
    DATABASE_ROLE, GROUP, SERVER_ROLE, USER, PrincipalCategory, Scope
)


@pytest.mark.parametrize("tag", ["S", "U", "C", "E", "K"])
def test_user_tags(tag):
    assert resolver.resolve(tag, Scope.SERVER) is PrincipalCategory.USER
    assert resolver.resolve(tag, Scope.DATABASE) is PrincipalCategory.USER


@pytest.mark.parametrize("tag", ["G", "X"])
def test_group_tags(tag):
    assert resolver.resolve(tag, Scope.DATABASE) is PrincipalCategory.GROUP


def test_role_tag():
    assert resolver.resolve("R", Scope.SERVER) is PrincipalCategory.ROLE


def test_tags_are_trimmed_and_case_insensitive():
    """Catalog type columns are char(2) and come back padded."""
    assert resolver.resolve("s ", Scope.SERVER) is PrincipalCategory.USER


@pytest.mark.parametrize("tag", ["A", "Z", "", None])
def test_unrecognized_tags_resolve_to_unknown(tag):
    """Application roles and anything else are UNKNOWN; resolve never raises."""
    assert resolver.resolve(tag, Scope.DATABASE) is PrincipalCategory.UNKNOWN


def test_resource_types_by_category_and_scope():
    assert resolver.resource_type_for(PrincipalCategory.USER, Scope.TABLE) == USER
    assert resolver.resource_type_for(PrincipalCategory.GROUP, Scope.SERVER) == GROUP
    assert resolver.resource_type_for(PrincipalCategory.ROLE, Scope.SERVER) == SERVER_ROLE
    assert resolver.resource_type_for(PrincipalCategory.ROLE, Scope.SCHEMA) == DATABASE_ROLE


def test_unknown_category_has_no_resource_type():
    with pytest.raises(UnknownPrincipalType) as exc_info:
        resolver.resource_type_for(PrincipalCategory.UNKNOWN, Scope.DATABASE, "A")
    assert exc_info.value.type_tag == "A"
    assert isinstance(exc_info.value, SkippablePrincipal)


def test_scope_of_role_kind():
    assert resolver.scope_of_role_kind(SERVER_ROLE) is Scope.SERVER
    assert resolver.scope_of_role_kind(DATABASE_ROLE) is Scope.DATABASE
    with pytest.raises(ValueError):
        resolver.scope_of_role_kind(USER)

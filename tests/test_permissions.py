from types import MappingProxyType

import pytest

from core.permissions import PermissionDecoder
from core.vocabulary import PermissionVocabulary
from models.principals import PermissionRecord, Scope


def record(state="G", permissions="SL", principal_type="S"):
    return PermissionRecord(
        principal_id=5,
        principal_name="alice",
        principal_type=principal_type,
        state=state,
        permissions=permissions,
    )


@pytest.fixture
def decoder():
    return PermissionDecoder()


def test_granted_state_emits_codes(decoder):
    assert decoder.decode(record("G", "SL,IN"), Scope.DATABASE) == ["SL", "IN"]


def test_with_grant_state_emits_grant_variants(decoder):
    assert decoder.decode(record("W", "SL,IN"), Scope.DATABASE) == ["SL-grant", "IN-grant"]


def test_unknown_codes_are_dropped(decoder):
    assert decoder.decode(record("G", "SL,XYZZ,UP"), Scope.DATABASE) == ["SL", "UP"]


def test_codes_are_trimmed(decoder):
    assert decoder.decode(record("G", " CO , SL "), Scope.DATABASE) == ["CO", "SL"]


def test_vocabulary_depends_on_scope(decoder):
    """COSQ is a server permission with no database counterpart."""
    assert decoder.decode(record("G", "COSQ"), Scope.SERVER) == ["COSQ"]
    assert decoder.decode(record("G", "COSQ"), Scope.DATABASE) == []


@pytest.mark.parametrize("state", ["D", "R", "", None])
def test_non_grant_states_are_skipped(decoder, state, caplog):
    with caplog.at_level("WARNING", logger="core.permissions"):
        assert decoder.decode(record(state, "SL"), Scope.DATABASE) == []
    assert "unexpected permission state" in caplog.text


def test_empty_permissions(decoder):
    assert decoder.decode(record("G", ""), Scope.TABLE) == []


def test_injected_vocabulary():
    vocabulary = PermissionVocabulary(name="test", version="t", permissions=MappingProxyType({"ZZ": "Zed"}))
    decoder = PermissionDecoder({Scope.DATABASE: vocabulary})
    assert decoder.decode(record("W", "ZZ,SL"), Scope.DATABASE) == ["ZZ-grant"]

import pytest

from core.exceptions import DecodeError
from mssqldb.pager import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Pager, paginate


def test_first_page_defaults():
    assert Pager().parse() == (0, DEFAULT_PAGE_SIZE)


def test_token_is_the_offset():
    assert Pager(token="200", size=50).parse() == (200, 50)


def test_page_size_is_capped():
    assert Pager(size=MAX_PAGE_SIZE + 1).parse() == (0, MAX_PAGE_SIZE)


@pytest.mark.parametrize("token", ["abc", "-1", "1.5"])
def test_invalid_tokens(token):
    with pytest.raises(DecodeError):
        Pager(token=token).parse()


def test_paginate_with_more_rows():
    rows, next_token = paginate(range(11), offset=20, limit=10)
    assert rows == list(range(10))
    assert next_token == "30"


def test_paginate_last_page():
    rows, next_token = paginate([1, 2], offset=0, limit=10)
    assert rows == [1, 2]
    assert next_token == ""

import base64

import pytest
from strawberry.relay.utils import to_base64

from strawberry_autorelay import (
    InvalidCursorError,
    OrderedCollectionCursor,
    OrderingKey,
    decode_cursor,
    encode_cursor,
)

ORDERING = (OrderingKey("age"), OrderingKey("id"))


@pytest.mark.parametrize(
    "values",
    [
        (20, 3),
        (None, 1),
        ("2024-01-01", "1e3f"),
        (1.5, 10),
    ],
)
def test_round_trip(values):
    cursor = encode_cursor(ORDERING, values)

    assert isinstance(cursor, str)
    assert decode_cursor(cursor, ORDERING) == values


def test_cursor_uses_configured_prefix():
    cursor = encode_cursor(ORDERING, (20, 3))

    assert base64.b64decode(cursor).decode() == 'testcursor:[["age",20],["id",3]]'


def test_decode_none():
    assert decode_cursor(None, ORDERING) is None


@pytest.mark.parametrize(
    "cursor",
    [
        "not base64!",
        to_base64("testcursor", "not json"),
        to_base64("othercursor", '[["age",20],["id",3]]'),
        to_base64("testcursor", '{"age": 20}'),
        to_base64("testcursor", '[["age",20,1],["id",3]]'),
        to_base64("testcursor", '[[1,20],["id",3]]'),
    ],
)
def test_decode_malformed_cursor(cursor):
    with pytest.raises(InvalidCursorError):
        decode_cursor(cursor, ORDERING)


def test_decode_cursor_for_another_ordering():
    cursor = encode_cursor((OrderingKey("name"), OrderingKey("id")), ("a", 1))

    with pytest.raises(InvalidCursorError, match="does not match the ordering"):
        decode_cursor(cursor, ORDERING)


def test_decode_cursor_with_missing_keys():
    cursor = encode_cursor((OrderingKey("id"),), (1,))

    with pytest.raises(InvalidCursorError):
        decode_cursor(cursor, ORDERING)


def test_str():
    cursor = OrderedCollectionCursor.from_key(ORDERING, (20, 3))

    assert str(cursor) == '[["age",20],["id",3]]'
    assert OrderedCollectionCursor.from_cursor(cursor.to_cursor(), ORDERING) == cursor

from __future__ import annotations

import dataclasses
import json
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any, Optional

from strawberry.relay.utils import from_base64, to_base64
from typing_extensions import Self

from .exceptions import InvalidCursorError
from .settings import autorelay_settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .ordering import OrderingKey


@dataclasses.dataclass(frozen=True)
class OrderedCollectionCursor:
    """Absolute position in an ordered collection.

    The cursor stores the ordering key of the row it points to, together with
    the names of the ordering fields. It never stores an offset, so it stays
    valid when rows are inserted or removed between two requests.
    """

    field_names: tuple[str, ...]
    field_values: tuple[Any, ...]

    @classmethod
    def from_key(cls, ordering: Sequence[OrderingKey], values: Sequence[Any]) -> Self:
        return cls(
            field_names=tuple(key.name for key in ordering),
            field_values=tuple(values),
        )

    @classmethod
    def from_cursor(cls, cursor: str, ordering: Sequence[OrderingKey]) -> Self:
        prefix = autorelay_settings()["CURSOR_PREFIX"]
        try:
            type_, values_json = from_base64(cursor)
        except ValueError as e:
            raise InvalidCursorError(cursor) from e

        if type_ != prefix:
            raise InvalidCursorError(cursor)

        try:
            pairs = json.loads(values_json)
        except JSONDecodeError as e:
            raise InvalidCursorError(cursor) from e

        if not isinstance(pairs, list) or any(
            not isinstance(pair, list) or len(pair) != 2 or not isinstance(pair[0], str)
            for pair in pairs
        ):
            raise InvalidCursorError(cursor)

        names = tuple(name for name, _ in pairs)
        if names != tuple(key.name for key in ordering):
            raise InvalidCursorError(
                cursor,
                "Cursor does not match the ordering of this connection",
            )

        return cls(field_names=names, field_values=tuple(v for _, v in pairs))

    def to_cursor(self) -> str:
        return to_base64(autorelay_settings()["CURSOR_PREFIX"], str(self))

    def __str__(self):
        return json.dumps(
            [list(pair) for pair in zip(self.field_names, self.field_values)],
            separators=(",", ":"),
        )


def encode_cursor(ordering: Sequence[OrderingKey], values: Sequence[Any]) -> str:
    return OrderedCollectionCursor.from_key(ordering, values).to_cursor()


def decode_cursor(
    cursor: Optional[str],
    ordering: Sequence[OrderingKey],
) -> Optional[tuple[Any, ...]]:
    if cursor is None:
        return None

    return OrderedCollectionCursor.from_cursor(cursor, ordering).field_values

from __future__ import annotations

import dataclasses
import datetime
import decimal
import enum
import functools
import uuid
from typing import TYPE_CHECKING, Any, Optional

from strawberry_autorelay.exceptions import InvalidCursorError

from .base import ORMConnection, Page, PageRequest, Row

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from strawberry_autorelay.ordering import OrderingKey


def to_key_value(value: Any) -> Any:
    """Convert an attribute value into something json can hold."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, enum.Enum):
        return to_key_value(value.value)
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (decimal.Decimal, uuid.UUID)):
        return str(value)

    raise TypeError(f"Cannot use {value!r} as an ordering key")


def to_native(value: Any) -> Any:
    """The value rows are compared on. Enums compare on their values."""
    return value.value if isinstance(value, enum.Enum) else value


def from_key_value(value: Any, like: Any) -> Any:
    """Parse a cursor value back into the type of `like`, a value of the same key."""
    if value is None or like is None:
        return value

    try:
        if isinstance(like, datetime.datetime):
            return datetime.datetime.fromisoformat(value)
        if isinstance(like, datetime.date):
            return datetime.date.fromisoformat(value)
        if isinstance(like, datetime.time):
            return datetime.time.fromisoformat(value)
        if isinstance(like, decimal.Decimal):
            return decimal.Decimal(value)
        if isinstance(like, uuid.UUID):
            return uuid.UUID(value)
    except (AttributeError, TypeError, ValueError, decimal.InvalidOperation) as e:
        raise InvalidCursorError(str(value), "Invalid cursor value") from e

    if isinstance(like, bool) or isinstance(value, bool):
        matches = isinstance(like, bool) and isinstance(value, bool)
    elif isinstance(like, (int, float)):
        matches = isinstance(value, (int, float))
    else:
        matches = isinstance(value, type(like))

    if not matches:
        raise InvalidCursorError(str(value), "Invalid cursor value")
    return value


def _compare_values(a: Any, b: Any, key: OrderingKey) -> int:
    if a == b:
        return 0
    if a is None:
        result = -1
    elif b is None:
        result = 1
    else:
        result = -1 if a < b else 1

    return -result if key.descending else result


def compare_keys(
    a: Sequence[Any],
    b: Sequence[Any],
    ordering: Sequence[OrderingKey],
) -> int:
    for key, value_a, value_b in zip(ordering, a, b):
        result = _compare_values(value_a, value_b, key)
        if result:
            return result
    return 0


class InMemoryORMConnection(ORMConnection):
    """Paginate relations held as plain python collections.

    The relation is read from `getattr(parent, source)` and may be any
    iterable. For join relations the iterable yields instances of the through
    type, and the node is the first attribute of each of them holding an
    instance of the node type.
    """

    pk_field_name = "id"

    def primary_key(self, node: type) -> str:
        return self.pk_field_name

    def get_items(self, request: PageRequest) -> Iterable[Any]:
        items = getattr(request.parent, request.source)
        return items() if callable(items) else items

    def get_node(self, item: Any, request: PageRequest) -> Any:
        if request.through is None:
            return item

        values = (
            [getattr(item, f.name) for f in dataclasses.fields(item)]
            if dataclasses.is_dataclass(item)
            else list(vars(item).values())
        )
        for value in values:
            if isinstance(value, request.node):
                return value

        raise TypeError(
            f"{item!r} does not reference any {request.node.__name__} instance",
        )

    def build_row(self, item: Any, request: PageRequest) -> tuple[tuple[Any, ...], Row]:
        """Return the native ordering key of `item` and its row.

        Rows carry the json ready key used for cursors, comparisons are made on
        the native values.
        """
        node = self.get_node(item, request)
        native = tuple(to_native(getattr(node, k.name)) for k in request.ordering)
        row = Row(
            node=node,
            key=tuple(to_key_value(v) for v in native),
            through=item if request.through is not None else None,
        )
        return native, row

    def parse_key(
        self,
        values: Sequence[Any],
        keys: Sequence[tuple[Any, ...]],
    ) -> tuple[Any, ...]:
        """Convert decoded cursor values to the types found in `keys`."""
        likes = [
            next((key[i] for key in keys if key[i] is not None), None)
            for i in range(len(values))
        ]
        return tuple(from_key_value(v, like) for v, like in zip(values, likes))

    async def fetch_page(self, request: PageRequest) -> Page:
        ordering = request.ordering
        keyed = [self.build_row(item, request) for item in self.get_items(request)]
        keys = [native for native, _ in keyed]

        if request.after is not None:
            after = self.parse_key(request.after, keys)
            keyed = [(k, r) for k, r in keyed if compare_keys(k, after, ordering) > 0]
        if request.before is not None:
            before = self.parse_key(request.before, keys)
            keyed = [(k, r) for k, r in keyed if compare_keys(k, before, ordering) < 0]

        keyed.sort(
            key=functools.cmp_to_key(lambda a, b: compare_keys(a[0], b[0], ordering)),
            reverse=request.backward,
        )
        rows = [row for _, row in keyed]

        limit: Optional[int] = request.limit
        return Page.from_overfetch(rows[: limit + 1] if limit is not None else rows, limit)

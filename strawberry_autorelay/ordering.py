from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import TYPE_CHECKING, Literal, Optional, Union

from .exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

OrderDirection: TypeAlias = Union[Literal["ASC", "DESC", "asc", "desc"], Literal[1, -1]]

_DIRECTIONS = {
    "ASC": False,
    "DESC": True,
    1: False,
    -1: True,
}


@dataclasses.dataclass(frozen=True)
class OrderingKey:
    """One component of the total ordering of a connection.

    `None` values always sort before any other value in ascending order
    (and after them in descending order), whatever the database default is.
    """

    name: str
    descending: bool = False

    @property
    def nulls_first(self) -> bool:
        return not self.descending


def _parse_direction(name: str, direction: OrderDirection) -> bool:
    key = direction.upper() if isinstance(direction, str) else direction
    try:
        return _DIRECTIONS[key]
    except (KeyError, TypeError):
        raise InvalidArgumentError(
            f'Invalid order direction {direction!r} for field "{name}", '
            'expected "ASC", "DESC", 1 or -1',
        ) from None


def build_ordering(
    order: Optional[Mapping[str, OrderDirection]],
    *,
    tie_breaker: str,
) -> tuple[OrderingKey, ...]:
    """Build a total ordering out of the `order` option of a relayed field.

    The primary key is always the last component so that no two rows compare
    equal, which is what makes keyset pagination deterministic.
    """
    keys = [
        OrderingKey(name, _parse_direction(name, direction))
        for name, direction in (order or {}).items()
    ]

    if not any(key.name == tie_breaker for key in keys):
        keys.append(OrderingKey(tie_breaker))

    return tuple(keys)

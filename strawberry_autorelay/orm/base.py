from __future__ import annotations

import abc
import dataclasses
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from typing_extensions import Self

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from strawberry_autorelay.dynamic_objects import EdgeConnection
    from strawberry_autorelay.engine import ConnectionGetter
    from strawberry_autorelay.ordering import OrderingKey

_N = TypeVar("_N")


@dataclasses.dataclass
class PageRequest:
    """Everything an ORM connection needs to fetch one page of a relation.

    `after` and `before` are decoded ordering keys, in the same order as
    `ordering`. When `backward` is set the rows closest to `before` must be
    returned first, that is, in reverse ordering.
    """

    parent: Any
    source: str
    node: type
    through: Optional[type]
    ordering: Sequence[OrderingKey]
    after: Optional[Sequence[Any]] = None
    before: Optional[Sequence[Any]] = None
    limit: Optional[int] = None
    backward: bool = False


@dataclasses.dataclass
class Row(Generic[_N]):
    node: _N
    key: tuple[Any, ...]
    through: Any = None


@dataclasses.dataclass
class Page(Generic[_N]):
    rows: list[Row[_N]]
    has_more: bool = False

    @classmethod
    def from_overfetch(cls, rows: Sequence[Row[_N]], limit: Optional[int]) -> Self:
        """Build a page from a result fetched with one extra row."""
        if limit is None:
            return cls(rows=list(rows))

        return cls(rows=list(rows[:limit]), has_more=len(rows) > limit)


class ORMConnection(abc.ABC):
    """Capability of fetching ordered pages of a relation.

    Implementations are instantiated once per relayed field, when the field
    is bound, and must be safe to share between concurrent requests.
    """

    @abc.abstractmethod
    def primary_key(self, node: type) -> str:
        """Name of the unique key used to break ties in the ordering."""

    @abc.abstractmethod
    async def fetch_page(self, request: PageRequest) -> Page:
        """Fetch at most `request.limit` rows and tell if more rows exist."""

    def auto_relay_factory(
        self,
        field_name: str,
        owner: Any,
        node: Any,
        through: Any = None,
        options: Optional[Mapping[str, Any]] = None,
        *,
        edge_connection: EdgeConnection,
        source: Optional[str] = None,
    ) -> ConnectionGetter:
        from strawberry_autorelay.engine import RelayQueryEngine

        return RelayQueryEngine(self).auto_relay_factory(
            field_name,
            owner,
            node,
            through,
            options,
            edge_connection=edge_connection,
            source=source,
        )

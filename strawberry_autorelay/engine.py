from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any, Callable, Optional

from typing_extensions import TypeAlias

from .cursor import decode_cursor, encode_cursor
from .exceptions import (
    AutoRelayError,
    ConfigurationError,
    InvalidArgumentError,
    UpstreamFetchError,
)
from .ordering import OrderingKey, build_ordering
from .orm.base import PageRequest
from .utils.typing import resolve_thunk

if TYPE_CHECKING:
    from .dynamic_objects import EdgeConnection
    from .orm.base import ORMConnection

logger = logging.getLogger(__name__)

ConnectionGetter: TypeAlias = Callable[..., Awaitable[Any]]


def validate_arguments(
    *,
    first: Optional[int],
    last: Optional[int],
    max_results: Optional[int],
) -> None:
    if first is not None and last is not None:
        raise InvalidArgumentError(
            "Arguments 'first' and 'last' are mutually exclusive.",
        )

    for name, value in (("first", first), ("last", last)):
        if value is None:
            continue
        if value < 0:
            raise InvalidArgumentError(
                f"Argument '{name}' must be a non-negative integer.",
            )
        if max_results is not None and value > max_results:
            raise InvalidArgumentError(
                f"Argument '{name}' cannot be higher than {max_results}.",
            )


class RelayQueryEngine:
    """Resolve relayed fields into pages of a connection.

    Every resolution is a single round trip to the ORM connection. Nothing is
    kept between two pages: the cursors handed to the client are the only
    state.
    """

    def __init__(self, orm: ORMConnection):
        self.orm = orm

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
        """Create the getter resolving `field_name` on instances of `owner`.

        The returned coroutine function is called with the parent object and
        the connection arguments.
        """
        node_type = resolve_thunk(node)
        try:
            ordering = build_ordering(
                (options or {}).get("order"),
                tie_breaker=self.orm.primary_key(node_type),
            )
        except InvalidArgumentError as e:
            raise ConfigurationError(
                f"Invalid order for {resolve_thunk(owner).__name__}.{field_name}: {e}",
                origin=resolve_thunk(owner),
            ) from e

        async def getter(parent: Any, args: Any, *, max_results: Optional[int] = None):
            return await self.resolve(
                parent,
                first=args.first,
                after=args.after,
                last=args.last,
                before=args.before,
                field_name=field_name,
                source=source or field_name,
                node=node_type,
                through=resolve_thunk(through),
                ordering=ordering,
                edge_connection=edge_connection,
                max_results=max_results,
            )

        getter.__name__ = f"resolve_{field_name}_connection"
        return getter

    async def resolve(
        self,
        parent: Any,
        *,
        first: Optional[int] = None,
        after: Optional[str] = None,
        last: Optional[int] = None,
        before: Optional[str] = None,
        field_name: str,
        source: str,
        node: type,
        through: Optional[type],
        ordering: tuple[OrderingKey, ...],
        edge_connection: EdgeConnection,
        max_results: Optional[int] = None,
    ) -> Any:
        validate_arguments(first=first, last=last, max_results=max_results)

        request = PageRequest(
            parent=parent,
            source=source,
            node=node,
            through=through,
            ordering=ordering,
            after=decode_cursor(after, ordering),
            before=decode_cursor(before, ordering),
            limit=first if first is not None else last,
            backward=last is not None,
        )

        logger.debug(
            "Resolving %s (first=%s, after=%s, last=%s, before=%s)",
            field_name,
            first,
            after,
            last,
            before,
        )

        try:
            page = await self.orm.fetch_page(request)
        except AutoRelayError:
            raise
        except Exception as e:
            raise UpstreamFetchError(field_name, e) from e

        rows = page.rows
        if request.backward:
            # rows were fetched closest to `before` first
            rows = rows[::-1]
            has_previous_page = page.has_more
            has_next_page = before is not None
        elif first is not None:
            has_next_page = page.has_more
            has_previous_page = after is not None
        else:
            has_next_page = before is not None
            has_previous_page = after is not None

        edges = [
            edge_connection.make_edge(row, encode_cursor(ordering, row.key))
            for row in rows
        ]

        return edge_connection.connection(
            edges=edges,
            page_info=edge_connection.page_info(
                has_next_page=has_next_page,
                has_previous_page=has_previous_page,
                start_cursor=edges[0].cursor if edges else None,
                end_cursor=edges[-1].cursor if edges else None,
            ),
        )

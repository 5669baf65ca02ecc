from __future__ import annotations

import dataclasses
import logging
import threading
import types
from typing import TYPE_CHECKING, Any, Optional

import strawberry
from strawberry.types import get_object_definition

from .exceptions import SchemaCollisionError
from .utils.typing import resolve_thunk, unwrap_type

if TYPE_CHECKING:
    from strawberry.types.field import StrawberryField

    from .config import AutoRelayConfig
    from .orm.base import Row

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class EdgeConnection:
    """The schema objects generated for one relayed field."""

    name: str
    edge: type
    connection: type
    page_info: type
    node: type
    through: Optional[type] = None
    through_fields: tuple[str, ...] = ()

    def make_edge(self, row: Row, cursor: str) -> Any:
        extra = (
            {name: getattr(row.through, name) for name in self.through_fields}
            if row.through is not None
            else {}
        )
        return self.edge(node=row.node, cursor=cursor, **extra)


def get_through_fields(through: type, node: type) -> list[StrawberryField]:
    """Fields of the join type that are exposed on the edge.

    Fields with a custom resolver, fields pointing back to the node and fields
    clashing with the edge's own fields are left out.
    """
    definition = get_object_definition(through, strict=True)
    return [
        f
        for f in definition.fields
        if f.base_resolver is None
        and f.python_name not in {"node", "cursor"}
        and unwrap_type(f.type) is not node
    ]


class DynamicObjectFactory:
    def __init__(self, config: AutoRelayConfig):
        self.config = config
        self._cache: dict[str, EdgeConnection] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        return name in self._cache

    def make_edge_connection(
        self,
        name: str,
        node: Any,
        through: Any = None,
    ) -> EdgeConnection:
        """Get or create the `Edge` and `Connection` types for `name`.

        A GraphQL schema cannot hold two distinct types with the same name,
        so the types generated for a name are returned as is on every later
        call. Asking for the same name with another node or through type is
        an error.
        """
        node_type = resolve_thunk(node)
        through_type = resolve_thunk(through)

        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                if cached.node is not node_type or cached.through is not through_type:
                    raise SchemaCollisionError(name, cached.node, node_type)

                logger.debug("Reusing connection %s", name)
                return cached

            edge_connection = self._make(name, node_type, through_type)
            self._cache[name] = edge_connection

        sink = self.config.sink
        sink.declare(edge_connection.edge)
        sink.declare(edge_connection.connection)

        return edge_connection

    def _make(
        self,
        name: str,
        node: type,
        through: Optional[type],
    ) -> EdgeConnection:
        through_fields = get_through_fields(through, node) if through is not None else []

        def edge_body(ns):
            ns["__annotations__"] = {"node": node, "cursor": str}
            ns["node"] = strawberry.field(description="The item at the end of the edge")
            ns["cursor"] = strawberry.field(description="A cursor for use in pagination")
            for f in through_fields:
                ns["__annotations__"][f.python_name] = Any
                ns[f.python_name] = strawberry.field(
                    name=f.graphql_name,
                    description=f.description,
                    graphql_type=f.type,
                    default=None,
                )
            ns["__module__"] = getattr(node, "__module__", __name__)

        edge_name = f"{name}Edge"
        edge = strawberry.type(
            types.new_class(edge_name, (), exec_body=edge_body),
            name=edge_name,
            description="An edge in a connection.",
        )

        page_info = self.config.page_info

        def connection_body(ns):
            ns["__annotations__"] = {"edges": list[edge], "page_info": page_info}
            ns["edges"] = strawberry.field(
                description="Contains the nodes in this connection",
            )
            ns["page_info"] = strawberry.field(
                description="Pagination data for this connection",
            )
            ns["__module__"] = getattr(node, "__module__", __name__)

        connection_name = f"{name}Connection"
        connection = strawberry.type(
            types.new_class(connection_name, (), exec_body=connection_body),
            name=connection_name,
            description="A connection to a list of items.",
        )

        logger.debug("Generated %s and %s", edge_name, connection_name)

        return EdgeConnection(
            name=name,
            edge=edge,
            connection=connection,
            page_info=page_info,
            node=node,
            through=through,
            through_fields=tuple(f.python_name for f in through_fields),
        )

    def declare_field_as_connection(
        self,
        owner: type,
        getter_name: str,
        field_name: str,
        connection: type,
    ) -> None:
        self.config.sink.declare_field(owner, field_name, getter_name, connection)

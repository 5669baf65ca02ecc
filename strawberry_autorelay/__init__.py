from . import orm
from .config import AutoRelayConfig, AutoRelayExtends, AutoRelayObjects
from .cursor import OrderedCollectionCursor, decode_cursor, encode_cursor
from .dynamic_objects import DynamicObjectFactory, EdgeConnection
from .engine import RelayQueryEngine
from .exceptions import (
    AutoRelayError,
    ConfigurationError,
    InvalidArgumentError,
    InvalidCursorError,
    SchemaCollisionError,
    UpstreamFetchError,
)
from .fields import (
    RelayedConnection,
    RelayedConnectionField,
    RelayedConnectionOptions,
    relayed_connection,
)
from .ordering import OrderingKey, build_ordering
from .orm import DjangoORMConnection, InMemoryORMConnection, ORMConnection
from .shared_objects import SharedObjectFactory
from .sink import SchemaSink, StrawberrySchemaSink

__all__ = [
    "AutoRelayConfig",
    "AutoRelayError",
    "AutoRelayExtends",
    "AutoRelayObjects",
    "ConfigurationError",
    "DjangoORMConnection",
    "DynamicObjectFactory",
    "EdgeConnection",
    "InMemoryORMConnection",
    "InvalidArgumentError",
    "InvalidCursorError",
    "ORMConnection",
    "OrderedCollectionCursor",
    "OrderingKey",
    "RelayQueryEngine",
    "RelayedConnection",
    "RelayedConnectionField",
    "RelayedConnectionOptions",
    "SchemaCollisionError",
    "SchemaSink",
    "SharedObjectFactory",
    "StrawberrySchemaSink",
    "UpstreamFetchError",
    "build_ordering",
    "decode_cursor",
    "encode_cursor",
    "orm",
    "relayed_connection",
]

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from strawberry.types import get_object_definition
from strawberry.types.union import StrawberryUnion
from typing_extensions import TypedDict

from .dynamic_objects import DynamicObjectFactory
from .exceptions import ConfigurationError
from .shared_objects import SharedObjectFactory
from .sink import StrawberrySchemaSink
from .utils.typing import resolve_thunk, unwrap_type

if TYPE_CHECKING:
    from .orm.base import ORMConnection
    from .sink import SchemaSink

logger = logging.getLogger(__name__)


class AutoRelayObjects(TypedDict):
    page_info: Any
    connection_args: Any


class AutoRelayExtends(TypedDict, total=False):
    page_info: type


class AutoRelayConfig:
    """Process state shared by every relayed field of a schema.

    It is written once at startup, by the constructor or `configure`, and only
    read afterwards. Relayed fields are bound to it by `finalize`, which must
    run before the strawberry schema is built.

    Either pass already built `objects`, or let the page info and connection
    arguments types be generated, prefixed with the capitalized
    `microservice_name`:

    >>> config = AutoRelayConfig(
    ...     orm=lambda: DjangoORMConnection,
    ...     microservice_name="billing",
    ... )
    >>> config.finalize(Query)
    >>> schema = strawberry.Schema(query=Query, types=config.types)
    """

    def __init__(
        self,
        orm: Callable[[], type[ORMConnection]],
        *,
        objects: Optional[AutoRelayObjects] = None,
        microservice_name: Optional[str] = None,
        extends: Optional[AutoRelayExtends] = None,
        sink: Optional[SchemaSink] = None,
    ):
        self.sink: SchemaSink = sink if sink is not None else StrawberrySchemaSink()
        self.shared_object_factory = SharedObjectFactory()
        self.dynamic_object_factory = DynamicObjectFactory(self)

        self.prefix = ""
        self.extends: AutoRelayExtends = {}
        self._orm: Optional[Callable[[], type[ORMConnection]]] = None
        self._page_info: Any = None
        self._connection_args: Any = None

        self.configure(
            orm,
            objects=objects,
            microservice_name=microservice_name,
            extends=extends,
        )

    def configure(
        self,
        orm: Callable[[], type[ORMConnection]],
        *,
        objects: Optional[AutoRelayObjects] = None,
        microservice_name: Optional[str] = None,
        extends: Optional[AutoRelayExtends] = None,
    ) -> None:
        if objects is not None and microservice_name is not None:
            raise ConfigurationError(
                "Pass either `objects` or `microservice_name` to auto relay, not both",
            )

        self._check_orm(orm)
        existing = self._read_existing_objects(objects) if objects is not None else None

        # nothing is replaced until every argument is known to be valid
        self._orm = orm
        if existing is not None:
            self._page_info, self._connection_args = existing
        else:
            name = str(microservice_name or "")
            self.prefix = name[:1].upper() + name[1:]
            self.extends = extends or {}
            self.generate_objects(force=True)

        logger.debug("Auto relay configured with prefix %r", self.prefix)

    def generate_objects(
        self,
        prefix: Optional[str] = None,
        *,
        extends: Optional[AutoRelayExtends] = None,
        force: bool = False,
    ) -> None:
        """Generate the page info and connection arguments types.

        Nothing happens when they already exist, unless `force` is set, so the
        same names are never declared twice by accident.
        """
        if self.pagination_exists() and not force:
            return

        if prefix is not None:
            self.prefix = prefix
        if extends is not None:
            self.extends = extends

        factory = self.shared_object_factory
        self._connection_args = factory.make_connection_arguments(self.prefix)
        self._page_info = factory.make_page_info(
            self.prefix,
            self.extends.get("page_info"),
        )

        self.sink.declare(self._page_info)
        self.sink.declare(self._connection_args)

    def pagination_exists(self) -> bool:
        return self._page_info is not None

    def _check_orm(self, orm: Any) -> None:
        if orm is None or not callable(orm):
            raise ConfigurationError("`orm` must be a callable returning an ORM connection")

    def _read_existing_objects(self, objects: AutoRelayObjects) -> tuple[Any, Any]:
        try:
            return objects["page_info"], objects["connection_args"]
        except KeyError as e:
            raise ConfigurationError(
                f"Missing {e.args[0]!r} in auto relay `objects`",
            ) from None

    @property
    def orm(self) -> Callable[[], type[ORMConnection]]:
        if self._orm is None:
            raise ConfigurationError("No ORM connection registered")
        return self._orm

    @property
    def page_info(self) -> type:
        return resolve_thunk(self._page_info)

    @property
    def connection_args(self) -> type:
        return resolve_thunk(self._connection_args)

    @property
    def types(self) -> list[type]:
        """Types declared so far, to be given to `strawberry.Schema(types=...)`."""
        return list(getattr(self.sink, "types", []))

    def make_orm_connection(self) -> ORMConnection:
        return self.orm()()

    def finalize(self, *types: Any) -> None:
        """Bind the relayed fields of `types` and of every type reachable from them."""
        from .fields import RelayedConnectionField

        seen: set[type] = set()
        stack = [resolve_thunk(t) for t in types]

        while stack:
            type_ = unwrap_type(stack.pop())
            if isinstance(type_, StrawberryUnion):
                stack.extend(type_.types)
                continue

            definition = get_object_definition(type_)
            if definition is None or type_ in seen:
                continue
            seen.add(type_)

            for field in definition.fields:
                if isinstance(field, RelayedConnectionField):
                    field.bind(self)
                    stack.append(field.node)
                    if field.through is not None:
                        stack.append(field.through)
                else:
                    stack.append(field.type)

        logger.debug("Finalized %d types", len(seen))

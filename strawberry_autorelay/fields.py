from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Optional, Union

import strawberry
from strawberry.annotation import StrawberryAnnotation
from strawberry.types import get_object_definition
from strawberry.types.field import StrawberryField
from strawberry.types.fields.resolver import StrawberryResolver
from strawberry.types.info import Info
from strawberry.utils.str_converters import to_camel_case
from typing_extensions import Annotated, Self, TypedDict

from .exceptions import ConfigurationError
from .ordering import OrderDirection
from .settings import autorelay_settings
from .utils.typing import TypeThunk, capitalize, resolve_thunk

if TYPE_CHECKING:
    from strawberry.extensions.field_extension import FieldExtension
    from strawberry.permission import BasePermission

    from .config import AutoRelayConfig

logger = logging.getLogger(__name__)

RELAYED_FIELDS_ATTR = "__autorelay_fields__"

# Forward reference that is replaced by the generated connection when the
# field is bound. It never resolves on its own.
PENDING_CONNECTION = "AutoRelayPendingConnection"


class RelayedConnectionOptions(TypedDict, total=False):
    #: how to order the returned results
    order: Mapping[str, OrderDirection]


def get_relayed_fields(owner: type) -> list[RelayedConnectionField]:
    """Relayed fields declared on `owner` and on its bases.

    Strawberry may copy fields while processing a type, so both the declared
    fields and the ones from the type definition are returned.
    """
    fields: list[RelayedConnectionField] = []
    for cls in reversed(owner.__mro__):
        fields.extend(cls.__dict__.get(RELAYED_FIELDS_ATTR, ()))

    definition = get_object_definition(owner)
    if definition is not None:
        fields.extend(
            f for f in definition.fields if isinstance(f, RelayedConnectionField)
        )

    unique: dict[int, RelayedConnectionField] = {id(f): f for f in fields}
    return list(unique.values())


def _make_resolver(field: RelayedConnectionField) -> StrawberryResolver:
    async def resolve_relayed_connection(
        root: Any,
        info: Info,
        before: Annotated[
            Optional[str],
            strawberry.argument(
                description=(
                    "Returns the items in the list that come before the "
                    "specified cursor."
                ),
            ),
        ] = None,
        after: Annotated[
            Optional[str],
            strawberry.argument(
                description=(
                    "Returns the items in the list that come after the "
                    "specified cursor."
                ),
            ),
        ] = None,
        first: Annotated[
            Optional[int],
            strawberry.argument(description="Returns the first n items from the list."),
        ] = None,
        last: Annotated[
            Optional[int],
            strawberry.argument(description="Returns the last n items from the list."),
        ] = None,
    ):
        return await field.resolve_connection(
            root,
            info,
            before=before,
            after=after,
            first=first,
            last=last,
        )

    return StrawberryResolver(resolve_relayed_connection)


class RelayedConnectionField(StrawberryField):
    """A field resolved as a paginated connection of `node` objects.

    The field is declared in two phases. When the owning class body is
    executed the field only records its owner and name. The connection types
    and the resolver are created later, by `AutoRelayConfig.finalize`, once
    every type and the configuration are known.
    """

    def __init__(
        self,
        node: Optional[TypeThunk] = None,
        through: Optional[TypeThunk] = None,
        *,
        options: Optional[RelayedConnectionOptions] = None,
        source: Optional[str] = None,
        graphql_name: Optional[str] = None,
        python_name: Optional[str] = None,
        **kwargs,
    ):
        self.node_thunk = node
        self.through_thunk = through
        self.options = MappingProxyType(dict(options or {}))
        self.source = source

        self.owner: Optional[type] = None
        self.field_name: Optional[str] = python_name
        self.connection_type: Optional[type] = None
        self.getter_owner: Optional[type] = None
        self.getter_name: Optional[str] = None
        self.config: Optional[AutoRelayConfig] = None

        kwargs.setdefault("base_resolver", _make_resolver(self))
        kwargs.setdefault("type_annotation", StrawberryAnnotation(PENDING_CONNECTION))
        super().__init__(graphql_name=graphql_name, python_name=python_name, **kwargs)

    def __copy__(self) -> Self:
        new_field = super().__copy__()
        new_field.node_thunk = self.node_thunk
        new_field.through_thunk = self.through_thunk
        new_field.options = self.options
        new_field.source = self.source
        new_field.owner = self.owner
        new_field.field_name = self.field_name
        new_field.connection_type = self.connection_type
        new_field.getter_owner = self.getter_owner
        new_field.getter_name = self.getter_name
        new_field.config = self.config
        return new_field

    def __set_name__(self, owner: type, name: str) -> None:
        super().__set_name__(owner, name)

        if self.owner is not None:
            return

        self.owner = owner
        self.field_name = self.field_name or name
        setattr(owner, RELAYED_FIELDS_ATTR, [*owner.__dict__.get(RELAYED_FIELDS_ATTR, ()), self])

    @property
    def node(self) -> type:
        return resolve_thunk(self.node_thunk)

    @property
    def through(self) -> Optional[type]:
        return resolve_thunk(self.through_thunk)

    @property
    def is_bound(self) -> bool:
        return self.connection_type is not None and self.getter_name is not None

    def resolve_type(self, *, type_definition=None):
        if self.connection_type is not None:
            return self.connection_type

        if type_definition is not None or self._owner_is_processed():
            # the schema is being built
            raise ConfigurationError(
                f"Relayed field {self.owner_name}.{self.field_name} was never "
                "finalized, call `AutoRelayConfig.finalize()` before building "
                "the schema",
                origin=self.owner,
            )

        return super().resolve_type(type_definition=type_definition)

    def _owner_is_processed(self) -> bool:
        # strawberry looks the type up while processing the owner, before the
        # definition exists, and never again until the schema is built
        return self.owner is not None and get_object_definition(self.owner) is not None

    @property
    def owner_name(self) -> str:
        if self.owner is None:
            return "<unbound>"

        definition = get_object_definition(self.owner)
        return definition.name if definition is not None else self.owner.__name__

    @property
    def connection_name(self) -> str:
        return f"{self.owner_name}{capitalize(to_camel_case(self.field_name or ''))}"

    def bind_connection(self, owner: type, getter_name: str, connection: type) -> None:
        self.connection_type = connection
        self.type = connection
        self.getter_owner = owner
        self.getter_name = getter_name

    def bind(self, config: AutoRelayConfig) -> None:
        """Generate the connection types and install the resolver."""
        if self.config is config and self.is_bound:
            return

        owner = self.owner
        if owner is None or self.field_name is None:
            raise ConfigurationError(
                "Relayed connections must be declared in the body of a strawberry type",
            )
        if self.node_thunk is None:
            raise ConfigurationError(
                f"Relayed field {owner.__name__}.{self.field_name} has no node type",
                origin=owner,
            )

        field_name = self.field_name
        getter_name = autorelay_settings()["GETTER_NAME_TEMPLATE"].format(name=field_name)

        factory = config.dynamic_object_factory
        edge_connection = factory.make_edge_connection(
            self.connection_name,
            self.node_thunk,
            self.through_thunk,
        )
        factory.declare_field_as_connection(
            owner,
            getter_name,
            field_name,
            edge_connection.connection,
        )

        orm = config.make_orm_connection()
        getter = orm.auto_relay_factory(
            field_name,
            lambda: owner,
            self.node_thunk,
            self.through_thunk,
            self.options,
            edge_connection=edge_connection,
            source=self.source or field_name,
        )
        setattr(owner, getter_name, staticmethod(getter))

        # copies made by strawberry share the resolver of the declared field
        for field in get_relayed_fields(owner):
            if field.field_name == field_name:
                field.config = config
        self.config = config
        logger.debug("Bound relayed field %s.%s", owner.__name__, field_name)

    async def resolve_connection(
        self,
        root: Any,
        info: Info,
        **kwargs: Any,
    ) -> Any:
        if self.config is None or not self.is_bound:
            raise ConfigurationError(
                f"Relayed field {self.owner_name}.{self.field_name} was never finalized",
                origin=self.owner,
            )

        getter = getattr(self.getter_owner, self.getter_name)  # type: ignore
        args = self.config.connection_args(**kwargs)
        max_results = autorelay_settings()["MAX_RESULTS"]
        if max_results is None:
            max_results = info.schema.config.relay_max_results

        return await getter(root, args, max_results=max_results)


def relayed_connection(
    node: TypeThunk,
    through: Union[TypeThunk, RelayedConnectionOptions, None] = None,
    options: Optional[RelayedConnectionOptions] = None,
    *,
    order: Optional[Mapping[str, OrderDirection]] = None,
    source: Optional[str] = None,
    name: Optional[str] = None,
    description: Optional[str] = None,
    permission_classes: Optional[list[type[BasePermission]]] = None,
    deprecation_reason: Optional[str] = None,
    directives: Optional[Sequence[object]] = (),
    extensions: Sequence[FieldExtension] = (),
) -> Any:
    """Annotate a field to be resolved as an automatically paginated connection.

    `node` is the type of the paginated items. `through` is the type of the
    join between the owner and the nodes; its fields are exposed on the edges.
    The options mapping can be given in place of `through`.

    Examples:
        >>> @strawberry.type
        ... class User:
        ...     posts = relayed_connection(lambda: Post, order={"created_at": "DESC"})
        ...     groups = relayed_connection(lambda: Group, lambda: Membership)

    """
    if isinstance(through, Mapping):
        options, through = through, None  # type: ignore

    options = dict(options or {})
    if order is not None:
        options["order"] = order

    return RelayedConnectionField(
        node,
        through,  # type: ignore
        options=options,  # type: ignore
        source=source,
        graphql_name=name,
        description=description,
        permission_classes=permission_classes or [],
        deprecation_reason=deprecation_reason,
        directives=directives or (),
        extensions=list(extensions),
    )


RelayedConnection = relayed_connection

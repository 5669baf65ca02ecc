from __future__ import annotations

import logging
from typing import Protocol

from strawberry.types import get_object_definition

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SchemaSink(Protocol):
    """Receiver of the declarations made while binding relayed fields."""

    def declare(self, type_: type) -> None: ...

    def declare_field(
        self,
        owner: type,
        field_name: str,
        resolver_ref: str,
        return_type: type,
    ) -> None: ...


class StrawberrySchemaSink:
    """Declare generated types and fields into strawberry types.

    Generated types are collected in `types`, which can be given to
    `strawberry.Schema(types=...)` so that they are part of the schema even
    before any field references them.
    """

    def __init__(self):
        self.types: list[type] = []

    def declare(self, type_: type) -> None:
        if type_ not in self.types:
            self.types.append(type_)

    def declare_field(
        self,
        owner: type,
        field_name: str,
        resolver_ref: str,
        return_type: type,
    ) -> None:
        from .fields import get_relayed_fields

        fields = [f for f in get_relayed_fields(owner) if f.field_name == field_name]
        if not fields:
            raise ConfigurationError(
                f'{owner.__name__} has no relayed field named "{field_name}"',
                origin=owner,
            )

        for field in fields:
            field.bind_connection(owner, resolver_ref, return_type)

        logger.debug(
            "Declared %s.%s as %s",
            get_object_definition(owner, strict=True).name,
            field_name,
            return_type.__name__,
        )

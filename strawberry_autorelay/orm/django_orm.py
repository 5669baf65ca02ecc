from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Optional

from asgiref.sync import sync_to_async
from django.core.exceptions import FieldDoesNotExist, ValidationError
from django.db.models import F, OrderBy, Q, QuerySet
from django.db.models.constants import LOOKUP_SEP

from strawberry_autorelay.exceptions import ConfigurationError, InvalidCursorError

from .base import ORMConnection, Page, PageRequest, Row

if TYPE_CHECKING:
    from collections.abc import Sequence

    from django.db import models
    from django.db.models.fields import Field

    from strawberry_autorelay.ordering import OrderingKey

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class OrderingDescriptor:
    key: OrderingKey
    field: Field
    lookup: str

    @property
    def maybe_null(self) -> bool:
        return bool(getattr(self.field, "null", False))

    def order_by(self, *, backward: bool) -> OrderBy:
        expr = F(self.lookup)
        # nulls are the smallest values whatever the database does by default
        if self.key.descending ^ backward:
            return expr.desc(nulls_last=True)
        return expr.asc(nulls_first=True)

    def get_comparator(self, value: Any, before: bool) -> Optional[Q]:
        nulls_first = self.key.nulls_first
        if value is None:
            # 1. When nulls are first:
            #    1.1 there is nothing before "null"
            #    1.2 after "null" comes everything non-null
            # 2. When nulls are last:
            #    2.1 there is nothing after "null"
            #    2.2 before "null" comes everything non-null
            if nulls_first ^ before:
                return Q((f"{self.lookup}{LOOKUP_SEP}isnull", False))
            return None

        lookup = "lt" if before ^ self.key.descending else "gt"
        cmp = Q((f"{self.lookup}{LOOKUP_SEP}{lookup}", value))

        if self.maybe_null and nulls_first == before:
            # if nulls are first, "before any value" can also mean "is null"
            # if nulls are last, "after any value" can also mean "is null"
            cmp |= Q((f"{self.lookup}{LOOKUP_SEP}isnull", True))
        return cmp

    def get_eq(self, value: Any) -> Q:
        if value is None:
            return Q((f"{self.lookup}{LOOKUP_SEP}isnull", True))
        return Q((f"{self.lookup}{LOOKUP_SEP}exact", value))

    def to_python(self, value: Any) -> Any:
        if value is None:
            return None
        try:
            return self.field.to_python(value)
        except ValidationError as e:
            raise InvalidCursorError(str(value)) from e

    def value_from(self, obj: models.Model) -> Optional[str]:
        value = self.field.value_from_object(obj)
        if value is None:
            return None
        return self.field.value_to_string(obj)


def build_tuple_compare(
    descriptors: Sequence[OrderingDescriptor],
    values: Sequence[Any],
    before: bool,
) -> Q:
    current = None
    for descriptor, value in zip(reversed(descriptors), reversed(values)):
        cmp = descriptor.get_comparator(value, before)
        if current is None:
            current = cmp
        else:
            eq = descriptor.get_eq(value)
            current = cmp | (eq & current) if cmp is not None else eq & current
    return current if current is not None else Q()


class DjangoORMConnection(ORMConnection):
    """Paginate Django relations with keyset predicates.

    The relation is read from `getattr(parent, source)`: a related manager for
    foreign keys, or a many to many manager whose `through` model is queried
    when the relayed field declares a through type.
    """

    def primary_key(self, node: type) -> str:
        return "pk"

    def get_queryset(
        self,
        request: PageRequest,
    ) -> tuple[QuerySet, type[models.Model], str]:
        manager = getattr(request.parent, request.source)

        if request.through is None:
            qs = manager.all()
            return qs, qs.model, ""

        through = getattr(manager, "through", None)
        if through is None:
            raise ConfigurationError(
                f'"{request.source}" is not a many to many relation, '
                "it cannot be relayed through another type",
                origin=request.through,
            )

        qs = through._default_manager.filter(
            **{manager.source_field_name: request.parent},
        ).select_related(manager.target_field_name)
        return qs, manager.model, manager.target_field_name

    def get_descriptors(
        self,
        model: type[models.Model],
        ordering: Sequence[OrderingKey],
        prefix: str,
    ) -> list[OrderingDescriptor]:
        descriptors = []
        for key in ordering:
            try:
                field = model._meta.pk if key.name == "pk" else model._meta.get_field(key.name)
            except FieldDoesNotExist as e:
                raise ConfigurationError(
                    f'Cannot order {model.__name__} by unknown field "{key.name}"',
                ) from e

            name = "pk" if key.name == "pk" else field.attname  # type: ignore
            lookup = f"{prefix}{LOOKUP_SEP}{name}" if prefix else name
            descriptors.append(OrderingDescriptor(key, field, lookup))  # type: ignore
        return descriptors

    def fetch_page_sync(self, request: PageRequest) -> Page:
        qs, model, prefix = self.get_queryset(request)
        descriptors = self.get_descriptors(model, request.ordering, prefix)

        after = (
            [d.to_python(v) for d, v in zip(descriptors, request.after)]
            if request.after is not None
            else None
        )
        before = (
            [d.to_python(v) for d, v in zip(descriptors, request.before)]
            if request.before is not None
            else None
        )

        if after is not None:
            qs = qs.filter(build_tuple_compare(descriptors, after, False))
        if before is not None:
            qs = qs.filter(build_tuple_compare(descriptors, before, True))

        qs = qs.order_by(*[d.order_by(backward=request.backward) for d in descriptors])
        if request.limit is not None:
            qs = qs[: request.limit + 1]

        logger.debug("Fetching %s page: %s", request.source, qs.query)

        rows = []
        for obj in qs:
            node = getattr(obj, prefix) if prefix else obj
            rows.append(
                Row(
                    node=node,
                    key=tuple(d.value_from(node) for d in descriptors),
                    through=obj if prefix else None,
                ),
            )

        return Page.from_overfetch(rows, request.limit)

    async def fetch_page(self, request: PageRequest) -> Page:
        return await sync_to_async(self.fetch_page_sync)(request)

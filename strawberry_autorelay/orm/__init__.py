from .base import ORMConnection, Page, PageRequest, Row
from .django_orm import DjangoORMConnection, OrderingDescriptor, build_tuple_compare
from .memory import InMemoryORMConnection

__all__ = [
    "DjangoORMConnection",
    "InMemoryORMConnection",
    "ORMConnection",
    "OrderingDescriptor",
    "Page",
    "PageRequest",
    "Row",
    "build_tuple_compare",
]

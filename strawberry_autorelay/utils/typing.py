from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Callable, TypeVar, Union, overload

from strawberry.types.base import StrawberryContainer, StrawberryType
from strawberry.types.lazy_type import LazyType

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

_T = TypeVar("_T")
_Type = TypeVar("_Type", bound="StrawberryType | type")

#: A type, or something that produces it once every type has been defined
TypeThunk: TypeAlias = Union[type[_T], LazyType, Callable[[], type[_T]]]


@overload
def unwrap_type(type_: StrawberryContainer) -> StrawberryType | type: ...


@overload
def unwrap_type(type_: _Type) -> _Type: ...


def unwrap_type(type_):
    while isinstance(type_, StrawberryContainer):
        type_ = type_.of_type

    if isinstance(type_, LazyType):
        type_ = type_.resolve_type()

    return type_


def resolve_thunk(thunk: Any) -> Any:
    """Resolve a type thunk into the type it refers to.

    Accepts the type itself, a `strawberry.lazy` reference or a zero argument
    callable (usually a lambda) returning the type.
    """
    if thunk is None:
        return None

    if isinstance(thunk, LazyType):
        return thunk.resolve_type()

    if inspect.isclass(thunk):
        return thunk

    if callable(thunk):
        return resolve_thunk(thunk())

    raise TypeError(f"Expected a type or a callable returning one, got {thunk!r}")


def capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]

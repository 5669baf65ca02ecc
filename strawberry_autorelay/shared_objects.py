from __future__ import annotations

import types
from typing import Optional

import strawberry


class SharedObjectFactory:
    """Build the objects shared by every generated connection.

    Names are prefixed so that several independent schemas can live in the
    same process without their `PageInfo` types colliding.
    """

    def make_page_info(self, prefix: str = "", base: Optional[type] = None) -> type:
        def body(ns):
            ns["__annotations__"] = {
                "has_next_page": bool,
                "has_previous_page": bool,
                "start_cursor": Optional[str],
                "end_cursor": Optional[str],
            }
            ns["has_next_page"] = strawberry.field(
                default=False,
                description="When paginating forwards, are there more items?",
            )
            ns["has_previous_page"] = strawberry.field(
                default=False,
                description="When paginating backwards, are there more items?",
            )
            ns["start_cursor"] = strawberry.field(
                default=None,
                description="When paginating backwards, the cursor to continue.",
            )
            ns["end_cursor"] = strawberry.field(
                default=None,
                description="When paginating forwards, the cursor to continue.",
            )
            ns["__module__"] = __name__

        name = f"{prefix}PageInfo"
        cls = types.new_class(name, (base,) if base is not None else (), exec_body=body)
        return strawberry.type(
            cls,
            name=name,
            description="Information to aid in pagination.",
        )

    def make_connection_arguments(self, prefix: str = "") -> type:
        def body(ns):
            ns["__annotations__"] = {
                "first": Optional[int],
                "after": Optional[str],
                "last": Optional[int],
                "before": Optional[str],
            }
            ns["first"] = strawberry.field(
                default=None,
                description="Returns the first n elements from the list.",
            )
            ns["after"] = strawberry.field(
                default=None,
                description=(
                    "Returns the items in the list that come after the "
                    "specified cursor."
                ),
            )
            ns["last"] = strawberry.field(
                default=None,
                description="Returns the last n elements from the list.",
            )
            ns["before"] = strawberry.field(
                default=None,
                description=(
                    "Returns the items in the list that come before the "
                    "specified cursor."
                ),
            )
            ns["__module__"] = __name__

        name = f"{prefix}ConnectionArguments"
        cls = types.new_class(name, (), exec_body=body)
        return strawberry.input(cls, name=name)

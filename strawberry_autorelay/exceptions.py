from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any, Optional

from strawberry.exceptions.exception import StrawberryException
from strawberry.exceptions.utils.source_finder import SourceFinder

if TYPE_CHECKING:
    from strawberry.exceptions.exception_source import ExceptionSource


class AutoRelayError(Exception):
    """Base class for every error raised by strawberry_autorelay."""


class ConfigurationError(AutoRelayError, StrawberryException):
    def __init__(self, message: str, *, origin: Optional[type] = None):
        self.origin = origin

        self.message = message
        self.rich_message = f"[bold red]{message}"
        self.suggestion = (
            "Make sure `AutoRelayConfig` is created with a callable `orm` factory "
            "and that `finalize()` runs before the schema is built"
        )
        self.annotation_message = "auto relay misconfigured"

        super().__init__(self.message)

    @cached_property
    def exception_source(self) -> ExceptionSource | None:  # pragma: no cover
        if self.origin is None:
            return None

        source_finder = SourceFinder()

        return source_finder.find_class_from_object(self.origin)


class SchemaCollisionError(AutoRelayError, StrawberryException):
    def __init__(self, name: str, existing: Any, requested: Any):
        self.name = name
        self.existing = existing
        self.requested = requested

        self.message = (
            f'Connection "{name}" was already declared for {existing!r}, '
            f"cannot declare it again for {requested!r}"
        )
        self.rich_message = (
            f"Connection `[underline]{name}[/]` is already declared "
            f"for a different node type"
        )
        self.suggestion = (
            "Rename one of the relayed fields or the types that own them"
        )
        self.annotation_message = "conflicting connection declaration"

        super().__init__(self.message)

    @cached_property
    def exception_source(self) -> ExceptionSource | None:  # pragma: no cover
        if not isinstance(self.requested, type):
            return None

        source_finder = SourceFinder()

        return source_finder.find_class_from_object(self.requested)


class InvalidCursorError(AutoRelayError, ValueError):
    def __init__(self, cursor: str, reason: str = "Invalid cursor"):
        self.cursor = cursor
        self.reason = reason

        super().__init__(f"{reason}: {cursor!r}")


class InvalidArgumentError(AutoRelayError, ValueError):
    pass


class UpstreamFetchError(AutoRelayError):
    """Raised when the ORM connection failed to fetch a page.

    The original exception is always available as ``__cause__``.
    """

    def __init__(self, field_name: str, original: BaseException):
        self.field_name = field_name
        self.original = original

        super().__init__(
            f'Failed to fetch connection "{field_name}": {original}',
        )

"""Code for interacting with Django settings."""

from typing import Optional, cast

from django.conf import settings
from typing_extensions import TypedDict


class AutoRelaySettings(TypedDict):
    """Dictionary defining the shape `settings.STRAWBERRY_AUTORELAY` should have.

    All settings are optional and have defaults as described in their docstrings and
    defined in `DEFAULT_AUTORELAY_SETTINGS`.
    """

    #: Type prefix embedded in every cursor. Cursors carrying another prefix
    #: are rejected as invalid.
    CURSOR_PREFIX: str

    #: Maximum value accepted for `first` and `last`. When `None`, the
    #: schema's `relay_max_results` config is used instead.
    MAX_RESULTS: Optional[int]

    #: Template for the attribute name under which the resolver of a relayed
    #: field is installed on its owner type.
    GETTER_NAME_TEMPLATE: str


DEFAULT_AUTORELAY_SETTINGS = AutoRelaySettings(
    CURSOR_PREFIX="autorelaycursor",
    MAX_RESULTS=None,
    GETTER_NAME_TEMPLATE="relay_field_{name}_getter",
)


def autorelay_settings() -> AutoRelaySettings:
    """Get strawberry autorelay settings.

    Return the dictionary from `settings.STRAWBERRY_AUTORELAY`, with defaults
    for missing keys. Outside of a configured Django project the defaults are
    returned as is.
    """
    defaults = DEFAULT_AUTORELAY_SETTINGS
    if not settings.configured:
        return cast("AutoRelaySettings", {**defaults})

    return cast(
        "AutoRelaySettings",
        {**defaults, **getattr(settings, "STRAWBERRY_AUTORELAY", {})},
    )

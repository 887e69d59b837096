"""Errors raised while reading assetsweep settings from the environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, e.g. a page size above the Admin API limit."""


class MissingConfigurationError(ConfigurationError):
    """Required settings such as Cloudinary credentials are absent or blank.

    ``names`` lists the missing environment variables so callers can report them
    without parsing the message.
    """

    def __init__(self, message: str, *, names: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.names = tuple(names)

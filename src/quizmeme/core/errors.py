"""Exception hierarchy for the Quizmeme service.

Every error raised by the generation pipeline derives from
:class:`QuizmemeError`.  The string form of an error is the message returned
to clients in the ``{"error": ...}`` envelope, so messages carry their
context prefix (``"opening base image: ..."``) and chain the underlying
exception with ``raise ... from exc``.

Classes
-------
ConfigError
    Descriptions file or settings are unusable.  Fatal at startup.
UnknownBaseError
    The requested template name is not registered.
ImageError
    The base image is missing or cannot be decoded.
FontError
    The font asset cannot be loaded.
PayloadError
    The request body or fields are malformed.
"""

from __future__ import annotations


class QuizmemeError(Exception):
    """Base class for all Quizmeme errors."""


class ConfigError(QuizmemeError):
    """Raised when the service configuration cannot be loaded."""


class UnknownBaseError(QuizmemeError):
    """Raised when a template name is absent from the registry.

    Attributes:
        name: The template name that was requested.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'unknown base "{name}"')


class ImageError(QuizmemeError):
    """Raised when the base image cannot be opened or decoded."""


class FontError(QuizmemeError):
    """Raised when the font face cannot be loaded."""


class PayloadError(QuizmemeError):
    """Raised when the request payload is malformed."""

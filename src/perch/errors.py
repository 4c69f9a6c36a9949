"""perch error values and exception hierarchy.

Request-time failures are never raised. They travel to the hosting
framework as a :class:`HandlerError` passed to ``next``. The exception
classes only cover configuration that cannot be turned into a component.
"""

from dataclasses import dataclass
from enum import StrEnum


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when a configuration object cannot be parsed at all.

    Typically from ``ServiceConfig.from_mapping()`` given a non-mapping.
    """


class ErrorCode(StrEnum):
    """Codes carried by :class:`HandlerError`."""

    SERVICE_INVALID = "ERR_SERVICE_INVALID"
    RENDERER_INVALID = "ERR_RENDERER_INVALID"
    SERVER_APP_CHUNK_INVALID = "ERR_SERVER_APP_CHUNK_INVALID"


@dataclass(frozen=True, slots=True)
class HandlerError:
    """An error handed to the framework's ``next`` callable.

    Shaped like the ``{message, code}`` objects error middleware expects;
    use :meth:`to_dict` where the framework wants a plain mapping.
    """

    message: str
    code: ErrorCode

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "code": str(self.code)}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

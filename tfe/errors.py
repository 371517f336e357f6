"""Exceptions raised by the tfe client.

Every error derives from :class:`TFEError`, so callers that do not care
about the specific cause can catch a single type.  HTTP-level failures keep
the response status in ``status_code``; transport failures chain the
underlying ``httpx`` exception as ``__cause__``.
"""

from __future__ import annotations


class TFEError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __repr__(self) -> str:  # pragma: no cover
        return f"{type(self).__name__}({self.args[0]!r}, status_code={self.status_code})"


class ConfigurationError(TFEError):
    """The client cannot be built from the given address / token."""


# ---------------------------------------------------------------------------
# Local validation (raised before any request is made)
# ---------------------------------------------------------------------------


class InvalidValueError(TFEError, ValueError):
    """An identifier or option failed local syntactic validation."""

    def __init__(self, field: str) -> None:
        super().__init__(f"invalid value for {field}")
        self.field = field


class RequiredValueError(TFEError, ValueError):
    """A required option was not provided."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field


# ---------------------------------------------------------------------------
# Transport / API
# ---------------------------------------------------------------------------


class TransportError(TFEError):
    """Connection failure, timeout or other error below the HTTP layer."""


class APIError(TFEError):
    """The API answered with an error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.errors = list(errors or [])


class UnauthorizedError(APIError):
    """HTTP 401."""

    def __init__(self) -> None:
        super().__init__("unauthorized", status_code=401)


class ResourceNotFoundError(APIError):
    """HTTP 404: the resource does not exist or is not visible to the token."""

    def __init__(self) -> None:
        super().__init__("resource not found", status_code=404)


class InvalidIncludeValueError(APIError):
    """HTTP 400 caused by an unsupported ``include`` query parameter."""

    def __init__(self, errors: list[str] | None = None) -> None:
        super().__init__('invalid value for "include" field', status_code=400, errors=errors)


# ---------------------------------------------------------------------------
# Log streaming
# ---------------------------------------------------------------------------


class LogURLError(TFEError):
    """A log stream could not be opened."""


class MissingLogURLError(LogURLError):
    def __init__(self, kind: str, resource_id: str) -> None:
        super().__init__(f"{kind} {resource_id} does not have a log URL")
        self.resource_id = resource_id


class InvalidLogURLError(LogURLError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"invalid log URL {url!r}: {reason}")
        self.url = url


class ReadCanceledError(TFEError):
    """The cancel event was set while a log reader was waiting for data."""

    def __init__(self) -> None:
        super().__init__("log read canceled")

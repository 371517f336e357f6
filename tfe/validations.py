"""Presence and syntax checks applied to identifiers before a request is built."""

from __future__ import annotations

import re

from tfe.errors import InvalidValueError

# Typical string identifier: "ws-abc123", "my-org", "run-X.y_z"
_STRING_ID = re.compile(r"[a-zA-Z0-9\-._]+")


def valid_string(value: str | None) -> bool:
    """Return True if *value* is present and non-empty."""
    return value is not None and value != ""


def valid_string_id(value: str | None) -> bool:
    """Return True if *value* is present and looks like an API identifier."""
    return value is not None and bool(_STRING_ID.fullmatch(value))


def require_id(value: str | None, field: str) -> str:
    """Return *value* unchanged or raise :class:`InvalidValueError` naming *field*."""
    if not valid_string_id(value):
        raise InvalidValueError(field)
    return value  # type: ignore[return-value]

"""Client factory.

:func:`get_client` is the single entry-point for obtaining a configured
:class:`~tfe.client.Client` from the environment.

Usage::

    from tfe.factory import get_client

    # Reads TFE_ADDRESS, TFE_TOKEN, ... (and .env)
    client = get_client()

    # Explicit overrides win over the environment
    client = get_client(address="https://tfe.internal", retry_server_errors=True)
"""

from __future__ import annotations

from typing import Any

from tfe.client import Client
from tfe.core.config import get_settings


def get_client(**overrides: Any) -> Client:
    """Return a :class:`~tfe.client.Client` built from :class:`~tfe.core.config.Settings`.

    Args:
        overrides: Any :class:`~tfe.client.Client` keyword argument.  Values
                   given here take precedence over the settings.

    Raises:
        ConfigurationError: no token configured, or an invalid address.
    """
    settings = get_settings()
    kwargs: dict[str, Any] = {
        "address": settings.address,
        "token": settings.token,
        "base_path": settings.base_path,
        "retry_server_errors": settings.retry_server_errors,
        "timeout": settings.timeout_seconds,
    }
    kwargs.update(overrides)
    return Client(**kwargs)

"""Python client for the Terraform Cloud / Enterprise API.

All API traffic goes through one rate-limited, retrying transport owned by
:class:`~tfe.client.Client`.  Use :func:`~tfe.factory.get_client` to build a
client from ``TFE_*`` environment variables.

Quick start::

    import io
    from tfe.factory import get_client

    client = get_client()
    run    = client.runs.read("run-abc123")
    reader = client.applies.logs(run.apply.id)
    for line in io.TextIOWrapper(io.BufferedReader(reader), encoding="utf-8"):
        print(line, end="")
"""

from tfe.client import APIMetadata, Client
from tfe.errors import (
    APIError,
    ConfigurationError,
    InvalidIncludeValueError,
    InvalidLogURLError,
    InvalidValueError,
    LogURLError,
    MissingLogURLError,
    ReadCanceledError,
    RequiredValueError,
    ResourceNotFoundError,
    TFEError,
    TransportError,
    UnauthorizedError,
)
from tfe.factory import get_client
from tfe.logreader import LogReader

__version__ = "0.1.0"

__all__ = [
    # Client
    "APIMetadata",
    "Client",
    "get_client",
    # Logs
    "LogReader",
    # Errors
    "TFEError",
    "ConfigurationError",
    "InvalidValueError",
    "RequiredValueError",
    "TransportError",
    "APIError",
    "UnauthorizedError",
    "ResourceNotFoundError",
    "InvalidIncludeValueError",
    "LogURLError",
    "MissingLogURLError",
    "InvalidLogURLError",
    "ReadCanceledError",
]

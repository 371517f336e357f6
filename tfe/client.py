"""Terraform Cloud / Enterprise API client.

:class:`Client` wires one :class:`~tfe.transport.Transport` into the
resource facades and records the metadata the server reports on ``ping``.

Usage::

    from tfe import Client

    with Client(token="...") as client:
        run = client.runs.read("run-abc123")
        reader = client.plans.logs(run.plan.id)
        print(reader.read().decode())
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeVar
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel

from tfe.core.config import DEFAULT_ADDRESS, DEFAULT_BASE_PATH
from tfe.core.logging import get_logger
from tfe.errors import ConfigurationError
from tfe.resources.applies import Applies
from tfe.resources.base import APIModel, ListOptions, ResourceList
from tfe.resources.cost_estimations import CostEstimations
from tfe.resources.organizations import Organizations
from tfe.resources.plans import Plans
from tfe.resources.policy_checks import PolicyChecks
from tfe.resources.runs import Runs
from tfe.resources.workspaces import Workspaces
from tfe.transport import HEADER_RATE_LIMIT, RetryLogHook, Transport

logger = get_logger("tfe.client")

HEADER_API_VERSION = "TFP-API-Version"
HEADER_TFE_VERSION = "X-TFE-Version"
HEADER_APP_NAME = "TFP-AppName"

CLOUD_APP_NAMES = frozenset({"HCP Terraform", "Terraform Cloud"})

T = TypeVar("T", bound=APIModel)


class APIMetadata(BaseModel):
    """What the server reported about itself on ``ping``."""

    api_version: str = ""
    tfe_version: str = ""
    app_name: str = ""


def _base_url(address: str, base_path: str) -> str:
    address = address.strip().rstrip("/")
    parsed = urlparse(address)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"invalid address {address!r}: must be an http(s) URL")
    path = base_path.strip().strip("/")
    return f"{address}/{path}/" if path else f"{address}/"


class Client:
    """Entry point of the package: one client per address and token.

    Args:
        address:             Instance address; defaults to HCP Terraform.
        token:               API token.  Required.
        base_path:           Path the API is served on.
        headers:             Extra headers sent with every request.
        retry_server_errors: Also retry 5xx responses and connection errors.
        retry_log_hook:      Called before each retry sleep.
        timeout:             HTTP timeout in seconds.
        http_client:         Pre-built ``httpx.Client``.

    Raises:
        ConfigurationError: missing token or invalid address.
        APIError:           the ``ping`` request was rejected.
    """

    def __init__(
        self,
        address: str | None = None,
        token: str | None = None,
        *,
        base_path: str | None = None,
        headers: Mapping[str, str] | None = None,
        retry_server_errors: bool = False,
        retry_log_hook: RetryLogHook | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not token:
            raise ConfigurationError("missing API token")
        self.address = (address or DEFAULT_ADDRESS).strip().rstrip("/")
        base_url = _base_url(self.address, base_path or DEFAULT_BASE_PATH)

        self._transport = Transport(
            base_url,
            token,
            headers=headers,
            retry_server_errors=retry_server_errors,
            retry_log_hook=retry_log_hook,
            timeout=timeout,
            http_client=http_client,
        )
        self.metadata = self._ping()

        self.organizations = Organizations(self._transport)
        self.workspaces = Workspaces(self._transport)
        self.runs = Runs(self._transport)
        self.plans = Plans(self._transport)
        self.applies = Applies(self._transport)
        self.cost_estimations = CostEstimations(self._transport)
        self.policy_checks = PolicyChecks(self._transport)

    def _ping(self) -> APIMetadata:
        try:
            response = self._transport.request("GET", "ping")
        except Exception:
            self._transport.close()
            raise
        self._transport.limiter.configure(response.headers.get(HEADER_RATE_LIMIT))
        metadata = APIMetadata(
            api_version=response.headers.get(HEADER_API_VERSION, ""),
            tfe_version=response.headers.get(HEADER_TFE_VERSION, ""),
            app_name=response.headers.get(HEADER_APP_NAME, ""),
        )
        logger.info(
            "Connected to %s (app=%s, api=%s)",
            self.address,
            metadata.app_name or "-",
            metadata.api_version or "-",
        )
        return metadata

    # ------------------------------------------------------------------
    # Server metadata
    # ------------------------------------------------------------------

    def remote_api_version(self) -> str:
        """API version reported by the server, e.g. ``"2.6"``; empty if unknown."""
        return self.metadata.api_version

    def remote_tfe_version(self) -> str:
        """Release of a Terraform Enterprise server; empty for HCP Terraform."""
        return self.metadata.tfe_version

    def app_name(self) -> str:
        return self.metadata.app_name

    def is_cloud(self) -> bool:
        return self.metadata.app_name in CLOUD_APP_NAMES

    def is_enterprise(self) -> bool:
        return not self.is_cloud()

    # ------------------------------------------------------------------
    # Runtime settings
    # ------------------------------------------------------------------

    def set_retry_server_errors(self, enabled: bool) -> None:
        """Turn retrying of 5xx responses and connection errors on or off."""
        self._transport.retry_server_errors = enabled

    def paginate(
        self,
        list_fn: Callable[..., ResourceList[T]],
        *args: Any,
        options: ListOptions | None = None,
    ) -> Iterator[T]:
        """Yield every item of a list endpoint, fetching pages as needed.

        Example::

            for ws in client.paginate(client.workspaces.list, "my-org"):
                print(ws.name)
        """
        options = options or ListOptions()
        while True:
            page = list_fn(*args, options=options)
            yield from page.items
            if page.pagination is None or page.pagination.next_page is None:
                return
            options = options.model_copy(update={"page_number": page.pagination.next_page})

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:  # pragma: no cover
        return f"Client(address={self.address!r}, app={self.metadata.app_name!r})"

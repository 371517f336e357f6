"""Shared fixtures: a respx router standing in for the API and a connected client.

No real network calls are made; every HTTP request is mocked via respx.
"""

from __future__ import annotations

import httpx
import pytest
import respx

from tfe import logreader, transport
from tfe.client import Client
from tfe.core.config import reset_settings

API = "https://app.terraform.io/api/v2"
ARCHIVIST = "https://archivist.terraform.io"

PING_HEADERS = {
    "TFP-API-Version": "2.6",
    "TFP-AppName": "HCP Terraform",
    "X-RateLimit-Limit": "30",
}


def resource_doc(type_: str, id_: str, **attributes) -> dict:
    """Single-resource JSON:API document with kebab-cased attribute names."""
    return {
        "data": {
            "type": type_,
            "id": id_,
            "attributes": {k.replace("_", "-"): v for k, v in attributes.items()},
        }
    }


@pytest.fixture
def api():
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def no_sleep(monkeypatch):
    """Zero out poll waits and retry backoff."""
    monkeypatch.setattr(logreader, "POLL_INTERVAL", 0)
    monkeypatch.setattr(transport, "rate_limit_backoff", lambda *_: 0.0)
    monkeypatch.setattr(transport, "linear_jitter_backoff", lambda *_: 0.0)


@pytest.fixture
def client(api, no_sleep):
    api.get(f"{API}/ping").mock(return_value=httpx.Response(204, headers=PING_HEADERS))
    c = Client(token="test-token")
    # Tests exercise request flow, not pacing.
    c._transport.limiter.configure(None)
    yield c
    c.close()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for var in ("TFE_ADDRESS", "TFE_TOKEN", "TFE_BASE_PATH", "TFE_RETRY_SERVER_ERRORS"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()

"""Shared HTTP runtime for every API call.

:class:`Transport` owns the ``httpx.Client`` and applies, in order:

1. the client-wide :class:`~tfe.ratelimit.TokenBucket` (API requests only),
2. the bearer token, ``Accept``/``Content-Type`` and default headers,
3. retries via tenacity: 429 always, 5xx and connection errors only when
   ``retry_server_errors`` is on,
4. response checking, which maps error statuses onto :mod:`tfe.errors`.

Log blobs are fetched through :meth:`Transport.fetch`, which skips the token
and the limiter: log URLs are pre-signed and served from another host.
"""

from __future__ import annotations

import json
import random
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
)

from tfe.core.logging import get_logger
from tfe.errors import (
    APIError,
    InvalidIncludeValueError,
    ResourceNotFoundError,
    TransportError,
    UnauthorizedError,
)
from tfe.jsonapi import CONTENT_TYPE_JSONAPI, decode_errors, encode_query
from tfe.ratelimit import TokenBucket

logger = get_logger("tfe.transport")

USER_AGENT = "tfe-python"

HEADER_RATE_LIMIT = "X-RateLimit-Limit"
HEADER_RATE_RESET = "X-RateLimit-Reset"

RETRY_MAX = 30
# Bounds of the jitter added to a rate-limit reset time.
RETRY_WAIT_MIN = 0.1
RETRY_WAIT_MAX = 0.4
# Bounds of the linear backoff used for server errors.
SERVER_WAIT_MIN = 0.7
SERVER_WAIT_MAX = 0.9

RetryLogHook = Callable[[int, "httpx.Response | None"], None]

_BODY_METHODS = frozenset({"DELETE", "PATCH", "POST", "PUT"})


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------


def rate_limit_backoff(minimum: float, maximum: float, response: httpx.Response | None) -> float:
    """Seconds to wait after a 429.

    Uses ``X-RateLimit-Reset`` when it is longer than *minimum* and adds
    jitter bounded by ``maximum - minimum`` to avoid a thundering herd.
    """
    jitter = random.random() * (maximum - minimum)
    if response is not None:
        raw = response.headers.get(HEADER_RATE_RESET, "")
        if raw:
            try:
                reset = float(raw)
            except ValueError:
                logger.warning("Ignoring unparsable %s header %r", HEADER_RATE_RESET, raw)
            else:
                if reset > minimum:
                    minimum = reset
    return minimum + jitter


def linear_jitter_backoff(minimum: float, maximum: float, attempt: int) -> float:
    """``attempt × uniform(minimum, maximum)`` seconds."""
    attempt = max(attempt, 1)
    if maximum <= minimum:
        return minimum * attempt
    return (minimum + random.random() * (maximum - minimum)) * attempt


# ---------------------------------------------------------------------------
# Response checking
# ---------------------------------------------------------------------------


def _error_messages(response: httpx.Response) -> list[str]:
    try:
        payload = response.json()
    except ValueError:
        return []
    return decode_errors(payload)


def _status_line(response: httpx.Response) -> str:
    return f"{response.status_code} {response.reason_phrase}".strip()


def check_response(response: httpx.Response) -> None:
    """Raise the matching :class:`~tfe.errors.APIError` for an error status.

    2xx and 3xx responses pass through untouched.
    """
    status = response.status_code
    if 200 <= status < 400:
        return
    if status == 401:
        raise UnauthorizedError()
    if status == 404:
        raise ResourceNotFoundError()

    messages = _error_messages(response)
    if status == 400 and any("include parameter" in m for m in messages):
        raise InvalidIncludeValueError(messages)
    if not messages:
        raise APIError(_status_line(response), status_code=status)
    raise APIError("\n".join(messages), status_code=status, errors=messages)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class Transport:
    """Authenticated, rate-limited, retrying HTTP access to one API base URL.

    Args:
        base_url:            Absolute URL the API paths are resolved against,
                             e.g. ``https://app.terraform.io/api/v2/``.
        token:               Bearer token sent with every API request.
        headers:             Extra headers added to every request (API and log).
        retry_server_errors: Also retry 5xx responses and connection errors.
        retry_max:           Maximum number of retries per request.
        retry_log_hook:      Called as ``hook(attempt, response)`` before each
                             retry sleep; *response* is None for connection errors.
        timeout:             HTTP timeout in seconds.
        http_client:         Pre-built ``httpx.Client`` (custom TLS, proxies, tests).
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        headers: Mapping[str, str] | None = None,
        retry_server_errors: bool = False,
        retry_max: int = RETRY_MAX,
        retry_log_hook: RetryLogHook | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not base_url.endswith("/"):
            base_url += "/"
        self.base_url = httpx.URL(base_url)
        self._token = token
        self.headers: dict[str, str] = {"User-Agent": USER_AGENT}
        self.headers.update(headers or {})
        self.retry_server_errors = retry_server_errors
        self.retry_max = retry_max
        self.retry_log_hook = retry_log_hook
        self.limiter = TokenBucket()
        self._client = http_client or httpx.Client(timeout=timeout)

    # ------------------------------------------------------------------
    # Retry policy
    # ------------------------------------------------------------------

    def _should_retry_response(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        return self.retry_server_errors and response.status_code >= 500

    def _should_retry_exception(self, exc: BaseException) -> bool:
        return self.retry_server_errors and isinstance(exc, httpx.RequestError)

    def _backoff(self, state: RetryCallState) -> float:
        response = _last_response(state)
        if response is not None and response.status_code == 429:
            return rate_limit_backoff(RETRY_WAIT_MIN, RETRY_WAIT_MAX, response)
        return linear_jitter_backoff(SERVER_WAIT_MIN, SERVER_WAIT_MAX, state.attempt_number)

    def _before_sleep(self, state: RetryCallState) -> None:
        response = _last_response(state)
        if response is not None:
            reason = f"HTTP {response.status_code}"
        else:
            reason = repr(state.outcome.exception()) if state.outcome else "unknown"
        logger.warning(
            "Retrying request (attempt %d/%d) after %s",
            state.attempt_number,
            self.retry_max,
            reason,
        )
        if self.retry_log_hook is not None:
            self.retry_log_hook(state.attempt_number, response)

    def _send(self, request: httpx.Request) -> httpx.Response:
        retrying = Retrying(
            retry=retry_if_result(self._should_retry_response)
            | retry_if_exception(self._should_retry_exception),
            wait=self._backoff,
            stop=stop_after_attempt(self.retry_max + 1),
            before_sleep=self._before_sleep,
            # Out of retries: hand back the last response, or re-raise the last error.
            retry_error_callback=lambda state: state.outcome.result(),
        )
        try:
            response = retrying(self._client.send, request)
        except httpx.RequestError as exc:
            raise TransportError(
                f"{request.method} {_redacted(request.url)} network error: {exc}"
            ) from exc
        logger.debug(
            "%s %s -> %d", request.method, _redacted(request.url), response.status_code
        )
        return response

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def url(self, path: str) -> httpx.URL:
        """Resolve an API *path* (e.g. ``"runs/run-123"``) against the base URL."""
        return self.base_url.join(path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any | None = None,
        accept: str = CONTENT_TYPE_JSONAPI,
    ) -> httpx.Response:
        """Send an authenticated API request and return the checked response.

        Raises:
            TransportError: connection failure after retries.
            APIError:       error status (see :func:`check_response`).
        """
        method = method.upper()
        headers = dict(self.headers)
        headers["Authorization"] = f"Bearer {self._token}"
        headers["Accept"] = accept

        content: bytes | None = None
        if body is not None and method in _BODY_METHODS:
            headers["Content-Type"] = CONTENT_TYPE_JSONAPI
            content = json.dumps(body).encode("utf-8")

        request = self._client.build_request(
            method,
            self.url(path),
            params=encode_query(params),
            headers=headers,
            content=content,
        )
        self.limiter.acquire()
        response = self._send(request)
        check_response(response)
        return response

    def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Like :meth:`request` but return the decoded JSON body (None when empty)."""
        response = self.request(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise APIError(
                f"{method.upper()} {path}: invalid JSON response: {exc}",
                status_code=response.status_code,
            ) from exc

    def fetch(self, url: str | httpx.URL, params: Mapping[str, Any] | None = None) -> httpx.Response:
        """GET a foreign URL (signed log URL) without token or rate limiting.

        *params* are merged into the URL's existing query, replacing keys
        that are already present.
        """
        target = httpx.URL(url)
        for key, value in (params or {}).items():
            target = target.copy_set_param(key, value)
        request = self._client.build_request("GET", target, headers=self.headers)
        response = self._send(request)
        check_response(response)
        return response

    def close(self) -> None:
        self._client.close()

    def __repr__(self) -> str:  # pragma: no cover
        return f"Transport(base_url={str(self.base_url)!r})"


def _last_response(state: RetryCallState) -> httpx.Response | None:
    outcome = state.outcome
    if outcome is None or outcome.failed:
        return None
    return outcome.result()


def _redacted(url: httpx.URL) -> str:
    # Signed log URLs carry credentials in the query string.
    return f"{url.scheme}://{url.netloc.decode('ascii')}{url.path}"

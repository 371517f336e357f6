"""Follow a remote, append-only log as a pull-based byte stream.

Plans, applies, cost estimations and policy checks each expose a signed
``log-read-url`` whose content keeps growing while the resource runs.
:class:`LogReader` pages through it with ``limit``/``offset`` query
parameters and uses the parent resource's status to decide when the stream
is over:

* bytes returned            → hand them out, advance the offset;
* no bytes, status running  → wait :data:`POLL_INTERVAL` and poll again;
* no bytes, status terminal → end of stream.

The parent status is refreshed on every :data:`STATUS_REFRESH_EVERY`-th
empty poll (starting with the first) so following a log does not double
the API traffic.  Logs framed with STX/ETX control characters are known to
be complete once the ETX arrives, so the status is refreshed right away in
that case.

Usage::

    reader = client.applies.logs("apply-123", cancel=stop_event)
    for line in io.TextIOWrapper(io.BufferedReader(reader), encoding="utf-8"):
        print(line, end="")
"""

from __future__ import annotations

import io
import threading
from collections.abc import Callable, Collection
from typing import TYPE_CHECKING

import httpx

from tfe.core.logging import get_logger
from tfe.errors import InvalidLogURLError, MissingLogURLError, ReadCanceledError
from tfe.transport import Transport

if TYPE_CHECKING:
    from tfe.resources.base import LoggedResource

logger = get_logger("tfe.logreader")

POLL_INTERVAL = 0.5
STATUS_REFRESH_EVERY = 2

_STX = 0x02
_ETX = 0x03


def parse_log_url(raw: str) -> httpx.URL:
    """Validate a ``log-read-url`` before any polling happens.

    Raises:
        InvalidLogURLError: unparsable URL, non-http(s) scheme or no host.
    """
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidLogURLError(raw, str(exc)) from exc
    if url.scheme not in ("http", "https"):
        raise InvalidLogURLError(raw, f"unsupported scheme {url.scheme!r}")
    if not url.host:
        raise InvalidLogURLError(raw, "missing host")
    return url


class LogReader(io.RawIOBase):
    """Read-only raw stream over a growing remote log.

    Args:
        transport:         Transport used to fetch log chunks.
        log_url:           Signed log URL of the resource.
        fetch_status:      Returns the current status of the parent resource.
        terminal_statuses: Statuses after which no more log data is appended.
        status:            Last known status, used until the first refresh.
        cancel:            Event checked while waiting for new data; once set,
                           a waiting read raises :class:`ReadCanceledError`.
    """

    def __init__(
        self,
        transport: Transport,
        log_url: str | httpx.URL,
        fetch_status: Callable[[], str],
        terminal_statuses: Collection[str],
        *,
        status: str | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        super().__init__()
        self._transport = transport
        self._log_url = log_url if isinstance(log_url, httpx.URL) else parse_log_url(log_url)
        self._fetch_status = fetch_status
        self._terminal = frozenset(terminal_statuses)
        self._status = status
        self._cancel = cancel or threading.Event()
        self._offset = 0
        self._reads = 0
        self._start_of_text = False
        self._end_of_text = False

    @property
    def offset(self) -> int:
        """Number of log bytes consumed so far."""
        return self._offset

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[override]
        """Fill *buffer* with the next log bytes.

        Blocks until at least one byte is available or the log is complete.
        Returns 0 only at end of stream.
        """
        view = memoryview(buffer).cast("B")
        if len(view) == 0:
            return 0
        written = self._read_chunk(view)
        while written is None:
            if self._cancel.wait(POLL_INTERVAL):
                raise ReadCanceledError()
            written = self._read_chunk(view)
        return written

    def _read_chunk(self, view: memoryview) -> int | None:
        """One poll.  Returns bytes written, 0 at end of stream, None for no progress."""
        limit = len(view)
        response = self._transport.fetch(
            self._log_url, params={"limit": limit, "offset": self._offset}
        )
        chunk = response.content[:limit]
        written = len(chunk)

        if written == 0:
            if self._reads % STATUS_REFRESH_EVERY == 0 or self._end_of_text:
                self._status = self._fetch_status()
            if self._status in self._terminal:
                logger.debug("Log complete at offset %d (status=%s)", self._offset, self._status)
                return 0
            self._reads += 1
            return None

        view[:written] = chunk
        if self._offset == 0 and chunk[0] == _STX:
            self._start_of_text = True
        if self._start_of_text and chunk[-1] == _ETX:
            self._end_of_text = True
        self._offset += written
        return written

    def __repr__(self) -> str:  # pragma: no cover
        return f"LogReader(offset={self._offset}, status={self._status!r})"


def open_log(
    transport: Transport,
    kind: str,
    resource: LoggedResource,
    read: Callable[[str], LoggedResource],
    terminal_statuses: Collection[str],
    cancel: threading.Event | None = None,
) -> LogReader:
    """Build a :class:`LogReader` for an already fetched *resource*.

    Args:
        kind:  Human-readable resource kind used in error messages.
        read:  Re-reads the resource by id; its ``status`` drives termination.

    Raises:
        MissingLogURLError: the resource has no log URL.
        InvalidLogURLError: the log URL cannot be parsed.
    """
    if not resource.log_read_url:
        raise MissingLogURLError(kind, resource.id)
    url = parse_log_url(resource.log_read_url)
    resource_id = resource.id

    def fetch_status() -> str:
        return read(resource_id).status

    return LogReader(
        transport,
        url,
        fetch_status,
        terminal_statuses,
        status=resource.status,
        cancel=cancel,
    )

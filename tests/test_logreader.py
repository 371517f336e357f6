"""Tests for following a growing remote log.

Covers:
- Happy path: empty polls while running, data, then EOF once finished
- Terminal status with an empty log ends immediately without waiting
- Cancellation while waiting
- Missing / invalid log URLs fail before any polling
- Offsets advance monotonically with no duplicated bytes
- STX/ETX framed logs refresh status as soon as the ETX arrives
- Small buffers and io wrappers
"""

from __future__ import annotations

import io
import threading
import time
from unittest.mock import MagicMock

import httpx
import pytest

from tfe import logreader
from tfe.errors import InvalidLogURLError, MissingLogURLError, ReadCanceledError
from tfe.logreader import LogReader, parse_log_url

from .conftest import API, ARCHIVIST, resource_doc

LOG_URL = f"{ARCHIVIST}/v1/object/plan-log-token"


class GrowingLog:
    """Log endpoint whose content changes per call.

    ``stages[i]`` is the full log content visible on the i-th fetch; the last
    stage stays visible afterwards.  Responses honour ``offset``/``limit``.
    """

    def __init__(self, *stages: bytes) -> None:
        self.stages = stages
        self.calls = 0
        self.offsets: list[int] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        content = self.stages[min(self.calls, len(self.stages) - 1)]
        self.calls += 1
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        self.offsets.append(offset)
        return httpx.Response(200, content=content[offset : offset + limit])


def _plan(status: str, log_url: str = LOG_URL) -> httpx.Response:
    return httpx.Response(
        200, json=resource_doc("plans", "plan-1", status=status, log_read_url=log_url)
    )


def _event(set_: bool = False) -> MagicMock:
    cancel = MagicMock(spec=threading.Event)
    cancel.wait.return_value = set_
    return cancel


# ═══════════════════════════════════════════════════════════════════════════
# 1. parse_log_url
# ═══════════════════════════════════════════════════════════════════════════


class TestParseLogURL:
    def test_https_url(self):
        url = parse_log_url(LOG_URL + "?sig=abc")
        assert url.host == "archivist.terraform.io"
        assert url.params["sig"] == "abc"

    @pytest.mark.parametrize("raw", ["ftp://example.com/log", "not a url", "/relative/path"])
    def test_rejects(self, raw):
        with pytest.raises(InvalidLogURLError):
            parse_log_url(raw)


# ═══════════════════════════════════════════════════════════════════════════
# 2. Reading through client.plans.logs
# ═══════════════════════════════════════════════════════════════════════════


class TestPlanLogs:
    def test_follows_log_until_finished(self, client, api):
        log = GrowingLog(b"", b"", b"", b"plan succeeded\n")
        log_route = api.get(LOG_URL).mock(side_effect=log)
        api.get(f"{API}/plans/plan-1").mock(
            side_effect=lambda request: _plan("finished" if log.calls > 3 else "running")
        )

        cancel = _event()
        reader = client.plans.logs("plan-1", cancel=cancel)

        assert reader.read() == b"plan succeeded\n"
        assert reader.read() == b""
        assert reader.offset == len(b"plan succeeded\n")
        assert cancel.wait.call_count >= 3
        cancel.wait.assert_called_with(logreader.POLL_INTERVAL)
        # Log requests carry no API token.
        for call in log_route.calls:
            assert "Authorization" not in call.request.headers

    def test_terminal_status_with_empty_log_ends_without_waiting(self, client, api):
        api.get(LOG_URL).mock(return_value=httpx.Response(200, content=b""))
        api.get(f"{API}/plans/plan-1").mock(return_value=_plan("errored"))

        cancel = _event()
        reader = client.plans.logs("plan-1", cancel=cancel)

        assert reader.read() == b""
        cancel.wait.assert_not_called()

    def test_trailing_bytes_are_returned_before_eof(self, client, api):
        api.get(LOG_URL).mock(side_effect=GrowingLog(b"done\n"))
        api.get(f"{API}/plans/plan-1").mock(return_value=_plan("finished"))

        reader = client.plans.logs("plan-1")
        assert reader.read() == b"done\n"

    def test_cancel_set_before_read(self, client, api):
        api.get(LOG_URL).mock(return_value=httpx.Response(200, content=b""))
        api.get(f"{API}/plans/plan-1").mock(return_value=_plan("running"))

        cancel = threading.Event()
        cancel.set()
        reader = client.plans.logs("plan-1", cancel=cancel)

        with pytest.raises(ReadCanceledError):
            reader.read()

    def test_cancel_during_wait_returns_promptly(self, client, api, monkeypatch):
        monkeypatch.setattr(logreader, "POLL_INTERVAL", 0.5)
        api.get(LOG_URL).mock(return_value=httpx.Response(200, content=b""))
        api.get(f"{API}/plans/plan-1").mock(return_value=_plan("running"))

        cancel = threading.Event()
        reader = client.plans.logs("plan-1", cancel=cancel)
        threading.Timer(0.2, cancel.set).start()

        started = time.monotonic()
        with pytest.raises(ReadCanceledError):
            reader.read()
        assert time.monotonic() - started < 1.0

    def test_missing_log_url_fails_before_polling(self, client, api):
        api.get(f"{API}/plans/plan-1").mock(return_value=_plan("running", log_url=""))

        with pytest.raises(MissingLogURLError, match="plan plan-1 does not have a log URL"):
            client.plans.logs("plan-1")

    def test_invalid_log_url_fails_before_polling(self, client, api):
        plan_route = api.get(f"{API}/plans/plan-1").mock(
            return_value=_plan("running", log_url="ftp://example.com/log")
        )

        with pytest.raises(InvalidLogURLError):
            client.plans.logs("plan-1")
        assert plan_route.call_count == 1

    def test_offsets_advance_without_duplicates(self, client, api):
        log = GrowingLog(b"abc", b"abc", b"abcdefgh")
        api.get(LOG_URL).mock(side_effect=log)
        api.get(f"{API}/plans/plan-1").mock(
            side_effect=lambda request: _plan("finished" if log.calls >= 3 else "running")
        )

        reader = client.plans.logs("plan-1")
        chunks = []
        while chunk := reader.read(2):
            chunks.append(chunk)

        assert b"".join(chunks) == b"abcdefgh"
        assert all(len(c) <= 2 for c in chunks)
        assert log.offsets == sorted(log.offsets)
        assert reader.offset == 8

    def test_etx_marker_refreshes_status_immediately(self, client, api):
        log = GrowingLog(b"", b"\x02hello\x03")
        log_route = api.get(LOG_URL).mock(side_effect=log)
        plan_route = api.get(f"{API}/plans/plan-1").mock(
            side_effect=lambda request: _plan("finished" if log.calls >= 2 else "running")
        )

        reader = client.plans.logs("plan-1")
        assert reader.read() == b"\x02hello\x03"
        # initial read, first empty poll, then the poll right after ETX
        assert log_route.call_count == 3
        assert plan_route.call_count == 3

    def test_text_wrapper_iterates_lines(self, client, api):
        log = GrowingLog(b"line one\nline", b"line one\nline two\n")
        api.get(LOG_URL).mock(side_effect=log)
        api.get(f"{API}/plans/plan-1").mock(
            side_effect=lambda request: _plan("finished" if log.calls >= 2 else "running")
        )

        reader = client.plans.logs("plan-1")
        lines = list(io.TextIOWrapper(io.BufferedReader(reader), encoding="utf-8"))
        assert lines == ["line one\n", "line two\n"]


# ═══════════════════════════════════════════════════════════════════════════
# 3. LogReader used directly
# ═══════════════════════════════════════════════════════════════════════════


class TestLogReaderDirect:
    def test_status_refreshed_every_second_empty_poll(self, client, api, no_sleep):
        api.get(LOG_URL).mock(return_value=httpx.Response(200, content=b""))
        statuses = iter(["running", "running", "done"])
        fetch_status = MagicMock(side_effect=lambda: next(statuses))

        reader = LogReader(
            client._transport, LOG_URL, fetch_status, {"done"}, status="running"
        )
        assert reader.read(16) == b""
        # Empty polls 0, 2 and 4 refresh the status; 1 and 3 do not.
        assert fetch_status.call_count == 3

    def test_empty_buffer_does_no_io(self, client, api):
        log_route = api.get(LOG_URL).mock(return_value=httpx.Response(200, content=b"x"))
        reader = LogReader(client._transport, LOG_URL, lambda: "done", {"done"})

        assert reader.readinto(bytearray()) == 0
        assert not log_route.called

    def test_oversized_chunk_is_truncated_to_buffer(self, client, api):
        api.get(LOG_URL).mock(return_value=httpx.Response(200, content=b"abcdef"))
        reader = LogReader(client._transport, LOG_URL, lambda: "done", {"done"})

        buf = bytearray(4)
        assert reader.readinto(buf) == 4
        assert bytes(buf) == b"abcd"
        assert reader.offset == 4

    def test_is_readable_raw_stream(self, client):
        reader = LogReader(client._transport, LOG_URL, lambda: "done", {"done"})
        assert isinstance(reader, io.RawIOBase)
        assert reader.readable()
        assert not reader.writable()
        assert not reader.seekable()

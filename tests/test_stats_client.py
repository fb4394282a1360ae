"""Unit tests for the statistics server client."""

from __future__ import annotations

import http.client
import io
import json
import urllib.error
import urllib.request
from datetime import date
from typing import Any

import pytest

from core.stats_client import FetchFailed, StatsClientConfig, StatsFetcher, fetch_stats_payload
from stats.query import StatsQuery

pytestmark = pytest.mark.unit

QUERY = StatsQuery(after=date(2024, 2, 14), before=date(2024, 3, 16), include_disabled=True)


class _Response(io.BytesIO):
    def __enter__(self) -> _Response:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _fake_urlopen(body: bytes, seen: list[urllib.request.Request]):
    def fake(request: urllib.request.Request, timeout: float) -> _Response:
        seen.append(request)
        return _Response(body)

    return fake


def test_fetch_posts_query_body(monkeypatch: pytest.MonkeyPatch) -> None:
    """The query is POSTed as JSON to the stats endpoint."""

    seen: list[urllib.request.Request] = []
    monkeypatch.setattr(urllib.request, "urlopen", _fake_urlopen(b'{"numberOfEnabledIndexers": 1}', seen))

    payload = fetch_stats_payload(QUERY, config=StatsClientConfig(base_url="http://hydra:5076/"))

    assert payload == {"numberOfEnabledIndexers": 1}
    request = seen[0]
    assert request.full_url == "http://hydra:5076/internalapi/stats"
    assert request.get_method() == "POST"
    assert json.loads(request.data) == {"after": "2024-02-14", "before": "2024-03-16", "includeDisabled": True}


def test_api_key_is_sent_as_query_parameter() -> None:
    """Configured API keys are appended to the endpoint URL."""

    config = StatsClientConfig(base_url="http://hydra:5076", api_key="abc 123")

    assert config.stats_url() == "http://hydra:5076/internalapi/stats?apikey=abc+123"


def test_http_error_becomes_fetch_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-2xx answers keep their status code."""

    def fake(request: urllib.request.Request, timeout: float) -> Any:
        raise urllib.error.HTTPError(request.full_url, 503, "Service Unavailable", {}, None)

    monkeypatch.setattr(urllib.request, "urlopen", fake)

    with pytest.raises(FetchFailed) as excinfo:
        fetch_stats_payload(QUERY, config=StatsClientConfig(base_url="http://hydra:5076"))

    assert excinfo.value.status == 503
    assert "503" in str(excinfo.value)


def test_unreachable_server_becomes_fetch_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    """Connection errors surface as FetchFailed without a status."""

    def fake(request: urllib.request.Request, timeout: float) -> Any:
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", fake)

    with pytest.raises(FetchFailed) as excinfo:
        fetch_stats_payload(QUERY, config=StatsClientConfig(base_url="http://hydra:5076"))

    assert excinfo.value.status is None


@pytest.mark.parametrize("body", [b"not json", b"[1, 2, 3]", b"\xff\xfe"])
def test_unusable_bodies_become_fetch_failed(monkeypatch: pytest.MonkeyPatch, body: bytes) -> None:
    """Invalid JSON, non-object JSON, and non-UTF-8 bodies are rejected."""

    monkeypatch.setattr(urllib.request, "urlopen", _fake_urlopen(body, []))

    with pytest.raises(FetchFailed):
        fetch_stats_payload(QUERY, config=StatsClientConfig(base_url="http://hydra:5076"))


@pytest.mark.asyncio
async def test_async_fetcher_runs_blocking_request(monkeypatch: pytest.MonkeyPatch) -> None:
    """StatsFetcher forwards the bounds and returns the decoded payload."""

    seen: list[urllib.request.Request] = []
    monkeypatch.setattr(urllib.request, "urlopen", _fake_urlopen(b'{"ok": true}', seen))

    fetcher = StatsFetcher(StatsClientConfig(base_url="http://hydra:5076"))
    payload = await fetcher.fetch(None, date(2024, 3, 16), False)

    assert payload == {"ok": True}
    assert json.loads(seen[0].data) == {"after": None, "before": "2024-03-16", "includeDisabled": False}


def test_malformed_status_line_becomes_fetch_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    """A garbage status line from the server is a FetchFailed, not an HTTPException."""

    def fake(request: urllib.request.Request, timeout: float) -> Any:
        raise http.client.BadStatusLine("GARBAGE\r\n")

    monkeypatch.setattr(urllib.request, "urlopen", fake)

    with pytest.raises(FetchFailed, match="malformed HTTP response") as excinfo:
        fetch_stats_payload(QUERY, config=StatsClientConfig(base_url="http://hydra:5076"))

    assert isinstance(excinfo.value.__cause__, http.client.BadStatusLine)
    assert excinfo.value.status is None


def test_truncated_body_becomes_fetch_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    """A body cut short while reading is reported as FetchFailed."""

    class _Truncated(_Response):
        def read(self, *args: Any) -> bytes:
            raise http.client.IncompleteRead(b'{"avg', 100)

    def fake(request: urllib.request.Request, timeout: float) -> _Response:
        return _Truncated(b"")

    monkeypatch.setattr(urllib.request, "urlopen", fake)

    with pytest.raises(FetchFailed):
        fetch_stats_payload(QUERY, config=StatsClientConfig(base_url="http://hydra:5076"))

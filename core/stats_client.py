"""HTTP client for the statistics server.

The statistics server aggregates searches, downloads and indexer accesses for a
date range and returns them as one JSON object. This module only transports
that object; parsing lives in `stats.payload`.
"""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from datetime import date
from typing import Any

from stats.query import StatsQuery

logger = logging.getLogger(__name__)

STATS_PATH = "/internalapi/stats"


class FetchFailed(Exception):
    """Raised when statistics cannot be retrieved (or are unusable)."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        """Initialize the error.

        Args:
            message: User-visible description of the failure.
            status: HTTP status code when the server answered with an error.
        """

        super().__init__(message)
        self.status = status


@dataclass(frozen=True, slots=True)
class StatsClientConfig:
    """Connection settings for the statistics server.

    Args:
        base_url: Server root, e.g. `http://127.0.0.1:5076`.
        timeout_seconds: Socket timeout for one request.
        api_key: Optional API key sent as the `apikey` query parameter.
    """

    base_url: str
    timeout_seconds: float = 30.0
    api_key: str | None = None

    @classmethod
    def from_settings(cls) -> StatsClientConfig:
        """Build the config from Django settings."""

        from django.conf import settings

        return cls(
            base_url=settings.HYDRA_STATS_URL,
            timeout_seconds=float(settings.HYDRA_STATS_TIMEOUT_SECONDS),
            api_key=settings.HYDRA_STATS_API_KEY or None,
        )

    def stats_url(self) -> str:
        url = self.base_url.rstrip("/") + STATS_PATH
        if self.api_key:
            url = f"{url}?{urllib.parse.urlencode({'apikey': self.api_key})}"
        return url


def fetch_stats_payload(query: StatsQuery, *, config: StatsClientConfig) -> dict[str, Any]:
    """Fetch the raw statistics payload for a query (blocking).

    Args:
        query: Date range and indexer population to request.
        config: Connection settings.

    Returns:
        The decoded JSON object.

    Raises:
        FetchFailed: On transport errors, non-2xx answers, or undecodable bodies.
    """

    request = urllib.request.Request(
        config.stats_url(),
        data=json.dumps(query.as_request_body()).encode("utf-8"),
        method="POST",
        headers={
            "User-Agent": "hydraStats (stats dashboard)",
            "Accept": "application/json",
            "Content-Type": "application/json",
        },
    )
    try:
        with urllib.request.urlopen(request, timeout=config.timeout_seconds) as response:
            body = response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        logger.warning("Statistics server answered HTTP %s for %s", exc.code, query)
        raise FetchFailed(f"Statistics server returned HTTP {exc.code}.", status=exc.code) from exc
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        logger.warning("Statistics server unreachable at %s: %s", config.base_url, exc)
        raise FetchFailed(f"Unable to reach the statistics server at {config.base_url}.") from exc
    except http.client.HTTPException as exc:
        logger.warning("Statistics server sent a malformed HTTP response: %r", exc)
        raise FetchFailed("Statistics server sent a malformed HTTP response.") from exc
    except UnicodeDecodeError as exc:
        raise FetchFailed("Statistics server returned a body that is not UTF-8.") from exc

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise FetchFailed("Statistics server returned invalid JSON.") from exc
    if not isinstance(payload, dict):
        raise FetchFailed("Statistics server returned JSON that is not an object.")
    return payload


class StatsFetcher:
    """Asynchronous facade over `fetch_stats_payload`.

    The blocking request runs in a worker thread so the event loop stays free
    while a fetch is outstanding.
    """

    def __init__(self, config: StatsClientConfig) -> None:
        self._config = config

    async def fetch(self, after: date | None, before: date | None, include_disabled: bool) -> dict[str, Any]:
        """Fetch the raw payload for the given bounds.

        Raises:
            FetchFailed: When the request fails.
        """

        query = StatsQuery(after=after, before=before, include_disabled=include_disabled)
        return await asyncio.to_thread(fetch_stats_payload, query, config=self._config)

"""Pytest fixtures shared across the statistics dashboard tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest

DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def build_raw_payload(
    *,
    indexers: int = 5,
    configured: int = 8,
    enabled: int = 5,
    user_shares: bool = True,
    download_user_shares: bool = True,
) -> dict[str, Any]:
    """Return a decoded statistics payload with `indexers` indexers per series."""

    names = [f"indexer{idx}" for idx in range(1, indexers + 1)]
    share = round(100.0 / indexers, 2) if indexers else 0.0
    payload: dict[str, Any] = {
        "avgResponseTimes": [{"indexer": name, "avgResponseTime": 1000 + idx} for idx, name in enumerate(names)],
        "avgIndexerSearchResultsShares": [
            {"indexerName": name, "totalShare": share, "uniqueShare": share / 2} for name in names
        ],
        "downloadsPerHourOfDay": [{"hour": hour, "count": hour % 5} for hour in range(24)],
        "downloadsPerDayOfWeek": [{"day": day, "count": idx} for idx, day in enumerate(DAYS)],
        "searchesPerHourOfDay": [{"hour": hour, "count": hour * 2} for hour in range(24)],
        "searchesPerDayOfWeek": [{"day": day, "count": idx * 3} for idx, day in enumerate(DAYS)],
        "downloadsPerAge": [{"age": age, "count": age % 7} for age in range(0, 3000, 100)],
        "successfulDownloadsPerIndexer": [{"indexerName": name, "percentage": 87.5} for name in names],
        "indexerDownloadShares": [{"indexerName": name, "share": share} for name in names],
        "searchSharesPerUserOrIp": (
            [{"userOrIp": "alice", "percentage": 60.0}, {"userOrIp": "127.0.0.1", "percentage": 40.0}]
            if user_shares
            else None
        ),
        "downloadSharesPerUserOrIp": (
            [{"userOrIp": "alice", "percentage": 100.0}] if user_shares and download_user_shares else None
        ),
        "userAgentShares": [{"userAgent": "Sonarr", "percentage": 75.0}, {"userAgent": "Radarr", "percentage": 25.0}],
        "numberOfConfiguredIndexers": configured,
        "numberOfEnabledIndexers": enabled,
    }
    return payload


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Return a factory for decoded statistics payloads."""

    return build_raw_payload


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, views, commands, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )

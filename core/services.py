"""Service-layer functions for the core app.

Services in `core` coordinate the statistics server client with the pure
payload parsing and chart-building modules for the synchronous web views.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from stats.payload import MalformedPayload, parse_stats_payload
from stats.query import StatsQuery

from core.charting.builder import build_chart_models, build_stats_tables
from core.charting.schema import ChartViewModel, StatsTables
from core.stats_client import FetchFailed, StatsClientConfig, fetch_stats_payload

logger = logging.getLogger(__name__)

FetchPayload = Callable[[StatsQuery], Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class DashboardContent:
    """Chart view-models and tables built for one query."""

    query: StatsQuery
    charts: tuple[ChartViewModel, ...]
    tables: StatsTables


def load_dashboard(query: StatsQuery, *, fetch: FetchPayload | None = None) -> DashboardContent:
    """Fetch the statistics for a query and build the dashboard content.

    Args:
        query: Date range and indexer population.
        fetch: Optional payload fetcher; defaults to the configured HTTP client.

    Returns:
        DashboardContent with every chart and table.

    Raises:
        FetchFailed: When the payload cannot be fetched or is malformed.
    """

    if fetch is None:
        config = StatsClientConfig.from_settings()

        def fetch(q: StatsQuery) -> Mapping[str, Any]:
            return fetch_stats_payload(q, config=config)

    raw = fetch(query)
    try:
        payload = parse_stats_payload(raw)
    except MalformedPayload as exc:
        logger.error("Statistics payload for %s is malformed: %s", query, exc)
        raise FetchFailed(str(exc)) from exc
    return DashboardContent(
        query=query,
        charts=build_chart_models(payload, include_disabled=query.include_disabled),
        tables=build_stats_tables(payload),
    )

"""Fetch statistics for a date range and print the resulting dashboard charts."""

from __future__ import annotations

import asyncio
import json
from datetime import date

from django.core.management.base import BaseCommand, CommandError

from stats.query import StatsQuery, default_stats_query

from core.charting.render import render_chart_models
from core.preferences import INCLUDE_DISABLED_KEY, MemoryPreferenceStore
from core.refresh import RefreshState, StatsDashboard, ViewModelCache
from core.stats_client import StatsClientConfig, StatsFetcher


class Command(BaseCommand):
    """Print a summary (or the full JSON) of the charts built for a range."""

    help = "Fetch statistics from the configured server and print the dashboard charts."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("--after", type=date.fromisoformat, default=None, help="Lower bound (YYYY-MM-DD).")
        parser.add_argument("--before", type=date.fromisoformat, default=None, help="Upper bound (YYYY-MM-DD).")
        parser.add_argument(
            "--unbounded",
            action="store_true",
            help="Do not apply the default 30-day range when no bound is given.",
        )
        parser.add_argument(
            "--include-disabled",
            action="store_true",
            help="Include statistics of disabled indexers.",
        )
        parser.add_argument("--json", action="store_true", help="Print the rendered chart payloads as JSON.")

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        after: date | None = options["after"]
        before: date | None = options["before"]
        include_disabled: bool = options["include_disabled"]
        if after is None and before is None and not options["unbounded"]:
            query = default_stats_query(today=date.today(), include_disabled=include_disabled)
        else:
            query = StatsQuery(after=after, before=before, include_disabled=include_disabled)
        if query.after is not None and query.before is not None and query.after > query.before:
            raise CommandError("--after must not be later than --before.")

        cache = asyncio.run(self._refresh(query))

        if options["json"]:
            self.stdout.write(json.dumps(render_chart_models(cache.charts), indent=2))
            return None

        for chart in cache.charts:
            points = sum(len(series.values) for series in chart.data)
            self.stdout.write(
                f"{chart.name}: kind={chart.kind} height={chart.layout.height} "
                f"series={len(chart.data)} points={points}"
            )
        self.stdout.write(self.style.SUCCESS(f"Built {len(cache.charts)} charts."))
        return None

    async def _refresh(self, query: StatsQuery) -> ViewModelCache:
        """Run one dashboard refresh for `query` and return the published cache."""

        dashboard = StatsDashboard(
            source=StatsFetcher(StatsClientConfig.from_settings()),
            preferences=MemoryPreferenceStore({INCLUDE_DISABLED_KEY: query.include_disabled}),
        )
        try:
            dashboard.request_refresh(query)
            await dashboard.wait_idle()
        finally:
            dashboard.close()

        if dashboard.last_outcome is not RefreshState.ready:
            raise CommandError(f"Failed to load statistics: {dashboard.cache.last_error}")
        return dashboard.cache

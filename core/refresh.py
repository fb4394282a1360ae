"""Refresh orchestration and the view-model cache for the statistics dashboard.

`StatsDashboard` ties the pieces together on one asyncio event loop:

- the RangeSelector requests refreshes,
- each refresh fetches the payload and builds chart view-models,
- the ViewModelCache holds the latest published result,
- a resize notification is scheduled once after every successful publish.

Every refresh carries a sequence number. Only the result of the most recently
issued refresh is published; an older fetch that resolves late is discarded.
Failures keep the previously published charts in place.

This is the embeddable controller API. The `show_stats_charts` management
command drives its refresh through it; the dashboard page mirrors the same
sequencing in its inline script.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any, Protocol

from stats.payload import MalformedPayload, parse_stats_payload
from stats.query import StatsQuery

from core.charting.builder import build_chart_models, build_stats_tables
from core.charting.schema import ChartViewModel, StatsTables
from core.preferences import PreferenceStore
from core.range_selector import RangeSelector
from core.stats_client import FetchFailed

logger = logging.getLogger(__name__)

DEFAULT_RESIZE_DELAY_SECONDS = 0.5
LOADING_MESSAGE = "Updating stats..."


class RefreshState(StrEnum):
    """Lifecycle of a dashboard refresh."""

    idle = "idle"
    fetching = "fetching"
    ready = "ready"
    fetch_failed = "fetch_failed"


class StatsSource(Protocol):
    """Asynchronous provider of raw statistics payloads."""

    async def fetch(self, after: date | None, before: date | None, include_disabled: bool) -> Mapping[str, Any]:
        """Return the raw payload or raise FetchFailed."""


class LoadingIndicator(Protocol):
    """Blocking "loading" overlay shown while a fetch is outstanding."""

    def start(self, message: str) -> None:
        """Show the indicator."""

    def stop(self) -> None:
        """Hide the indicator."""


class NullLoadingIndicator:
    """Loading indicator that displays nothing."""

    def start(self, message: str) -> None:
        return None

    def stop(self) -> None:
        return None


@dataclass
class ViewModelCache:
    """Latest published dashboard content.

    Attributes:
        charts: Chart view-models of the latest successful refresh.
        tables: Tabular statistics of the latest successful refresh.
        query: Query that produced `charts`.
        last_error: Message of the most recent failure, cleared on success.
        version: Incremented on every publish.
    """

    charts: tuple[ChartViewModel, ...] = ()
    tables: StatsTables | None = None
    query: StatsQuery | None = None
    last_error: str | None = None
    version: int = 0

    def publish(self, *, charts: tuple[ChartViewModel, ...], tables: StatsTables, query: StatsQuery) -> None:
        """Replace the cached content with a complete new set."""

        self.charts = charts
        self.tables = tables
        self.query = query
        self.last_error = None
        self.version += 1

    def chart(self, name: str) -> ChartViewModel | None:
        """Return the cached chart with the given name, if present."""

        for chart in self.charts:
            if chart.name == name:
                return chart
        return None


class StatsDashboard:
    """Statistics dashboard controller.

    Args:
        source: Provider of raw statistics payloads.
        preferences: Store that persists the include-disabled flag.
        loading: Loading indicator wrapped around every outstanding fetch.
        on_resize: Called once, `resize_delay` seconds after each publish.
        on_state_change: Optional observer of RefreshState transitions.
        resize_delay: Delay before the resize notification, in seconds.
        today: Reference date for the default range.
    """

    def __init__(
        self,
        *,
        source: StatsSource,
        preferences: PreferenceStore,
        loading: LoadingIndicator | None = None,
        on_resize: Callable[[], None] | None = None,
        on_state_change: Callable[[RefreshState], None] | None = None,
        resize_delay: float = DEFAULT_RESIZE_DELAY_SECONDS,
        today: date | None = None,
    ) -> None:
        self.cache = ViewModelCache()
        self.state = RefreshState.idle
        self.last_outcome: RefreshState | None = None
        self._source = source
        self._loading = loading or NullLoadingIndicator()
        self._on_resize = on_resize
        self._on_state_change = on_state_change
        self._resize_delay = resize_delay
        self._issued = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._resize_handles: set[asyncio.TimerHandle] = set()
        self._closed = False
        self.selector = RangeSelector(on_refresh=self.request_refresh, preferences=preferences, today=today)

    def start(self) -> None:
        """Issue the initial refresh."""

        self.selector.start()

    def request_refresh(self, query: StatsQuery) -> asyncio.Task[None]:
        """Issue a refresh for `query` on the running event loop.

        Returns:
            The task resolving the refresh.

        Raises:
            RuntimeError: When called after `close()` or outside a running loop.
        """

        if self._closed:
            raise RuntimeError("StatsDashboard is closed.")
        loop = asyncio.get_running_loop()
        self._issued += 1
        sequence = self._issued
        if self.state is not RefreshState.fetching:
            self._loading.start(LOADING_MESSAGE)
            self._transition(RefreshState.fetching)
        logger.debug("Stats refresh #%s issued for %s", sequence, query)

        task = loop.create_task(self._run(sequence, query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every issued refresh has resolved."""

        while pending := [task for task in self._tasks if not task.done()]:
            await asyncio.gather(*pending, return_exceptions=True)

    def close(self) -> None:
        """Cancel outstanding refreshes and pending resize notifications."""

        self._closed = True
        for handle in self._resize_handles:
            handle.cancel()
        self._resize_handles.clear()
        for task in tuple(self._tasks):
            task.cancel()

    async def _run(self, sequence: int, query: StatsQuery) -> None:
        try:
            raw = await self._source.fetch(query.after, query.before, query.include_disabled)
        except asyncio.CancelledError:
            if self._is_latest(sequence):
                self._settle()
            raise
        except FetchFailed as exc:
            logger.warning("Stats refresh #%s failed: %s", sequence, exc)
            self._fail(sequence, exc)
            return
        except Exception as exc:
            logger.warning("Stats refresh #%s failed unexpectedly: %r", sequence, exc)
            self._fail(sequence, FetchFailed(f"Unable to load statistics: {exc}"))
            return

        try:
            payload = parse_stats_payload(raw)
        except MalformedPayload as exc:
            logger.error("Stats refresh #%s returned a malformed payload: %s", sequence, exc)
            self._fail(sequence, FetchFailed(str(exc)))
            return
        charts = build_chart_models(payload, include_disabled=query.include_disabled)
        tables = build_stats_tables(payload)

        if not self._is_latest(sequence):
            return
        self.cache.publish(charts=charts, tables=tables, query=query)
        self.last_outcome = RefreshState.ready
        self._transition(RefreshState.ready)
        self._schedule_resize()
        self._settle()

    def _fail(self, sequence: int, error: FetchFailed) -> None:
        if not self._is_latest(sequence):
            return
        self.cache.last_error = str(error)
        self.last_outcome = RefreshState.fetch_failed
        self._transition(RefreshState.fetch_failed)
        self._settle()

    def _is_latest(self, sequence: int) -> bool:
        if sequence == self._issued:
            return True
        logger.debug("Discarding stats refresh #%s (latest is #%s)", sequence, self._issued)
        return False

    def _settle(self) -> None:
        self._loading.stop()
        self._transition(RefreshState.idle)

    def _transition(self, state: RefreshState) -> None:
        self.state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    def _schedule_resize(self) -> None:
        if self._on_resize is None:
            return
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def fire() -> None:
            self._resize_handles.discard(handle)
            if self._on_resize is not None:
                self._on_resize()

        handle = loop.call_later(self._resize_delay, fire)
        self._resize_handles.add(handle)

"""Date-range and indexer-population selection for the statistics dashboard.

A RangeSelector owns the current `StatsQuery`. Assigning a new bound or flag
requests exactly one refresh; assigning the value that is already set does
nothing. Construction never refreshes: the owner calls `start()` once for the
initial load.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from typing import Any

from stats.query import StatsQuery, default_stats_query

from core.preferences import PreferenceStore, load_include_disabled, save_include_disabled

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[StatsQuery], Any]

_UNSET: Any = object()


class RangeSelector:
    """Mutable `after` / `before` / `include_disabled` selection.

    Args:
        on_refresh: Called with the current query whenever a refresh is due.
        preferences: Store that persists the include-disabled flag.
        today: Reference date for the default range (defaults to today).
    """

    def __init__(
        self,
        *,
        on_refresh: RefreshCallback,
        preferences: PreferenceStore,
        today: date | None = None,
    ) -> None:
        self._on_refresh = on_refresh
        self._preferences = preferences
        self._query = default_stats_query(
            today=today or date.today(),
            include_disabled=load_include_disabled(preferences),
        )

    @property
    def query(self) -> StatsQuery:
        """The current query snapshot."""

        return self._query

    @property
    def after(self) -> date | None:
        return self._query.after

    @after.setter
    def after(self, value: date | None) -> None:
        self.update(after=value)

    @property
    def before(self) -> date | None:
        return self._query.before

    @before.setter
    def before(self, value: date | None) -> None:
        self.update(before=value)

    @property
    def include_disabled(self) -> bool:
        return self._query.include_disabled

    @include_disabled.setter
    def include_disabled(self, value: bool) -> None:
        self.update(include_disabled=value)

    def update(
        self,
        *,
        after: date | None = _UNSET,
        before: date | None = _UNSET,
        include_disabled: bool = _UNSET,
    ) -> bool:
        """Apply one or more field changes and refresh once if anything changed.

        Returns:
            True when the query changed and a refresh was requested.
        """

        changes: dict[str, Any] = {}
        if after is not _UNSET and after != self._query.after:
            changes["after"] = after
        if before is not _UNSET and before != self._query.before:
            changes["before"] = before
        if include_disabled is not _UNSET and bool(include_disabled) != self._query.include_disabled:
            changes["include_disabled"] = bool(include_disabled)
        if not changes:
            return False

        self._query = replace(self._query, **changes)
        if "include_disabled" in changes:
            save_include_disabled(self._preferences, include_disabled=self._query.include_disabled)
        logger.debug("Stats range changed: %s", ", ".join(sorted(changes)))
        self._refresh()
        return True

    def start(self) -> None:
        """Request the initial refresh."""

        self._refresh()

    def confirm(self) -> None:
        """Request a refresh for an explicit confirmation (e.g. Enter in a date input)."""

        self._refresh()

    def _refresh(self) -> None:
        self._on_refresh(self._query)

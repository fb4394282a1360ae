"""Date-range query sent to the statistics server."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Final

DEFAULT_LOOKBACK_DAYS: Final[int] = 30
DEFAULT_LOOKAHEAD_DAYS: Final[int] = 1


@dataclass(frozen=True, slots=True)
class StatsQuery:
    """Bounds and indexer population for one statistics request.

    Args:
        after: Inclusive lower bound; None leaves the range open on that side.
        before: Upper bound; None leaves the range open on that side.
        include_disabled: Whether disabled indexers are included.
    """

    after: date | None
    before: date | None
    include_disabled: bool = False

    def as_request_body(self) -> dict[str, Any]:
        """Return the JSON body understood by the statistics endpoint."""

        return {
            "after": self.after.isoformat() if self.after is not None else None,
            "before": self.before.isoformat() if self.before is not None else None,
            "includeDisabled": self.include_disabled,
        }


def default_stats_query(*, today: date, include_disabled: bool = False) -> StatsQuery:
    """Return the initial query: the last 30 days through tomorrow."""

    return StatsQuery(
        after=today - timedelta(days=DEFAULT_LOOKBACK_DAYS),
        before=today + timedelta(days=DEFAULT_LOOKAHEAD_DAYS),
        include_disabled=include_disabled,
    )

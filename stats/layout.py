"""Layout rules derived from dataset cardinality.

Chart heights and label rotations depend on how many categories a chart has to
show. These functions are the single source of those rules.
"""

from __future__ import annotations

from typing import Final

DEFAULT_CHART_HEIGHT: Final[int] = 350
SHARES_PIE_HEIGHT: Final[int] = 300

INDEXER_ROW_HEIGHT: Final[int] = 30
INDEXER_SHARE_ROW_HEIGHT: Final[int] = 40
INDEXER_SHARE_MAX_HEIGHT: Final[int] = 900

RESULTS_SHARE_ROTATION: Final[int] = 30
RESULTS_SHARE_DENSE_ROTATION: Final[int] = 70
RESULTS_SHARE_DENSE_THRESHOLD: Final[int] = 30


def clamp(value: int, *, lower: int, upper: int) -> int:
    """Clamp `value` into the inclusive range [lower, upper]."""

    return min(max(value, lower), upper)


def response_time_chart_height(indexer_count: int) -> int:
    """Return the height of the response-time chart (one row per indexer).

    Args:
        indexer_count: Number of indexers with a response time.

    Returns:
        `max(30 * indexer_count, 350)`.
    """

    return max(INDEXER_ROW_HEIGHT * indexer_count, DEFAULT_CHART_HEIGHT)


def results_share_rotation(indexer_count: int) -> int:
    """Return the x-axis label rotation for the results-share chart.

    Labels are rotated further once there are more than 30 indexers so that
    neighbouring names do not overlap.
    """

    if indexer_count > RESULTS_SHARE_DENSE_THRESHOLD:
        return RESULTS_SHARE_DENSE_ROTATION
    return RESULTS_SHARE_ROTATION


def indexer_share_pie_height(
    *,
    configured_indexers: int,
    enabled_indexers: int,
    include_disabled: bool,
) -> int:
    """Return the height of the indexer download-share pie.

    Args:
        configured_indexers: Number of configured indexers.
        enabled_indexers: Number of enabled indexers.
        include_disabled: Whether disabled indexers are included in the stats.

    Returns:
        `clamp(40 * N, 350, 900)` where N is the population the pie depicts.
    """

    population = configured_indexers if include_disabled else enabled_indexers
    return clamp(
        INDEXER_SHARE_ROW_HEIGHT * population,
        lower=DEFAULT_CHART_HEIGHT,
        upper=INDEXER_SHARE_MAX_HEIGHT,
    )

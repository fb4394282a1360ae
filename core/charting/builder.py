"""Build statistics chart view-models from a parsed payload.

`build_chart_models` is a pure function: the same payload and
`include_disabled` flag always produce structurally identical view-models. Each
chart kind has one constructor (`horizontal_bar_chart`, `discrete_bar_chart`,
`multi_bar_chart`, `share_pie_chart`); the dashboard composition below only
decides which constructor to call and with which overrides.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Final

from stats.formats import FormatSpec
from stats.layout import (
    DEFAULT_CHART_HEIGHT,
    SHARES_PIE_HEIGHT,
    indexer_share_pie_height,
    response_time_chart_height,
    results_share_rotation,
)
from stats.payload import CountBucket, RawStatsPayload, UserOrIpShares, parse_stats_payload

from .schema import (
    AxisConfig,
    ChartViewModel,
    LayoutParams,
    LegendConfig,
    Margin,
    PieConfig,
    SeriesData,
    SeriesPoint,
    StatsTables,
    TooltipConfig,
)

BAR_MARGIN: Final[Margin] = Margin(top=20, right=20, bottom=100, left=50)
HORIZONTAL_BAR_LEFT_MARGIN: Final[int] = 100
MULTI_BAR_MARGIN: Final[Margin] = Margin(top=20, right=20, bottom=100, left=45)
PIE_LEGEND_MARGIN: Final[Margin] = Margin(top=5, right=35, bottom=5, left=0)


def build_chart_models(
    payload: RawStatsPayload | Mapping[str, Any],
    *,
    include_disabled: bool,
) -> tuple[ChartViewModel, ...]:
    """Build every dashboard chart for a statistics payload.

    Args:
        payload: Parsed payload, or the decoded JSON mapping (parsed first).
        include_disabled: Whether the stats were requested including disabled
            indexers. Decides which indexer population sizes the share pie.

    Returns:
        Chart view-models in dashboard order. The per-user/IP pies are omitted
        when the server has those shares disabled.

    Raises:
        MalformedPayload: When a raw mapping lacks a required series.
    """

    if not isinstance(payload, RawStatsPayload):
        payload = parse_stats_payload(payload)

    indexer_count = len(payload.avg_response_times)
    response_times_height = response_time_chart_height(indexer_count)
    charts: list[ChartViewModel] = [
        horizontal_bar_chart(
            name="avg_response_times",
            title="Average response times",
            points=((r.indexer, r.avg_response_time) for r in payload.avg_response_times),
            x_label="",
            y_label="Response time",
            height=response_times_height,
        ),
        multi_bar_chart(
            name="results_shares",
            title="Indexer result shares",
            series=(
                ("Results", [(s.indexer_name, s.total_share) for s in payload.avg_indexer_search_results_shares]),
                (
                    "Unique results",
                    [(s.indexer_name, s.unique_share) for s in payload.avg_indexer_search_results_shares],
                ),
            ),
            y_label="Share (%)",
            height=response_times_height,
            rotate_labels=results_share_rotation(indexer_count),
        ),
        discrete_bar_chart(
            name="downloads_per_hour_of_day",
            title="Downloads per hour of day",
            points=_bucket_points(payload.downloads_per_hour_of_day),
            x_label="Hour of day",
            y_label="Downloads",
        ),
        discrete_bar_chart(
            name="downloads_per_day_of_week",
            title="Downloads per day of week",
            points=_bucket_points(payload.downloads_per_day_of_week),
            x_label="Day of week",
            y_label="Downloads",
        ),
        discrete_bar_chart(
            name="searches_per_hour_of_day",
            title="Searches per hour of day",
            points=_bucket_points(payload.searches_per_hour_of_day),
            x_label="Hour of day",
            y_label="Searches",
        ),
        discrete_bar_chart(
            name="searches_per_day_of_week",
            title="Searches per day of week",
            points=_bucket_points(payload.searches_per_day_of_week),
            x_label="Day of week",
            y_label="Searches",
        ),
        discrete_bar_chart(
            name="downloads_per_age",
            title="Downloads per age",
            points=_bucket_points(payload.downloads_per_age),
            x_label="Downloads per age",
            y_label="Downloads",
            rotate_labels=90,
            show_values=False,
        ),
        discrete_bar_chart(
            name="successful_downloads_per_indexer",
            title="Successful downloads per indexer",
            points=((p.indexer_name, p.percentage) for p in payload.successful_downloads_per_indexer),
            x_label="Indexer",
            y_label="% successful",
            rotate_labels=90,
            show_values=True,
            number_format=FormatSpec.integer,
        ),
        share_pie_chart(
            name="indexer_download_shares",
            title="Indexer download shares",
            points=((s.indexer_name, s.share) for s in payload.indexer_download_shares),
            height=indexer_share_pie_height(
                configured_indexers=payload.number_of_configured_indexers,
                enabled_indexers=payload.number_of_enabled_indexers,
                include_disabled=include_disabled,
            ),
        ),
    ]

    if isinstance(payload.user_or_ip_shares, UserOrIpShares):
        shares = payload.user_or_ip_shares
        charts.append(
            share_pie_chart(
                name="download_shares_per_user_or_ip",
                title="Download shares per user or IP",
                points=((s.user_or_ip, s.percentage) for s in shares.download),
                height=SHARES_PIE_HEIGHT,
                labels_outside=True,
            )
        )
        charts.append(
            share_pie_chart(
                name="search_shares_per_user_or_ip",
                title="Search shares per user or IP",
                points=((s.user_or_ip, s.percentage) for s in shares.search),
                height=SHARES_PIE_HEIGHT,
                labels_outside=True,
            )
        )

    charts.append(
        share_pie_chart(
            name="user_agent_shares",
            title="User agent shares",
            points=((s.user_agent, s.percentage) for s in payload.user_agent_shares),
            height=SHARES_PIE_HEIGHT,
            labels_outside=True,
        )
    )
    return tuple(charts)


def build_stats_tables(payload: RawStatsPayload) -> StatsTables:
    """Return the tabular statistics that accompany the charts."""

    return StatsTables(
        indexer_api_access=payload.indexer_api_access_stats,
        download_age=payload.downloads_per_age_stats,
    )


def horizontal_bar_chart(
    *,
    name: str,
    title: str,
    points: Iterable[tuple[str | int, float]],
    x_label: str,
    y_label: str,
    height: int = DEFAULT_CHART_HEIGHT,
) -> ChartViewModel:
    """Build a horizontal bar chart with one bar per category.

    The left margin is widened so long category (indexer) names fit, and the
    value-axis ticks are tilted by -30 degrees.
    """

    return ChartViewModel(
        name=name,
        title=title,
        kind="bar_horizontal",
        layout=LayoutParams(
            height=height,
            margin=Margin(
                top=BAR_MARGIN.top,
                right=BAR_MARGIN.right,
                bottom=BAR_MARGIN.bottom,
                left=HORIZONTAL_BAR_LEFT_MARGIN,
            ),
            x_axis=AxisConfig(label=x_label, rotate_labels=30),
            y_axis=AxisConfig(label=y_label, rotate_labels=-30, label_distance=-10),
            tooltip=TooltipConfig(enabled=False),
            legend=LegendConfig(show=False),
            show_values=True,
        ),
        data=(_series(y_label, points),),
    )


def discrete_bar_chart(
    *,
    name: str,
    title: str,
    points: Iterable[tuple[str | int, float]],
    x_label: str,
    y_label: str,
    height: int = DEFAULT_CHART_HEIGHT,
    rotate_labels: int = 0,
    show_values: bool = True,
    number_format: FormatSpec = FormatSpec.identity,
) -> ChartViewModel:
    """Build a discrete (vertical, single series) bar chart.

    Args:
        name: Stable chart identifier.
        title: Chart heading.
        points: `(category, value)` pairs in display order.
        x_label: Category axis title.
        y_label: Value axis title.
        height: Chart height in pixels.
        rotate_labels: Category tick rotation in degrees.
        show_values: Whether each bar carries an inline value label.
        number_format: Formatter for value-axis ticks and bar value labels.

    Returns:
        ChartViewModel of kind `bar_discrete`.
    """

    return ChartViewModel(
        name=name,
        title=title,
        kind="bar_discrete",
        layout=LayoutParams(
            height=height,
            margin=BAR_MARGIN,
            x_axis=AxisConfig(label=x_label, rotate_labels=rotate_labels),
            y_axis=AxisConfig(label=y_label, tick_format=number_format, label_distance=-10),
            tooltip=TooltipConfig(enabled=False),
            legend=LegendConfig(show=False),
            show_values=show_values,
            value_format=number_format,
        ),
        data=(_series(y_label, points),),
    )


def multi_bar_chart(
    *,
    name: str,
    title: str,
    series: Iterable[tuple[str, Iterable[tuple[str | int, float]]]],
    y_label: str,
    height: int = DEFAULT_CHART_HEIGHT,
    rotate_labels: int = 30,
) -> ChartViewModel:
    """Build a grouped bar chart with one bar group per category.

    Tooltips show percentages because the only multi-bar chart on the dashboard
    compares share values.
    """

    return ChartViewModel(
        name=name,
        title=title,
        kind="bar_multi",
        layout=LayoutParams(
            height=height,
            margin=MULTI_BAR_MARGIN,
            x_axis=AxisConfig(label="", rotate_labels=rotate_labels, label_distance=30),
            y_axis=AxisConfig(label=y_label, label_distance=-20),
            tooltip=TooltipConfig(enabled=True, value_format=FormatSpec.percent_2dp),
            legend=LegendConfig(show=True),
            show_values=True,
            stacked=False,
            duration=500,
        ),
        data=tuple(_series(key, points) for key, points in series),
    )


def share_pie_chart(
    *,
    name: str,
    title: str,
    points: Iterable[tuple[str | int, float]],
    height: int,
    labels_outside: bool = False,
) -> ChartViewModel:
    """Build a donut chart of percentage shares.

    Slices under 3% get no inline label; tooltip values read as `12.34%`.
    """

    return ChartViewModel(
        name=name,
        title=title,
        kind="pie",
        layout=LayoutParams(
            height=height,
            margin=None,
            x_axis=None,
            y_axis=None,
            tooltip=TooltipConfig(enabled=True, value_format=FormatSpec.percent_2dp),
            legend=LegendConfig(show=True, margin=PIE_LEGEND_MARGIN),
            show_values=True,
            duration=500,
            pie=PieConfig(donut_labels_outside=labels_outside),
        ),
        data=(_series(title, points),),
    )


def _series(key: str, points: Iterable[tuple[str | int, float]]) -> SeriesData:
    return SeriesData(key=key, values=tuple(SeriesPoint(x=x, y=y) for x, y in points))


def _bucket_points(buckets: tuple[CountBucket, ...]) -> list[tuple[str | int, float]]:
    return [(bucket.key, bucket.count) for bucket in buckets]

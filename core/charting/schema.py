"""Schema types for statistics chart view-models.

Every chart on the statistics dashboard is described by a `ChartViewModel`: a
chart kind, the series to draw, and fully-resolved layout parameters. View
models are plain frozen dataclasses; formatting is expressed as `FormatSpec`
values and resolved by the rendering layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from stats.formats import FormatSpec
from stats.payload import DownloadAgeSummary, IndexerApiAccessRow

ChartKind = Literal["bar_horizontal", "bar_discrete", "bar_multi", "pie"]


@dataclass(frozen=True, slots=True)
class Margin:
    """Outer chart margins in pixels."""

    top: int
    right: int
    bottom: int
    left: int


@dataclass(frozen=True, slots=True)
class AxisConfig:
    """Configuration for one chart axis.

    Args:
        label: Axis title ("" for none).
        rotate_labels: Tick label rotation in degrees.
        tick_format: Formatter applied to tick labels.
        label_distance: Offset of the axis title from the axis.
        show_max_min: Whether the extreme ticks are always drawn.
    """

    label: str
    rotate_labels: int = 0
    tick_format: FormatSpec = FormatSpec.identity
    label_distance: int = 0
    show_max_min: bool = False


@dataclass(frozen=True, slots=True)
class TooltipConfig:
    """Tooltip behavior; `value_format` applies to the hovered value."""

    enabled: bool
    value_format: FormatSpec = FormatSpec.identity


@dataclass(frozen=True, slots=True)
class LegendConfig:
    """Legend visibility and placement."""

    show: bool
    margin: Margin | None = None


@dataclass(frozen=True, slots=True)
class PieConfig:
    """Donut parameters shared by all share charts.

    Args:
        donut_ratio: Radius of the hollow center relative to the outer radius.
        label_threshold: Slices below this fraction get no inline label.
        label_sunbeam_layout: Whether slice labels are rotated radially.
        donut_labels_outside: Whether labels are drawn outside the ring.
    """

    donut_ratio: float = 0.35
    label_threshold: float = 0.03
    label_sunbeam_layout: bool = True
    donut_labels_outside: bool = False


@dataclass(frozen=True, slots=True)
class LayoutParams:
    """Resolved layout for a chart.

    Bar charts populate the axes; pies populate `pie`. Heights are computed
    from dataset cardinality by `stats.layout`.
    """

    height: int
    margin: Margin | None
    x_axis: AxisConfig | None
    y_axis: AxisConfig | None
    tooltip: TooltipConfig
    legend: LegendConfig
    show_values: bool = False
    value_format: FormatSpec = FormatSpec.identity
    stacked: bool = False
    duration: int = 100
    pie: PieConfig | None = None


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    """A single data point: a category on x and a numeric value on y."""

    x: str | int
    y: float


@dataclass(frozen=True, slots=True)
class SeriesData:
    """A named series of points."""

    key: str
    values: tuple[SeriesPoint, ...]


@dataclass(frozen=True, slots=True)
class ChartViewModel:
    """Render-ready description of one dashboard chart.

    Args:
        name: Stable identifier of the chart on the dashboard.
        title: Heading displayed above the chart.
        kind: Visual chart kind.
        layout: Resolved layout parameters.
        data: One or more series (pies carry exactly one).
    """

    name: str
    title: str
    kind: ChartKind
    layout: LayoutParams
    data: tuple[SeriesData, ...]


@dataclass(frozen=True, slots=True)
class StatsTables:
    """Tabular statistics shown next to the charts, when the server sends them."""

    indexer_api_access: tuple[IndexerApiAccessRow, ...] | None
    download_age: DownloadAgeSummary | None

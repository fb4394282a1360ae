"""Rendering boundary: chart view-models to nvd3 chart options.

The browser paints charts with angular-nvd3, which expects an
`{"options": {"chart": {...}}, "data": [...]}` object per chart. Formatter
closures cannot cross the JSON boundary, so every `FormatSpec` is resolved
here: points carry pre-formatted value and tooltip labels, and axes carry the
spec name for ticks that the chart library computes itself.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Final, TypedDict

from stats.formats import FormatSpec, resolve_formatter

from .schema import AxisConfig, ChartKind, ChartViewModel, LayoutParams, Margin, SeriesData, StatsTables

NVD3_CHART_TYPES: Final[dict[ChartKind, str]] = {
    "bar_horizontal": "multiBarHorizontalChart",
    "bar_discrete": "discreteBarChart",
    "bar_multi": "multiBarChart",
    "pie": "pieChart",
}


class RenderedPoint(TypedDict):
    """A data point with labels already formatted for display."""

    x: str | int
    y: float
    label: str
    valueLabel: str
    tooltip: str


class RenderedSeries(TypedDict):
    """A bar chart series in nvd3 shape."""

    key: str
    values: list[RenderedPoint]


class RenderedChart(TypedDict):
    """The full angular-nvd3 payload for one chart panel."""

    name: str
    title: str
    kind: ChartKind
    options: dict[str, Any]
    data: list[RenderedSeries] | list[RenderedPoint]


def render_chart_models(models: tuple[ChartViewModel, ...]) -> list[RenderedChart]:
    """Render view-models into JSON-serializable chart payloads, preserving order."""

    return [render_chart_model(model) for model in models]


def render_chart_model(model: ChartViewModel) -> RenderedChart:
    """Render a single view-model.

    Args:
        model: ChartViewModel to render.

    Returns:
        RenderedChart whose `options.chart` mirrors the nvd3 option names.
        Pie charts carry a flat point list as `data`; bar charts carry series.
    """

    layout = model.layout
    chart: dict[str, Any] = {
        "type": NVD3_CHART_TYPES[model.kind],
        "height": layout.height,
        "showValues": layout.show_values,
        "valueFormat": str(layout.value_format),
        "showLegend": layout.legend.show,
        "duration": layout.duration,
        "tooltip": {
            "enabled": layout.tooltip.enabled,
            "valueFormat": str(layout.tooltip.value_format),
        },
    }
    if layout.margin is not None:
        chart["margin"] = _margin(layout.margin)
    if layout.legend.margin is not None:
        chart["legend"] = {"margin": _margin(layout.legend.margin)}
    if layout.x_axis is not None:
        chart["xAxis"] = _axis(layout.x_axis)
    if layout.y_axis is not None:
        chart["yAxis"] = _axis(layout.y_axis)

    if model.kind == "pie":
        pie = layout.pie
        if pie is None:
            raise ValueError(f"Chart {model.name!r} is a pie without pie parameters.")
        chart.update(
            {
                "showLabels": True,
                "donut": True,
                "donutRatio": pie.donut_ratio,
                "labelThreshold": pie.label_threshold,
                "labelSunbeamLayout": pie.label_sunbeam_layout,
                "donutLabelsOutside": pie.donut_labels_outside,
            }
        )
        points = [point for series in model.data for point in _points(series, layout)]
        return {"name": model.name, "title": model.title, "kind": model.kind, "options": {"chart": chart}, "data": points}

    chart["showControls"] = False
    if model.kind == "bar_multi":
        chart.update({"stacked": layout.stacked, "clipEdge": True, "reduceXTicks": False})
    series = [{"key": s.key, "values": _points(s, layout)} for s in model.data]
    return {
        "name": model.name,
        "title": model.title,
        "kind": model.kind,
        "options": {"chart": chart},
        "data": series,  # type: ignore[typeddict-item]
    }


def render_stats_tables(tables: StatsTables) -> dict[str, Any]:
    """Render the tabular statistics into a JSON-serializable dictionary."""

    return {
        "indexerApiAccess": (
            [asdict(row) for row in tables.indexer_api_access] if tables.indexer_api_access is not None else None
        ),
        "downloadAge": asdict(tables.download_age) if tables.download_age is not None else None,
    }


def _points(series: SeriesData, layout: LayoutParams) -> list[RenderedPoint]:
    """Resolve formatters for each point of a series."""

    label_format = resolve_formatter(layout.x_axis.tick_format if layout.x_axis is not None else FormatSpec.identity)
    value_format = resolve_formatter(layout.value_format)
    tooltip_format = resolve_formatter(layout.tooltip.value_format)
    return [
        {
            "x": point.x,
            "y": point.y,
            "label": label_format(point.x),
            "valueLabel": value_format(point.y),
            "tooltip": tooltip_format(point.y),
        }
        for point in series.values
    ]


def _axis(axis: AxisConfig) -> dict[str, Any]:
    return {
        "axisLabel": axis.label,
        "rotateLabels": axis.rotate_labels,
        "tickFormat": str(axis.tick_format),
        "axisLabelDistance": axis.label_distance,
        "showMaxMin": axis.show_max_min,
    }


def _margin(margin: Margin) -> dict[str, int]:
    return {"top": margin.top, "right": margin.right, "bottom": margin.bottom, "left": margin.left}

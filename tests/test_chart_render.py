"""Unit tests for rendering chart view-models into nvd3 payloads."""

from __future__ import annotations

import json

import pytest

from core.charting.builder import build_chart_models, build_stats_tables, share_pie_chart
from core.charting.render import render_chart_model, render_chart_models, render_stats_tables
from core.charting.schema import LayoutParams
from stats.payload import parse_stats_payload

pytestmark = pytest.mark.unit


def _rendered(make_payload, **kwargs) -> dict[str, dict]:
    charts = build_chart_models(make_payload(**kwargs), include_disabled=False)
    return {chart["name"]: chart for chart in render_chart_models(charts)}


def test_rendered_charts_are_json_serializable(make_payload) -> None:
    """The rendered list survives a JSON dump and keeps dashboard order."""

    charts = build_chart_models(make_payload(), include_disabled=False)
    rendered = render_chart_models(charts)

    assert [c["name"] for c in rendered] == [c.name for c in charts]
    json.dumps(rendered)


def test_bar_chart_options_use_nvd3_names(make_payload) -> None:
    """Bar charts map to nvd3 chart types and option keys."""

    rendered = _rendered(make_payload)
    response_times = rendered["avg_response_times"]["options"]["chart"]

    assert response_times["type"] == "multiBarHorizontalChart"
    assert response_times["height"] == 350
    assert response_times["margin"]["left"] == 100
    assert response_times["yAxis"]["rotateLabels"] == -30
    assert response_times["showControls"] is False

    results = rendered["results_shares"]["options"]["chart"]
    assert results["type"] == "multiBarChart"
    assert results["stacked"] is False
    assert results["reduceXTicks"] is False
    assert results["tooltip"] == {"enabled": True, "valueFormat": "percent_2dp"}


def test_points_carry_formatted_labels(make_payload) -> None:
    """Value and tooltip labels are formatted before crossing to the browser."""

    rendered = _rendered(make_payload)
    success = rendered["successful_downloads_per_indexer"]
    point = success["data"][0]["values"][0]

    assert success["options"]["chart"]["yAxis"]["tickFormat"] == "integer"
    assert point["x"] == "indexer1"
    assert point["y"] == 87.5
    assert point["valueLabel"] == "88"

    results_point = rendered["results_shares"]["data"][0]["values"][0]
    assert results_point["tooltip"] == "20.00%"


def test_integral_counts_render_without_decimals(make_payload) -> None:
    """Counts decoded as floats still read as whole numbers."""

    raw = make_payload()
    raw["downloadsPerHourOfDay"] = [{"hour": 0, "count": 12.0}, {"hour": 1, "count": 1500}]
    rendered = {c["name"]: c for c in render_chart_models(build_chart_models(raw, include_disabled=False))}

    values = rendered["downloads_per_hour_of_day"]["data"][0]["values"]
    assert [v["valueLabel"] for v in values] == ["12", "1500"]
    assert [v["label"] for v in values] == ["0", "1"]


def test_pie_renders_flat_points_with_donut_options(make_payload) -> None:
    """Pies carry a flat point list and the donut parameters."""

    rendered = _rendered(make_payload)
    pie = rendered["user_agent_shares"]
    options = pie["options"]["chart"]

    assert options["type"] == "pieChart"
    assert options["donut"] is True
    assert options["donutRatio"] == 0.35
    assert options["labelThreshold"] == 0.03
    assert options["labelSunbeamLayout"] is True
    assert options["donutLabelsOutside"] is True
    assert options["legend"]["margin"] == {"top": 5, "right": 35, "bottom": 5, "left": 0}
    assert "xAxis" not in options
    assert [p["x"] for p in pie["data"]] == ["Sonarr", "Radarr"]
    assert pie["data"][0]["tooltip"] == "75.00%"


def test_pie_without_pie_parameters_is_rejected() -> None:
    """A pie view-model stripped of its donut parameters cannot be rendered."""

    model = share_pie_chart(name="broken", title="Broken", points=[("a", 1.0)], height=300)
    layout = model.layout
    broken = type(model)(
        name=model.name,
        title=model.title,
        kind=model.kind,
        layout=LayoutParams(
            height=layout.height,
            margin=layout.margin,
            x_axis=layout.x_axis,
            y_axis=layout.y_axis,
            tooltip=layout.tooltip,
            legend=layout.legend,
        ),
        data=model.data,
    )

    with pytest.raises(ValueError, match="broken"):
        render_chart_model(broken)


def test_render_stats_tables_handles_missing_and_present_tables(make_payload) -> None:
    """Optional tables render as None, present ones as field dictionaries."""

    empty = render_stats_tables(build_stats_tables(parse_stats_payload(make_payload())))
    assert empty == {"indexerApiAccess": None, "downloadAge": None}

    raw = make_payload()
    raw["downloadsPerAgeStats"] = {
        "averageAge": 412,
        "percentOlder1000": 12,
        "percentOlder2000": 4,
        "percentOlder3000": 1,
    }
    tables = render_stats_tables(build_stats_tables(parse_stats_payload(raw)))
    assert tables["downloadAge"] is not None
    assert tables["downloadAge"]["average_age"] == 412

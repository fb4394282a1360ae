"""Views for the statistics dashboard."""

from __future__ import annotations

from datetime import date
from typing import Any

from django.conf import settings
from django.contrib import messages
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import render
from django.urls import reverse

from stats.query import StatsQuery

from core.charting.render import render_chart_models, render_stats_tables
from core.forms import StatsRangeForm
from core.preferences import SessionPreferenceStore, load_include_disabled, save_include_disabled
from core.services import DashboardContent, load_dashboard
from core.stats_client import FetchFailed


def stats_dashboard(request: HttpRequest) -> HttpResponse:
    """Render the statistics dashboard for the requested (or default) range."""

    form = _range_form(request)
    charts: list[Any] = []
    tables: dict[str, Any] | None = None
    if form.is_valid():
        query = form.query()
        try:
            content = load_dashboard(query)
        except FetchFailed as exc:
            messages.error(request, f"Unable to load statistics: {exc}")
        else:
            charts = render_chart_models(content.charts)
            tables = render_stats_tables(content.tables)

    return render(
        request,
        "core/stats.html",
        {
            "form": form,
            "charts": charts,
            "tables": tables,
            "stats_api_url": reverse("core:stats_api"),
            "resize_delay_ms": int(float(settings.STATS_RESIZE_DELAY_SECONDS) * 1000),
        },
    )


def stats_api(request: HttpRequest) -> JsonResponse:
    """Return rendered charts and tables for a range as JSON.

    Responds with HTTP 400 for an invalid range and HTTP 502 when the
    statistics server cannot deliver a usable payload.
    """

    form = _range_form(request)
    if not form.is_valid():
        errors = {field: [str(e) for e in errs] for field, errs in form.errors.items()}
        return JsonResponse({"error": "Invalid statistics range.", "fields": errors}, status=400)

    query = form.query()
    try:
        content = load_dashboard(query)
    except FetchFailed as exc:
        return JsonResponse({"query": _query_json(query), "error": str(exc)}, status=502)
    return JsonResponse(_content_json(content))


def _range_form(request: HttpRequest) -> StatsRangeForm:
    """Bind the range form and persist an explicitly submitted include-disabled flag."""

    preferences = SessionPreferenceStore(request)
    form = StatsRangeForm(
        request.GET,
        today=date.today(),
        include_disabled=load_include_disabled(preferences),
    )
    if form.is_valid() and "include_disabled" in request.GET:
        save_include_disabled(preferences, include_disabled=bool(form.cleaned_data.get("include_disabled")))
    return form


def _content_json(content: DashboardContent) -> dict[str, Any]:
    return {
        "query": _query_json(content.query),
        "charts": render_chart_models(content.charts),
        "tables": render_stats_tables(content.tables),
    }


def _query_json(query: StatsQuery) -> dict[str, Any]:
    return query.as_request_body()

"""Integration tests for the `show_stats_charts` management command."""

from __future__ import annotations

import json
from datetime import date
from io import StringIO
from typing import Any

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

import core.stats_client
from core.stats_client import FetchFailed
from stats.query import StatsQuery

pytestmark = pytest.mark.integration


@pytest.fixture
def fetched(monkeypatch: pytest.MonkeyPatch, make_payload) -> list[StatsQuery]:
    seen: list[StatsQuery] = []

    def fake_fetch(query: StatsQuery, *, config: Any) -> dict[str, Any]:
        seen.append(query)
        return make_payload(user_shares=False)

    monkeypatch.setattr(core.stats_client, "fetch_stats_payload", fake_fetch)
    return seen


def test_command_prints_chart_summary(fetched) -> None:
    """Each chart is summarized on its own line."""

    out = StringIO()
    call_command("show_stats_charts", "--after", "2024-01-01", "--before", "2024-02-01", stdout=out)

    lines = out.getvalue().splitlines()
    assert lines[0] == "avg_response_times: kind=bar_horizontal height=350 series=1 points=5"
    assert lines[-1] == "Built 10 charts."
    assert fetched == [StatsQuery(after=date(2024, 1, 1), before=date(2024, 2, 1), include_disabled=False)]


def test_command_unbounded_and_include_disabled(fetched) -> None:
    """--unbounded drops the default range; --include-disabled is forwarded."""

    call_command("show_stats_charts", "--unbounded", "--include-disabled", stdout=StringIO())

    assert fetched == [StatsQuery(after=None, before=None, include_disabled=True)]


def test_command_json_output(fetched) -> None:
    """--json prints the rendered chart payloads."""

    out = StringIO()
    call_command("show_stats_charts", "--json", stdout=out)

    charts = json.loads(out.getvalue())
    assert charts[-1]["name"] == "user_agent_shares"


def test_command_rejects_inverted_range(fetched) -> None:
    with pytest.raises(CommandError, match="--after"):
        call_command("show_stats_charts", "--after", "2024-03-01", "--before", "2024-02-01", stdout=StringIO())
    assert fetched == []


def test_command_reports_fetch_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    """FetchFailed surfaces as a CommandError carrying the server message."""

    def failing_fetch(query: StatsQuery, *, config: Any) -> dict[str, Any]:
        raise FetchFailed("Unable to reach the statistics server.")

    monkeypatch.setattr(core.stats_client, "fetch_stats_payload", failing_fetch)

    with pytest.raises(CommandError, match="Failed to load statistics: Unable to reach the statistics server."):
        call_command("show_stats_charts", stdout=StringIO())


def test_command_reports_malformed_payload(monkeypatch: pytest.MonkeyPatch, make_payload) -> None:
    """A payload missing a required series fails the command with the field named."""

    def broken_fetch(query: StatsQuery, *, config: Any) -> dict[str, Any]:
        raw = make_payload()
        del raw["downloadsPerAge"]
        return raw

    monkeypatch.setattr(core.stats_client, "fetch_stats_payload", broken_fetch)

    with pytest.raises(CommandError, match="downloadsPerAge"):
        call_command("show_stats_charts", stdout=StringIO())

"""Typed parsing of the aggregated statistics payload.

The statistics server returns one JSON object per date range. Parsing turns it
into immutable records so chart building never has to guess at shapes. Parsing
is strict: a required series that is missing, null, or not a list raises
`MalformedPayload` naming the field. Only the per-user/IP shares and the two
summary tables may be absent.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Final, TypeVar

T = TypeVar("T")

REQUIRED_SERIES: Final[tuple[str, ...]] = (
    "avgResponseTimes",
    "avgIndexerSearchResultsShares",
    "downloadsPerHourOfDay",
    "downloadsPerDayOfWeek",
    "searchesPerHourOfDay",
    "searchesPerDayOfWeek",
    "downloadsPerAge",
    "successfulDownloadsPerIndexer",
    "indexerDownloadShares",
    "userAgentShares",
)


class MalformedPayload(ValueError):
    """Raised when a statistics payload does not satisfy the expected shape."""

    def __init__(self, *, field: str, reason: str = "missing") -> None:
        """Initialize the error.

        Args:
            field: Payload path of the offending field (e.g. `avgResponseTimes[2].indexer`).
            reason: Short description of what is wrong with the field.
        """

        super().__init__(f"Malformed statistics payload: {field} is {reason}.")
        self.field = field
        self.reason = reason


@dataclass(frozen=True, slots=True)
class ResponseTime:
    """Average API response time of one indexer (milliseconds)."""

    indexer: str
    avg_response_time: float


@dataclass(frozen=True, slots=True)
class ResultsShare:
    """Share of all (and of unique) search results contributed by one indexer."""

    indexer_name: str
    total_share: float
    unique_share: float


@dataclass(frozen=True, slots=True)
class CountBucket:
    """A count for one category bucket (hour of day, day of week, age in days)."""

    key: str | int
    count: float


@dataclass(frozen=True, slots=True)
class IndexerPercentage:
    """A percentage value attributed to one indexer."""

    indexer_name: str
    percentage: float


@dataclass(frozen=True, slots=True)
class IndexerShare:
    """An indexer's share of all downloads."""

    indexer_name: str
    share: float


@dataclass(frozen=True, slots=True)
class UserOrIpShare:
    """A user's (or IP address') share of searches or downloads."""

    user_or_ip: str
    percentage: float


@dataclass(frozen=True, slots=True)
class UserAgentShare:
    """A client user agent's share of API accesses."""

    user_agent: str
    percentage: float


@dataclass(frozen=True, slots=True)
class UserOrIpShares:
    """Per-user/IP shares, present when the server tracks users or IPs."""

    search: tuple[UserOrIpShare, ...]
    download: tuple[UserOrIpShare, ...]


@dataclass(frozen=True, slots=True)
class SharesDisabled:
    """Per-user/IP shares are disabled server-side (not the same as "no data")."""


@dataclass(frozen=True, slots=True)
class IndexerApiAccessRow:
    """API access statistics for one indexer, shown as a table row."""

    indexer_name: str
    percent_successful: float | None
    percent_connection_error: float | None
    average_accesses_per_day: float | None
    average_response_time: float | None


@dataclass(frozen=True, slots=True)
class DownloadAgeSummary:
    """Summary of the age (in days) of downloaded releases."""

    average_age: float | None
    percent_older_1000: float | None
    percent_older_2000: float | None
    percent_older_3000: float | None


@dataclass(frozen=True, slots=True)
class RawStatsPayload:
    """Parsed statistics payload for one date range.

    Attributes:
        avg_response_times: Per-indexer average response times.
        avg_indexer_search_results_shares: Per-indexer result shares.
        downloads_per_hour_of_day: Download counts bucketed by hour.
        downloads_per_day_of_week: Download counts bucketed by weekday.
        searches_per_hour_of_day: Search counts bucketed by hour.
        searches_per_day_of_week: Search counts bucketed by weekday.
        downloads_per_age: Download counts bucketed by release age.
        successful_downloads_per_indexer: Per-indexer download success rates.
        indexer_download_shares: Per-indexer download shares.
        user_or_ip_shares: Per-user/IP shares, or `SharesDisabled`.
        user_agent_shares: Per-user-agent access shares.
        number_of_configured_indexers: All indexers in the configuration.
        number_of_enabled_indexers: Indexers currently enabled.
        indexer_api_access_stats: Optional API access table rows.
        downloads_per_age_stats: Optional download age summary.
    """

    avg_response_times: tuple[ResponseTime, ...]
    avg_indexer_search_results_shares: tuple[ResultsShare, ...]
    downloads_per_hour_of_day: tuple[CountBucket, ...]
    downloads_per_day_of_week: tuple[CountBucket, ...]
    searches_per_hour_of_day: tuple[CountBucket, ...]
    searches_per_day_of_week: tuple[CountBucket, ...]
    downloads_per_age: tuple[CountBucket, ...]
    successful_downloads_per_indexer: tuple[IndexerPercentage, ...]
    indexer_download_shares: tuple[IndexerShare, ...]
    user_or_ip_shares: UserOrIpShares | SharesDisabled
    user_agent_shares: tuple[UserAgentShare, ...]
    number_of_configured_indexers: int
    number_of_enabled_indexers: int
    indexer_api_access_stats: tuple[IndexerApiAccessRow, ...] | None = None
    downloads_per_age_stats: DownloadAgeSummary | None = None


def parse_stats_payload(raw: Mapping[str, Any]) -> RawStatsPayload:
    """Parse a decoded JSON statistics payload.

    Args:
        raw: Decoded JSON object returned by the statistics server.

    Returns:
        RawStatsPayload with every required series populated.

    Raises:
        MalformedPayload: When a required field is missing or has the wrong shape.
    """

    if not isinstance(raw, Mapping):
        raise MalformedPayload(field="payload", reason="not a JSON object")

    for key in REQUIRED_SERIES:
        if raw.get(key) is None:
            raise MalformedPayload(field=key)

    configured = _int_field(raw, "numberOfConfiguredIndexers", path="numberOfConfiguredIndexers")
    enabled = _int_field(raw, "numberOfEnabledIndexers", path="numberOfEnabledIndexers")
    if enabled > configured:
        raise MalformedPayload(
            field="numberOfEnabledIndexers",
            reason=f"greater than numberOfConfiguredIndexers ({enabled} > {configured})",
        )

    return RawStatsPayload(
        avg_response_times=_series(
            raw,
            "avgResponseTimes",
            lambda r, p: ResponseTime(
                indexer=_str_field(r, "indexer", path=p),
                avg_response_time=_number_field(r, "avgResponseTime", path=p),
            ),
        ),
        avg_indexer_search_results_shares=_series(
            raw,
            "avgIndexerSearchResultsShares",
            lambda r, p: ResultsShare(
                indexer_name=_str_field(r, "indexerName", path=p),
                total_share=_number_field(r, "totalShare", path=p),
                unique_share=_number_field(r, "uniqueShare", path=p),
            ),
        ),
        downloads_per_hour_of_day=_series(raw, "downloadsPerHourOfDay", _bucket("hour")),
        downloads_per_day_of_week=_series(raw, "downloadsPerDayOfWeek", _bucket("day")),
        searches_per_hour_of_day=_series(raw, "searchesPerHourOfDay", _bucket("hour")),
        searches_per_day_of_week=_series(raw, "searchesPerDayOfWeek", _bucket("day")),
        downloads_per_age=_series(raw, "downloadsPerAge", _bucket("age")),
        successful_downloads_per_indexer=_series(
            raw,
            "successfulDownloadsPerIndexer",
            lambda r, p: IndexerPercentage(
                indexer_name=_str_field(r, "indexerName", path=p),
                percentage=_number_field(r, "percentage", path=p),
            ),
        ),
        indexer_download_shares=_series(
            raw,
            "indexerDownloadShares",
            lambda r, p: IndexerShare(
                indexer_name=_str_field(r, "indexerName", path=p),
                share=_number_field(r, "share", path=p),
            ),
        ),
        user_or_ip_shares=_user_or_ip_shares(raw),
        user_agent_shares=_series(
            raw,
            "userAgentShares",
            lambda r, p: UserAgentShare(
                user_agent=_str_field(r, "userAgent", path=p),
                percentage=_number_field(r, "percentage", path=p),
            ),
        ),
        number_of_configured_indexers=configured,
        number_of_enabled_indexers=enabled,
        indexer_api_access_stats=_api_access_rows(raw),
        downloads_per_age_stats=_download_age_summary(raw),
    )


def _user_or_ip_shares(raw: Mapping[str, Any]) -> UserOrIpShares | SharesDisabled:
    """Return the per-user/IP variant; presence is keyed on the search shares."""

    if raw.get("searchSharesPerUserOrIp") is None:
        return SharesDisabled()

    def share(record: Mapping[str, Any], path: str) -> UserOrIpShare:
        return UserOrIpShare(
            user_or_ip=_str_field(record, "userOrIp", path=path),
            percentage=_number_field(record, "percentage", path=path),
        )

    download: tuple[UserOrIpShare, ...] = ()
    if raw.get("downloadSharesPerUserOrIp") is not None:
        download = _series(raw, "downloadSharesPerUserOrIp", share)
    return UserOrIpShares(search=_series(raw, "searchSharesPerUserOrIp", share), download=download)


def _api_access_rows(raw: Mapping[str, Any]) -> tuple[IndexerApiAccessRow, ...] | None:
    if raw.get("indexerApiAccessStats") is None:
        return None
    return _series(
        raw,
        "indexerApiAccessStats",
        lambda r, p: IndexerApiAccessRow(
            indexer_name=_str_field(r, "indexerName", path=p),
            percent_successful=_optional_number(r, "percentSuccessful", path=p),
            percent_connection_error=_optional_number(r, "percentConnectionError", path=p),
            average_accesses_per_day=_optional_number(r, "averageAccessesPerDay", path=p),
            average_response_time=_optional_number(r, "averageResponseTime", path=p),
        ),
    )


def _download_age_summary(raw: Mapping[str, Any]) -> DownloadAgeSummary | None:
    value = raw.get("downloadsPerAgeStats")
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise MalformedPayload(field="downloadsPerAgeStats", reason="not a JSON object")
    path = "downloadsPerAgeStats"
    return DownloadAgeSummary(
        average_age=_optional_number(value, "averageAge", path=path),
        percent_older_1000=_optional_number(value, "percentOlder1000", path=path),
        percent_older_2000=_optional_number(value, "percentOlder2000", path=path),
        percent_older_3000=_optional_number(value, "percentOlder3000", path=path),
    )


def _series(
    raw: Mapping[str, Any],
    key: str,
    build: Callable[[Mapping[str, Any], str], T],
) -> tuple[T, ...]:
    """Parse one list-valued series with a per-record builder."""

    values = raw.get(key)
    if values is None:
        raise MalformedPayload(field=key)
    if not isinstance(values, list):
        raise MalformedPayload(field=key, reason="not a list")
    records: list[T] = []
    for idx, record in enumerate(values):
        path = f"{key}[{idx}]"
        if not isinstance(record, Mapping):
            raise MalformedPayload(field=path, reason="not a JSON object")
        records.append(build(record, path))
    return tuple(records)


def _bucket(key_name: str) -> Callable[[Mapping[str, Any], str], CountBucket]:
    """Return a record builder for `{<key_name>, count}` bucket records."""

    def build(record: Mapping[str, Any], path: str) -> CountBucket:
        key = record.get(key_name)
        if key is None or isinstance(key, bool) or not isinstance(key, (str, int)):
            raise MalformedPayload(field=f"{path}.{key_name}")
        return CountBucket(key=key, count=_number_field(record, "count", path=path))

    return build


def _str_field(record: Mapping[str, Any], name: str, *, path: str) -> str:
    value = record.get(name)
    if not isinstance(value, str):
        raise MalformedPayload(field=f"{path}.{name}")
    return value


def _number_field(record: Mapping[str, Any], name: str, *, path: str) -> float:
    value = record.get(name)
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedPayload(field=f"{path}.{name}")
    return value


def _optional_number(record: Mapping[str, Any], name: str, *, path: str) -> float | None:
    if record.get(name) is None:
        return None
    return _number_field(record, name, path=path)


def _int_field(record: Mapping[str, Any], name: str, *, path: str) -> int:
    value = record.get(name)
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise MalformedPayload(field=path)
    return value

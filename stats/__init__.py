"""Pure statistics package for hydraStats.

This package parses the aggregated statistics payload and holds the
formatting and layout rules used by chart building. It must not import Django
or perform any network I/O.
"""

from .payload import MalformedPayload, RawStatsPayload, parse_stats_payload

__all__ = ["MalformedPayload", "RawStatsPayload", "parse_stats_payload"]

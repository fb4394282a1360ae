"""Value formatting for chart axes, value labels, and tooltips.

Chart view-models carry a `FormatSpec` instead of a callable. The rendering
layer resolves each spec to a formatting function with `resolve_formatter`.
Numeric output follows the dashboard's display convention: thousands are
grouped with commas and integral floats print without a decimal part.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

Formatter = Callable[[float | int | str], str]


class FormatSpec(StrEnum):
    """Stable identifiers for the formatters available to charts."""

    identity = "identity"
    integer = "integer"
    percent_2dp = "percent_2dp"


def format_identity(value: float | int | str) -> str:
    """Return the value as displayed without rounding."""

    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_integer(value: float | int | str) -> str:
    """Return the value rounded to zero decimal places (e.g. `1,234`)."""

    return format_number(value, decimals=0)


def format_percent_2dp(value: float | int | str) -> str:
    """Return the value with two decimal places and a trailing `%`."""

    return f"{format_number(value, decimals=2)}%"


def format_number(value: float | int | str, *, decimals: int) -> str:
    """Format a number with grouped thousands and a fixed number of decimals.

    Args:
        value: Numeric value (strings are returned unchanged when not numeric).
        decimals: Number of decimal places.

    Returns:
        Formatted string.
    """

    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return value
    formatted = f"{float(value):,.{decimals}f}"
    if formatted.startswith("-") and float(formatted.replace(",", "")) == 0:
        formatted = formatted[1:]
    return formatted


_FORMATTERS: dict[FormatSpec, Formatter] = {
    FormatSpec.identity: format_identity,
    FormatSpec.integer: format_integer,
    FormatSpec.percent_2dp: format_percent_2dp,
}


def resolve_formatter(spec: FormatSpec) -> Formatter:
    """Return the formatting function for a FormatSpec.

    Raises:
        ValueError: When `spec` is not a known FormatSpec value.
    """

    return _FORMATTERS[FormatSpec(spec)]

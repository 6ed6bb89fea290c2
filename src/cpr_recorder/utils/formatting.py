"""Formatting utilities for timers, clock times and event details."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

PLACEHOLDER = "—"


def format_clock(ms: int | float | None) -> str:
    """
    Format a millisecond duration as a stopwatch string.

    Args:
        ms: Duration in milliseconds. Negative or missing values count as zero.

    Returns:
        "m:ss" below one hour, "h:mm:ss" from one hour on
    """
    if ms is None or ms < 0:
        ms = 0

    total = int(ms // 1000)
    hours = total // 3600
    minutes = (total % 3600) // 60
    seconds = total % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_optional_clock(ms: int | None) -> str:
    """Format a duration, or a dash when there is nothing to show."""
    if ms is None:
        return PLACEHOLDER
    return format_clock(ms)


def format_time_of_day(timestamp_ms: int) -> str:
    """
    Format an epoch-millisecond timestamp as local wall-clock time.

    Args:
        timestamp_ms: Unix timestamp in milliseconds

    Returns:
        "HH:MM:SS" in the local timezone
    """
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M:%S")


def format_details(details: Mapping[str, Any] | None, separator: str = ":") -> str:
    """
    Render an event's details mapping as space-joined key/value pairs.

    Args:
        details: Event annotations, kept in their iteration order
        separator: Placed between each key and value

    Returns:
        e.g. "dose:1 mg route:IV/IO"
    """
    if not details:
        return ""
    return " ".join(f"{key}{separator}{value}" for key, value in details.items())


def format_number(value: int | float) -> str:
    """Render a number without a trailing ".0" when it is integral."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

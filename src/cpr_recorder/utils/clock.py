"""Wall-clock access for the recorder."""

import time

from collections.abc import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Return the current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000

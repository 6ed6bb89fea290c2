"""Fixed-interval driver for the compression timer and live displays."""

import logging
import time

from collections.abc import Callable

from cpr_recorder.constants import DEFAULT_WATCH_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class CompressionTicker:
    """
    Calls a callback once per interval on the calling thread until stopped.

    The callback is normally ``Recorder.tick``, which credits whole
    compression quanta that fell due, followed by whatever rendering the
    caller wants.

    Example:
        >>> ticker = CompressionTicker(recorder.tick, interval_seconds=1.0)
        >>> ticker.run(max_iterations=10)
    """

    def __init__(
        self,
        callback: Callable[[], object],
        interval_seconds: float = DEFAULT_WATCH_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self._sleep = sleep
        self._running = False
        self.iterations = 0

    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Stop after the current iteration."""
        self._running = False

    def run(self, max_iterations: int | None = None) -> int:
        """
        Loop until stopped or ``max_iterations`` callbacks have run.

        Returns:
            Number of callbacks run
        """
        self._running = True
        self.iterations = 0
        logger.debug(f"Ticker started (interval={self.interval_seconds}s)")

        try:
            while self._running:
                try:
                    self.callback()
                except Exception as e:
                    logger.error(f"Ticker callback failed: {e}", exc_info=True)
                self.iterations += 1

                if max_iterations is not None and self.iterations >= max_iterations:
                    break
                if self._running:
                    self._sleep(self.interval_seconds)
        finally:
            self._running = False
            logger.debug(f"Ticker stopped after {self.iterations} iteration(s)")

        return self.iterations

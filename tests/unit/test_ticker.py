"""Tests for the fixed-interval ticker loop."""

import pytest

from cpr_recorder.ticker import CompressionTicker


class FakeSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def test_runs_requested_iterations():
    calls = []
    sleep = FakeSleep()
    ticker = CompressionTicker(lambda: calls.append(1), 0.5, sleep=sleep)

    assert ticker.run(max_iterations=3) == 3

    assert len(calls) == 3
    # No sleep after the final iteration
    assert sleep.calls == [0.5, 0.5]
    assert not ticker.is_running()


def test_stop_from_callback():
    sleep = FakeSleep()
    ticker = None

    def callback():
        if ticker.iterations == 1:
            ticker.stop()

    ticker = CompressionTicker(callback, 1.0, sleep=sleep)

    assert ticker.run() == 2
    assert sleep.calls == [1.0]


def test_callback_errors_are_logged(caplog):
    def callback():
        raise RuntimeError("boom")

    ticker = CompressionTicker(callback, 1.0, sleep=FakeSleep())

    assert ticker.run(max_iterations=2) == 2
    assert "Ticker callback failed: boom" in caplog.text


def test_interrupt_stops_loop():
    def sleep(seconds):
        raise KeyboardInterrupt

    ticker = CompressionTicker(lambda: None, 1.0, sleep=sleep)

    with pytest.raises(KeyboardInterrupt):
        ticker.run()

    assert not ticker.is_running()
    assert ticker.iterations == 1


@pytest.mark.parametrize("interval", [0, -1.0])
def test_rejects_non_positive_interval(interval):
    with pytest.raises(ValueError, match="Interval must be positive"):
        CompressionTicker(lambda: None, interval)

"""Tests for the live timers snapshot."""

from cpr_recorder import ledger
from cpr_recorder.models import Session
from cpr_recorder.summary import summarize
from cpr_recorder.utils.formatting import PLACEHOLDER
from tests.helpers.clock import BASE_TIME_MS as T0
from tests.helpers.sessions import build_typical_session


def test_empty_session():
    snapshot = summarize(Session(), T0)

    assert not snapshot.running
    assert snapshot.elapsed_arrest_ms == 0
    assert snapshot.compression_total_ms == 0
    assert snapshot.since_last_epinephrine_ms is None
    assert snapshot.since_last_shock_ms is None
    assert snapshot.event_count == 0


def test_typical_session():
    session = build_typical_session(T0)

    snapshot = summarize(session, T0 + 180_000)

    assert snapshot.running
    assert snapshot.elapsed_arrest_ms == 180_000
    assert snapshot.compression_total_ms == 125_000
    assert not snapshot.compressions_running
    assert snapshot.since_last_epinephrine_ms == 120_000
    assert snapshot.since_last_shock_ms == 145_000
    assert snapshot.epinephrine_count == 1
    assert snapshot.shock_count == 1
    assert snapshot.event_count == 5


def test_summarize_does_not_tick():
    session = Session()
    ledger.toggle_compressions(session, T0)

    snapshot = summarize(session, T0 + 10_000)

    assert snapshot.compression_total_ms == 10_000
    assert session.compression_timer.accumulated_ms == 0


def test_format_lines_running():
    lines = dict(summarize(build_typical_session(T0), T0 + 180_000).format_lines())

    assert lines == {
        "Arrest time": "3:00",
        "CPR time": "2:05",
        "Since last EPI": "2:00",
        "Since last shock": "2:25",
        "# EPI / # Shocks": "1 / 1",
    }


def test_format_lines_idle():
    lines = dict(summarize(Session(), T0).format_lines())

    assert lines["Arrest time"] == PLACEHOLDER
    assert lines["Since last EPI"] == PLACEHOLDER
    assert lines["Since last shock"] == PLACEHOLDER
    assert lines["# EPI / # Shocks"] == "0 / 0"

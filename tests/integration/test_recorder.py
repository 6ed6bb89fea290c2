"""
Integration tests for the Recorder.

These tests drive the Recorder against a real SQLite store with a manual
clock, covering persistence across instances, tick catch-up and full
resuscitation scenarios.
"""

import pytest

from cpr_recorder import ledger
from cpr_recorder.constants import STORAGE_KEY_META, STORAGE_KEY_SESSION, EventCategory
from cpr_recorder.database.models import KeyValueEntry
from cpr_recorder.database.session import init_database, session_scope
from cpr_recorder.models import PatientMeta, Session
from cpr_recorder.recorder import Recorder
from cpr_recorder.storage import KeyValueStore
from cpr_recorder.ticker import CompressionTicker
from tests.helpers.clock import BASE_TIME_MS as T0


class TestPersistence:
    def test_fresh_record(self, recorder):
        assert recorder.session == Session()
        assert recorder.meta == PatientMeta()

    def test_every_action_is_saved(self, recorder, recorder_factory, clock):
        recorder.start()
        clock.advance(10_000)
        recorder.record_shock(200)
        clock.advance(5_000)
        recorder.record_rhythm("PEA")

        reopened = recorder_factory()

        assert reopened.session == recorder.session
        assert [e.label for e in reopened.session.events] == ["Shock 200 J", "PEA"]
        assert reopened.session.last_shock_at == T0 + 10_000

    def test_meta_is_saved(self, recorder, recorder_factory):
        recorder.update_meta(patient_id="MRN-7", weight_kg=82)

        reopened = recorder_factory()

        assert reopened.meta.patient_id == "MRN-7"
        assert reopened.meta.weight_kg == "82"
        assert reopened.meta.location == "ED"

    def test_update_meta_rejects_unknown_field(self, recorder):
        with pytest.raises(ValueError, match="Unknown patient field"):
            recorder.update_meta(blood_type="O+")

    def test_default_meta_factory(self, store, clock):
        opened = Recorder.open(
            store, clock=clock, default_meta=lambda: PatientMeta(location="ICU")
        )

        assert opened.meta.location == "ICU"

    def test_stored_meta_wins_over_default(self, store, clock):
        store.save(STORAGE_KEY_META, PatientMeta(location="Ward 2"))

        opened = Recorder.open(
            store, clock=clock, default_meta=lambda: PatientMeta(location="ICU")
        )

        assert opened.meta.location == "Ward 2"

    def test_reset_keeps_meta(self, recorder, recorder_factory, store, clock):
        recorder.update_meta(patient_id="MRN-1")
        recorder.start()
        recorder.record_epinephrine()

        fresh = recorder.reset()

        assert fresh == Session()
        assert store.load_raw(STORAGE_KEY_SESSION) is None
        reopened = recorder_factory()
        assert reopened.session == Session()
        assert reopened.meta.patient_id == "MRN-1"

    def test_corrupt_session_opens_empty(self, recorder_factory, store):
        init_database(store.database_path)
        with session_scope() as db:
            db.add(KeyValueEntry(key=STORAGE_KEY_SESSION, value='{"events": [1, 2]}'))

        assert recorder_factory().session == Session()


class TestLifecycle:
    def test_start_twice_keeps_first_timestamp(self, recorder, clock):
        recorder.start()
        clock.advance(3_000)

        recorder.start()

        assert recorder.session.arrest_timestamp == T0

    def test_pause_and_resume(self, recorder, clock):
        recorder.start()
        clock.advance(30_000)
        recorder.stop()

        assert recorder.elapsed_arrest_ms() == 0

        clock.advance(30_000)
        recorder.start()
        clock.advance(5_000)

        assert recorder.elapsed_arrest_ms() == 5_000
        assert recorder.session.arrest_timestamp == T0 + 60_000


class TestCompressionTicks:
    def test_tick_persists_only_when_credited(self, recorder, recorder_factory, clock):
        recorder.toggle_compressions()
        clock.advance(500)

        assert recorder.tick() == 0
        assert recorder_factory().session.compression_timer.accumulated_ms == 0

        clock.advance(2_600)

        assert recorder.tick() == 3
        assert recorder_factory().session.compression_timer.accumulated_ms == 3_000

    def test_catch_up_after_reopen(self, recorder, recorder_factory, clock):
        """Time that passed while no process was running is credited on next use."""
        recorder.start()
        recorder.toggle_compressions()
        clock.advance(90_000)

        reopened = recorder_factory()

        assert reopened.compression_total_ms() == 90_000
        reopened.toggle_compressions()
        assert reopened.session.compression_timer.accumulated_ms == 90_000

    def test_actions_catch_up_ticks_first(self, recorder, clock):
        recorder.toggle_compressions()
        clock.advance(4_200)

        recorder.record_pulse_check()

        timer = recorder.session.compression_timer
        assert timer.accumulated_ms == 4_000
        assert timer.last_tick_at == T0 + 4_000

    def test_ticker_drives_recorder(self, recorder, clock):
        recorder.toggle_compressions()

        ticker = CompressionTicker(
            recorder.tick, interval_seconds=1.0, sleep=lambda s: clock.advance(1_000)
        )
        ticker.run(max_iterations=11)

        assert recorder.session.compression_timer.accumulated_ms == 10_000
        assert recorder.compression_total_ms() == 10_000


class TestSharedStore:
    """A long-lived Recorder, as held by `watch`, next to one-shot commands."""

    def test_tick_keeps_events_from_another_recorder(
        self, recorder, recorder_factory, clock
    ):
        recorder.start()
        recorder.toggle_compressions()
        recorder_factory().record_epinephrine()
        clock.advance(1_000)

        assert recorder.tick() == 1

        labels = [e.label for e in recorder_factory().session.events]
        assert labels == ["Compressions START", "Epinephrine 1 mg"]

    def test_tick_keeps_compressions_stopped_elsewhere(
        self, recorder, recorder_factory, clock
    ):
        recorder.toggle_compressions()
        clock.advance(3_000)
        recorder_factory().toggle_compressions()
        clock.advance(2_000)

        assert recorder.tick() == 0

        timer = recorder_factory().session.compression_timer
        assert not timer.is_running
        assert timer.accumulated_ms == 3_000

    def test_snapshot_counts_actions_from_another_recorder(
        self, recorder, recorder_factory, clock
    ):
        recorder.start()
        other = recorder_factory()
        other.record_shock(200)
        other.record_epinephrine()
        clock.advance(1_000)

        recorder.tick()
        snapshot = recorder.snapshot()

        assert snapshot.shock_count == 1
        assert snapshot.epinephrine_count == 1
        assert snapshot.since_last_shock_ms == 1_000

    def test_action_appends_to_latest_stored_log(self, recorder, recorder_factory):
        recorder.start()
        recorder_factory().record_rhythm("VF/VT")

        recorder.record_shock(200)

        labels = [e.label for e in recorder_factory().session.events]
        assert labels == ["VF/VT", "Shock 200 J"]

    def test_reset_elsewhere_is_picked_up(self, recorder, recorder_factory, clock):
        recorder.start()
        recorder.record_pulse_check()
        recorder_factory().reset()

        recorder.tick()

        assert recorder.session == Session()

    def test_meta_update_keeps_fields_set_elsewhere(self, recorder, recorder_factory):
        recorder_factory().update_meta(patient_id="MRN-5")

        recorder.update_meta(age="50")

        meta = recorder_factory().meta
        assert (meta.patient_id, meta.age) == ("MRN-5", "50")

    def test_unavailable_store_keeps_memory_state(self, tmp_path, clock):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        offline = Recorder(KeyValueStore(str(blocker / "cpr.db")), clock=clock)

        offline.start()
        offline.record_epinephrine()

        assert [e.label for e in offline.session.events] == ["Epinephrine 1 mg"]
        assert offline.session.arrest_timestamp == T0


class TestScenarios:
    def test_shockable_arrest(self, recorder, clock):
        recorder.start()
        recorder.toggle_compressions()
        clock.advance(30_000)
        recorder.record_rhythm("VF/VT")
        clock.advance(5_000)
        recorder.record_shock(200)
        clock.advance(25_000)
        recorder.record_epinephrine()
        clock.advance(60_000)
        recorder.record_drug(ledger.get_drug("AMIO"))
        clock.advance(60_000)
        recorder.record_shock(300)
        clock.advance(120_000)
        recorder.record_epinephrine()
        recorder.toggle_compressions()

        snapshot = recorder.snapshot()

        assert snapshot.elapsed_arrest_ms == 300_000
        assert snapshot.compression_total_ms == 300_000
        assert snapshot.shock_count == 2
        assert snapshot.epinephrine_count == 2
        assert snapshot.since_last_epinephrine_ms == 0
        assert snapshot.since_last_shock_ms == 120_000
        assert [e.relative_offset_ms for e in recorder.session.events] == [
            0,
            30_000,
            35_000,
            60_000,
            120_000,
            180_000,
            300_000,
            300_000,
        ]

    def test_rosc_ends_compressions_separately(self, recorder, clock):
        recorder.start()
        recorder.toggle_compressions()
        clock.advance(600_000)

        events = recorder.record_rosc()
        recorder.toggle_compressions()

        assert [e.category for e in events] == [
            EventCategory.RHYTHM,
            EventCategory.OUTCOME,
        ]
        assert recorder.session.events[-1].label == "Compressions STOP"
        assert recorder.compression_total_ms() == 600_000

    def test_blank_note_is_not_recorded(self, recorder):
        assert recorder.add_note("   ") is None
        assert recorder.session.events == []

    def test_events_recorded_before_start_have_zero_offset(self, recorder, clock):
        clock.advance(10_000)
        event = recorder.record_airway("BVM")

        assert event.relative_offset_ms == 0
        assert event.timestamp == T0 + 10_000

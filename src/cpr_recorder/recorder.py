"""
Recorder: the application instance that owns the live record.

It holds patient meta and the session, threads the clock into every ledger
call, and persists state after every change.
"""

import logging

from collections.abc import Callable
from typing import Any, TypeVar

from cpr_recorder import ledger
from cpr_recorder.constants import (
    STORAGE_KEY_META,
    STORAGE_KEY_SESSION,
    EventCategory,
)
from cpr_recorder.models import DetailValue, DrugDescriptor, Event, PatientMeta, Session
from cpr_recorder.storage import KeyValueStore
from cpr_recorder.summary import SessionSnapshot, summarize
from cpr_recorder.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

__all__ = ["Recorder"]

ResultT = TypeVar("ResultT")


class Recorder:
    """
    Owns one resuscitation record and its patient meta.

    Example:
        >>> recorder = Recorder.open(KeyValueStore("/tmp/cpr.db"))
        >>> recorder.start()
        >>> recorder.record_shock(200)
        >>> recorder.snapshot().shock_count
        1
    """

    def __init__(
        self,
        store: KeyValueStore,
        meta: PatientMeta | None = None,
        session: Session | None = None,
        clock: Clock = now_ms,
    ):
        self.store = store
        self.meta = meta or PatientMeta()
        self.session = session or Session()
        self.clock = clock

    @classmethod
    def open(
        cls,
        store: KeyValueStore,
        clock: Clock = now_ms,
        default_meta: Callable[[], PatientMeta] = PatientMeta,
    ) -> "Recorder":
        """Restore meta and session from the store, falling back to empty ones."""
        meta = store.load(STORAGE_KEY_META, PatientMeta, default=default_meta)
        session = store.load(STORAGE_KEY_SESSION, Session)
        logger.debug(f"Opened record with {len(session.events)} event(s)")
        return cls(store, meta=meta, session=session, clock=clock)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """
        Replace in-memory state with the stored copy.

        Other processes write the same record; every change starts from the
        latest saved state. Nothing is replaced when storage is unavailable.
        """
        if not self.store.is_available():
            return
        self.meta = self.store.load(
            STORAGE_KEY_META, PatientMeta, default=lambda: self.meta
        )
        self.session = self.store.load(STORAGE_KEY_SESSION, Session)

    def save(self) -> None:
        self.store.save(STORAGE_KEY_SESSION, self.session)

    def save_meta(self) -> None:
        self.store.save(STORAGE_KEY_META, self.meta)

    def _apply(
        self, action: Callable[[Session, int], ResultT], reload: bool = True
    ) -> ResultT:
        if reload:
            self.reload()
        now = self.clock()
        ledger.tick(self.session, now)
        result = action(self.session, now)
        self.save()
        return result

    def _record(self, action: Callable[[Session, int], Event]) -> Event:
        event = self._apply(action)
        logger.info(f"Logged {event.category.value}: {event.label}")
        return event

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> Session:
        self.reload()
        if ledger.is_running(self.session):
            logger.debug("Start ignored: already running")
            return self.session
        session = self._apply(ledger.start, reload=False)
        logger.info("Arrest clock started")
        return session

    def stop(self) -> Session:
        session = self._apply(ledger.stop)
        logger.info("Arrest clock paused")
        return session

    def reset(self) -> Session:
        """Clear the session and its persisted copy. Patient meta is kept."""
        self.session = ledger.reset(self.session)
        self.store.remove(STORAGE_KEY_SESSION)
        logger.info("Record reset")
        return self.session

    def tick(self) -> int:
        """
        Reload, then credit any compression ticks that fell due.

        Persists only when a tick was credited.
        """
        self.reload()
        ticks = ledger.tick(self.session, self.clock())
        if ticks:
            self.save()
        return ticks

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_event(
        self,
        category: EventCategory,
        label: str,
        details: dict[str, DetailValue] | None = None,
    ) -> Event:
        return self._record(
            lambda s, now: ledger.record_event(s, now, category, label, details)
        )

    def record_shock(self, energy_joules: int | float) -> Event:
        return self._record(lambda s, now: ledger.record_shock(s, now, energy_joules))

    def record_epinephrine(self) -> Event:
        return self._record(ledger.record_epinephrine)

    def record_drug(self, drug: DrugDescriptor) -> Event:
        return self._record(lambda s, now: ledger.record_drug(s, now, drug))

    def record_rhythm(self, rhythm: str) -> Event:
        return self._record(lambda s, now: ledger.record_rhythm(s, now, rhythm))

    def record_airway(self, action: str) -> Event:
        return self._record(lambda s, now: ledger.record_airway(s, now, action))

    def record_intubation(self) -> Event:
        return self._record(ledger.record_intubation)

    def record_pulse_check(self) -> Event:
        return self._record(ledger.record_pulse_check)

    def record_rhythm_check(self) -> Event:
        return self._record(ledger.record_rhythm_check)

    def record_rosc(self) -> list[Event]:
        events = self._apply(ledger.record_rosc)
        logger.info("Logged ROSC")
        return events

    def add_note(self, text: str) -> Event | None:
        event = self._apply(lambda s, now: ledger.add_note(s, now, text))
        if event is None:
            logger.debug("Blank note ignored")
        else:
            logger.info(f"Logged note: {event.label}")
        return event

    def toggle_compressions(self) -> Event:
        return self._record(ledger.toggle_compressions)

    # ------------------------------------------------------------------
    # Patient meta
    # ------------------------------------------------------------------

    def update_meta(self, **fields: Any) -> PatientMeta:
        """
        Replace patient fields and persist them.

        Raises:
            ValueError: If a field name is not a PatientMeta field
        """
        unknown = set(fields) - set(PatientMeta.model_fields)
        if unknown:
            raise ValueError(f"Unknown patient field(s): {', '.join(sorted(unknown))}")

        self.reload()
        self.meta = self.meta.model_copy(
            update={key: str(value) for key, value in fields.items()}
        )
        self.save_meta()
        logger.info(f"Updated patient field(s): {', '.join(sorted(fields))}")
        return self.meta

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        return summarize(self.session, self.clock())

    def elapsed_arrest_ms(self) -> int:
        return ledger.elapsed_arrest_ms(self.session, self.clock())

    def compression_total_ms(self) -> int:
        return ledger.compression_total_ms(self.session, self.clock())

    def time_since_last_epinephrine_ms(self) -> int | None:
        return ledger.time_since_last_epinephrine_ms(self.session, self.clock())

    def time_since_last_shock_ms(self) -> int | None:
        return ledger.time_since_last_shock_ms(self.session, self.clock())

    def epinephrine_count(self) -> int:
        return ledger.epinephrine_count(self.session)

    def shock_count(self) -> int:
        return ledger.shock_count(self.session)

"""
Session ledger: the event log and its derived timers.

Every function takes the Session it works on and the current time (Unix
milliseconds) explicitly. Mutating functions change the Session in place and
return what they created; accessors never mutate.

Example:
    >>> session = Session()
    >>> start(session, now=1_000)
    >>> event = record_epinephrine(session, now=61_000)
    >>> event.relative_offset_ms
    60000
"""

import uuid

from collections.abc import Mapping

from cpr_recorder.constants import (
    COMPRESSION_TICK_MS,
    DEFAULT_DRUGS,
    EPINEPHRINE_CODE,
    EPINEPHRINE_DOSE,
    EPINEPHRINE_LABEL,
    EPINEPHRINE_MATCH,
    EPINEPHRINE_ROUTE,
    LABEL_COMPRESSIONS_START,
    LABEL_COMPRESSIONS_STOP,
    LABEL_INTUBATION,
    LABEL_PULSE_CHECK,
    LABEL_RHYTHM_CHECK,
    LABEL_ROSC,
    LABEL_ROSC_ANNOUNCED,
    EventCategory,
)
from cpr_recorder.models import (
    CompressionTimer,
    DetailValue,
    DrugDescriptor,
    Event,
    Session,
)
from cpr_recorder.utils.formatting import format_number

# ============================================================================
# Session lifecycle
# ============================================================================


def is_running(session: Session) -> bool:
    """Whether the arrest clock is currently running."""
    return session.session_started_at is not None


def start(session: Session, now: int) -> Session:
    """
    Start or resume the arrest clock.

    No-op while already running. Resuming after a pause moves the arrest
    timestamp to ``now``; offsets of later events are measured from the
    resume, not from the first start.
    """
    if is_running(session):
        return session
    session.session_started_at = now
    session.arrest_timestamp = now
    return session


def stop(session: Session, now: int) -> Session:
    """Pause the arrest clock. Events, markers and timers are kept."""
    session.session_started_at = None
    return session


def reset(session: Session | None = None) -> Session:
    """Return a fresh, empty Session."""
    return Session()


# ============================================================================
# Recording
# ============================================================================


def record_event(
    session: Session,
    now: int,
    category: EventCategory,
    label: str,
    details: Mapping[str, DetailValue] | None = None,
) -> Event:
    """
    Append a new event to the log.

    Args:
        session: Session to append to
        now: Current Unix time in milliseconds
        category: Event category
        label: Free-text label, not validated
        details: Optional key/value annotations

    Returns:
        The created event
    """
    offset = (
        now - session.arrest_timestamp if session.arrest_timestamp is not None else 0
    )
    event = Event(
        id=str(uuid.uuid4()),
        timestamp=now,
        relative_offset_ms=offset,
        category=category,
        label=label,
        details=dict(details or {}),
    )
    session.events.append(event)
    return event


def record_shock(session: Session, now: int, energy_joules: int | float) -> Event:
    """Log a defibrillation and move the last-shock marker."""
    event = record_event(
        session, now, EventCategory.SHOCK, f"Shock {format_number(energy_joules)} J"
    )
    session.last_shock_at = now
    return event


def record_epinephrine(session: Session, now: int) -> Event:
    """Log a standard epinephrine dose and move the last-epinephrine marker."""
    event = record_event(
        session,
        now,
        EventCategory.DRUG,
        EPINEPHRINE_LABEL,
        {"dose": EPINEPHRINE_DOSE, "route": EPINEPHRINE_ROUTE},
    )
    session.last_epinephrine_at = now
    return event


def record_drug(session: Session, now: int, drug: DrugDescriptor) -> Event:
    """
    Log a catalogue medication.

    The last-epinephrine marker is left alone even when the drug is
    epinephrine; only record_epinephrine moves it.
    """
    return record_event(
        session,
        now,
        EventCategory.DRUG,
        drug.label or drug.code,
        {"dose": drug.default_dose},
    )


def record_rhythm(session: Session, now: int, rhythm: str) -> Event:
    return record_event(session, now, EventCategory.RHYTHM, rhythm)


def record_airway(session: Session, now: int, action: str) -> Event:
    return record_event(session, now, EventCategory.AIRWAY, action)


def record_intubation(session: Session, now: int) -> Event:
    return record_event(session, now, EventCategory.AIRWAY, LABEL_INTUBATION)


def record_pulse_check(session: Session, now: int) -> Event:
    return record_event(session, now, EventCategory.ASSESSMENT, LABEL_PULSE_CHECK)


def record_rhythm_check(session: Session, now: int) -> Event:
    return record_event(session, now, EventCategory.ASSESSMENT, LABEL_RHYTHM_CHECK)


def record_rosc(session: Session, now: int) -> list[Event]:
    """Log return of spontaneous circulation as a rhythm plus an outcome."""
    return [
        record_rhythm(session, now, LABEL_ROSC),
        record_event(session, now, EventCategory.OUTCOME, LABEL_ROSC_ANNOUNCED),
    ]


def add_note(session: Session, now: int, text: str) -> Event | None:
    """Log a free-text note. Blank text records nothing."""
    text = text.strip()
    if not text:
        return None
    return record_event(session, now, EventCategory.NOTE, text)


# ============================================================================
# Compressions
# ============================================================================


def toggle_compressions(session: Session, now: int) -> Event:
    """
    Start or stop the compression timer, logging the transition.

    Stopping keeps the time credited by the last tick; the partial quantum of
    the running segment is dropped.
    """
    timer = session.compression_timer
    if timer.is_running:
        event = record_event(session, now, EventCategory.CPR, LABEL_COMPRESSIONS_STOP)
        timer.is_running = False
        timer.segment_started_at = None
        timer.last_tick_at = None
    else:
        event = record_event(
            session, now, EventCategory.CPR, LABEL_COMPRESSIONS_START
        )
        timer.is_running = True
        timer.segment_started_at = now
        timer.last_tick_at = now
    return event


def _tick_origin(timer: CompressionTimer) -> int | None:
    if timer.last_tick_at is not None:
        return timer.last_tick_at
    return timer.segment_started_at


def pending_ticks(timer: CompressionTimer, now: int) -> int:
    """Whole tick quanta that fell due since the last credited tick."""
    if not timer.is_running:
        return 0
    since = _tick_origin(timer)
    if since is None or now <= since:
        return 0
    return (now - since) // COMPRESSION_TICK_MS


def tick(session: Session, now: int) -> int:
    """
    Credit every tick quantum that fell due, one quantum per tick.

    Returns:
        Number of ticks credited
    """
    timer = session.compression_timer
    ticks = pending_ticks(timer, now)
    since = _tick_origin(timer)
    if ticks == 0 or since is None:
        return 0
    timer.accumulated_ms += ticks * COMPRESSION_TICK_MS
    timer.last_tick_at = since + ticks * COMPRESSION_TICK_MS
    return ticks


# ============================================================================
# Derived accessors
# ============================================================================


def elapsed_arrest_ms(session: Session, now: int) -> int:
    if not is_running(session) or session.arrest_timestamp is None:
        return 0
    return now - session.arrest_timestamp


def compression_total_ms(session: Session, now: int) -> int:
    """Credited compression time plus any whole ticks not yet credited."""
    timer = session.compression_timer
    return timer.accumulated_ms + pending_ticks(timer, now) * COMPRESSION_TICK_MS


def time_since_last_epinephrine_ms(session: Session, now: int) -> int | None:
    if session.last_epinephrine_at is None:
        return None
    return now - session.last_epinephrine_at


def time_since_last_shock_ms(session: Session, now: int) -> int | None:
    if session.last_shock_at is None:
        return None
    return now - session.last_shock_at


def epinephrine_count(session: Session) -> int:
    return sum(
        1
        for event in session.events
        if event.category == EventCategory.DRUG and EPINEPHRINE_MATCH in event.label
    )


def shock_count(session: Session) -> int:
    return sum(1 for event in session.events if event.category == EventCategory.SHOCK)


# ============================================================================
# Drug catalogue
# ============================================================================


def list_drugs(include_epinephrine: bool = True) -> list[DrugDescriptor]:
    """Catalogue medications, optionally without the dedicated epinephrine entry."""
    return [
        DrugDescriptor(**entry._asdict())
        for entry in DEFAULT_DRUGS
        if include_epinephrine or entry.code != EPINEPHRINE_CODE
    ]


def get_drug(code: str) -> DrugDescriptor:
    """
    Look up a catalogue medication by code (case-insensitive).

    Raises:
        ValueError: If the code is not in the catalogue
    """
    for drug in list_drugs():
        if drug.code.lower() == code.lower():
            return drug
    known = ", ".join(entry.code for entry in DEFAULT_DRUGS)
    raise ValueError(f"Unknown drug code '{code}'. Known codes: {known}")

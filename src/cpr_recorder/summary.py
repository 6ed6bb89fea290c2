"""Live timers and counts derived from a session."""

from pydantic import BaseModel, Field

from cpr_recorder import ledger
from cpr_recorder.models import Session
from cpr_recorder.utils.formatting import (
    PLACEHOLDER,
    format_clock,
    format_optional_clock,
)


class SessionSnapshot(BaseModel):
    """Derived KPIs for a session at one instant."""

    running: bool
    elapsed_arrest_ms: int = Field(description="0 while paused")
    compression_total_ms: int
    compressions_running: bool
    since_last_epinephrine_ms: int | None = None
    since_last_shock_ms: int | None = None
    epinephrine_count: int = 0
    shock_count: int = 0
    event_count: int = 0

    def format_lines(self) -> list[tuple[str, str]]:
        """Label/value pairs for the live timers panel."""
        return [
            (
                "Arrest time",
                format_clock(self.elapsed_arrest_ms) if self.running else PLACEHOLDER,
            ),
            ("CPR time", format_clock(self.compression_total_ms)),
            ("Since last EPI", format_optional_clock(self.since_last_epinephrine_ms)),
            ("Since last shock", format_optional_clock(self.since_last_shock_ms)),
            ("# EPI / # Shocks", f"{self.epinephrine_count} / {self.shock_count}"),
        ]


def summarize(session: Session, now: int) -> SessionSnapshot:
    """
    Compute the live timers and counts for a session.

    Args:
        session: Session to read
        now: Current Unix time in milliseconds

    Returns:
        Snapshot of derived values; the session is not modified
    """
    return SessionSnapshot(
        running=ledger.is_running(session),
        elapsed_arrest_ms=ledger.elapsed_arrest_ms(session, now),
        compression_total_ms=ledger.compression_total_ms(session, now),
        compressions_running=session.compression_timer.is_running,
        since_last_epinephrine_ms=ledger.time_since_last_epinephrine_ms(session, now),
        since_last_shock_ms=ledger.time_since_last_shock_ms(session, now),
        epinephrine_count=ledger.epinephrine_count(session),
        shock_count=ledger.shock_count(session),
        event_count=len(session.events),
    )

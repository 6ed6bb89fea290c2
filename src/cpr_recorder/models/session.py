"""Pydantic models for the resuscitation session state."""

from pydantic import BaseModel, Field

from cpr_recorder.models.event import Event


class CompressionTimer(BaseModel):
    """Running/accumulated-time tracker for chest compressions."""

    is_running: bool = False
    segment_started_at: int | None = Field(
        default=None, description="Unix ms when the current segment started"
    )
    accumulated_ms: int = Field(default=0, description="Credited compression time")
    last_tick_at: int | None = Field(
        default=None,
        description="Unix ms up to which whole ticks have been credited",
    )


class Session(BaseModel):
    """Full mutable state of one resuscitation record."""

    session_started_at: int | None = Field(
        default=None, description="Unix ms of the last start; None when paused"
    )
    arrest_timestamp: int | None = Field(
        default=None, description="Reference zero for event offsets"
    )
    events: list[Event] = Field(default_factory=list)
    last_epinephrine_at: int | None = None
    last_shock_at: int | None = None
    compression_timer: CompressionTimer = Field(default_factory=CompressionTimer)

    class Config:
        json_schema_extra = {
            "example": {
                "session_started_at": 1705357215000,
                "arrest_timestamp": 1705357215000,
                "events": [
                    {
                        "id": "0b6f1c1e-8d7c-4d5e-9a55-2f7d0c6b1a10",
                        "timestamp": 1705357275000,
                        "relative_offset_ms": 60000,
                        "category": "Drug",
                        "label": "Epinephrine 1 mg",
                        "details": {"dose": "1 mg", "route": "IV/IO"},
                    }
                ],
                "last_epinephrine_at": 1705357275000,
                "last_shock_at": None,
                "compression_timer": {
                    "is_running": False,
                    "segment_started_at": None,
                    "accumulated_ms": 0,
                    "last_tick_at": None,
                },
            }
        }

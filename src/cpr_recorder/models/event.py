"""Pydantic models for logged events and the drug catalogue."""

from pydantic import BaseModel, ConfigDict, Field

from cpr_recorder.constants import EventCategory

DetailValue = str | int | float


class Event(BaseModel):
    """A single timestamped action in the resuscitation log."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique event identifier (uuid4)")
    timestamp: int = Field(description="Unix timestamp in milliseconds")
    relative_offset_ms: int = Field(
        default=0, description="Milliseconds since the arrest timestamp"
    )
    category: EventCategory
    label: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


class DrugDescriptor(BaseModel):
    """A medication that can be logged with one tap."""

    model_config = ConfigDict(frozen=True)

    code: str
    label: str = ""
    default_dose: str = ""

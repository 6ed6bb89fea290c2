"""Pydantic models for the CPR recorder."""

from cpr_recorder.models.event import DetailValue, DrugDescriptor, Event
from cpr_recorder.models.patient import PatientMeta
from cpr_recorder.models.session import CompressionTimer, Session

__all__ = [
    "CompressionTimer",
    "DetailValue",
    "DrugDescriptor",
    "Event",
    "PatientMeta",
    "Session",
]

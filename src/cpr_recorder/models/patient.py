"""Pydantic model for patient identification fields."""

from pydantic import BaseModel

from cpr_recorder.constants import DEFAULT_LOCATION


class PatientMeta(BaseModel):
    """
    Free-form patient and context fields.

    Lives independently of the session: resetting a record keeps these.
    """

    patient_id: str = ""
    age: str = ""
    sex: str = ""
    weight_kg: str = ""
    location: str = DEFAULT_LOCATION
    operator: str = ""

# backend/app/models/prescription.py

from typing import Any, List, Optional

from pydantic import Field, field_validator

from .user import CamelModel

NOT_AVAILABLE = "Not available"


class MedicationDetails(CamelModel):
    name: str = Field(min_length=1)
    dosage: str = ""
    frequency: str = ""
    composition: str = Field("", description="Active ingredients")
    purpose: str = Field("", description="Why it is prescribed, in simple terms")
    side_effects: str = Field("", description="Comma-separated common side effects")

    @field_validator("dosage", "frequency", "composition", "purpose", "side_effects", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, list):
            return ", ".join(str(item) for item in v)
        return v


class PrescriptionExtraction(CamelModel):
    patient_name: str = NOT_AVAILABLE
    medications: List[MedicationDetails] = []

    @field_validator("patient_name", mode="before")
    @classmethod
    def default_patient_name(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return NOT_AVAILABLE
        return v.strip() if isinstance(v, str) else v

    @field_validator("medications", mode="before")
    @classmethod
    def none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v


class PrescriptionCreate(CamelModel):
    doctor_id: Optional[str] = None
    patient_id: str = Field(min_length=1)
    disease_details: str = ""
    medications: str = ""
    lab_tests: str = ""
    additional_notes: str = ""


class Prescription(CamelModel):
    id: str
    doctor_id: str
    patient_id: str
    doctor_name: str
    patient_name: str
    disease_details: str
    medications: str
    lab_tests: str = ""
    additional_notes: str = ""
    date_time: str

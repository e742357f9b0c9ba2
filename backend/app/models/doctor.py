# backend/app/models/doctor.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

AI_SELECTED = "AI Selected"
RANDOM_SELECTION = "Random Selection"


class Doctor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sl_no: int
    name: str
    age: int
    gender: str
    specialization: str
    experience: int
    rating: float
    short_description: str = ""
    email: str


class DoctorSelection(BaseModel):
    """Output schema the model fills in when picking a doctor."""

    selectedDoctorName: str = Field(description="Exact name of one doctor from the list")
    reason: str = Field(description="Short justification for the selection")
    matchQuality: int = Field(ge=1, le=10, description="Match quality from 1 to 10")


class MatchResult(Doctor):
    reason: str
    matchType: str
    matchAccuracy: str
    message: str


class DoctorMatchRequest(BaseModel):
    description: str = ""
    userId: Optional[str] = None

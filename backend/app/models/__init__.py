"""Pydantic models for the health-services backend."""

from .diet import DietPlan, DietProfile, Meal
from .doctor import (
    AI_SELECTED,
    RANDOM_SELECTION,
    Doctor,
    DoctorMatchRequest,
    DoctorSelection,
    MatchResult,
)
from .prescription import (
    NOT_AVAILABLE,
    MedicationDetails,
    Prescription,
    PrescriptionCreate,
    PrescriptionExtraction,
)
from .user import FeatureUsage, Role, User, UserProfile

__all__ = [
    "AI_SELECTED",
    "RANDOM_SELECTION",
    "NOT_AVAILABLE",
    "DietPlan",
    "DietProfile",
    "Doctor",
    "DoctorMatchRequest",
    "DoctorSelection",
    "FeatureUsage",
    "MatchResult",
    "Meal",
    "MedicationDetails",
    "Prescription",
    "PrescriptionCreate",
    "PrescriptionExtraction",
    "Role",
    "User",
    "UserProfile",
]

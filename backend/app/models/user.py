# backend/app/models/user.py

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"


class CamelModel(BaseModel):
    """Snake-case fields in Python, camelCase on the wire and in storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserProfile(CamelModel):
    uid: str = Field(min_length=1)
    email: Optional[str] = None
    name: str = Field(min_length=1)
    role: Role
    age: Optional[int] = Field(None, gt=0)
    gender: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
    food_preference: Optional[str] = None
    avatar: Optional[str] = None


class User(UserProfile):
    model_config = ConfigDict(extra="ignore")

    # Profile fields are optional here: counters can create a bare record
    name: Optional[str] = None
    role: Optional[Role] = None
    search_count: int = 0
    diet_plan_count: int = 0
    prescription_scan_count: int = 0
    diet_info: Optional[Dict[str, Any]] = None

    def display_name(self) -> str:
        return self.name or self.email or self.uid


class FeatureUsage(BaseModel):
    used: int
    limit: int
    remaining: int

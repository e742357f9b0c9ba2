# backend/app/models/diet.py

from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from .user import CamelModel


class DietProfile(CamelModel):
    height: float = Field(gt=0, description="Height in centimeters")
    weight: float = Field(gt=0, description="Weight in kilograms")
    age: int = Field(gt=0)
    lifestyle: str = Field(min_length=1, description="e.g. sedentary, moderately active")
    cuisine_preferences: str = ""
    food_preference: str = Field(min_length=1, description="e.g. Vegetarian, Vegan, Jain")
    special_conditions: str = ""
    has_diabetes: bool = False
    has_blood_pressure: bool = False
    has_thyroid: bool = False


class Meal(BaseModel):
    meal_time: str = Field(description="e.g. Breakfast, Lunch, Dinner, Snack")
    food_items: str = Field(description="Comma-separated list of food items")
    calories: int = Field(ge=0, description="Estimated calories for the meal")

    @field_validator("food_items", mode="before")
    @classmethod
    def join_food_items(cls, v: Any) -> Any:
        if isinstance(v, list):
            return ", ".join(str(item) for item in v)
        return v

    @field_validator("calories", mode="before")
    @classmethod
    def round_calories(cls, v: Any) -> Any:
        if isinstance(v, float):
            return int(round(v))
        return v


class DietPlan(BaseModel):
    meals: List[Meal] = Field(min_length=1, description="Meals for a single day")

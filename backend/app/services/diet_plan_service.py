# backend/app/services/diet_plan_service.py

import logging
import re
from typing import FrozenSet, List

from app.core.errors import GenerationError
from app.models import DietPlan, DietProfile

logger = logging.getLogger(__name__)

DIET_PROMPT = """You are a registered dietitian. Generate a personalized diet plan for a single day based on the user's details.

User Details:
Height: {{height}} cm
Weight: {{weight}} kg
Age: {{age}} years
Lifestyle: {{lifestyle}}
Cuisine Preferences: {{cuisine_preferences}}
Food Preference: {{food_preference}}
{{#if has_diabetes}}
- The user has Diabetes. The diet should be sugar-free and low-carb.
{{/if}}
{{#if has_blood_pressure}}
- The user has High Blood Pressure. The diet should be low in sodium.
{{/if}}
{{#if has_thyroid}}
- The user has a Thyroid condition. The diet should include iodine-rich foods and avoid goitrogens.
{{/if}}
{{#if special_conditions}}
Other conditions: {{special_conditions}}
{{/if}}

IMPORTANT: The diet plan MUST be strictly {{food_preference}}.

Based on the above, create a detailed diet plan for a single day. Provide a list of meals (Breakfast, Lunch, Dinner, and optional snacks). For each meal, list the food items and an estimated calorie count."""

MEAT_AND_FISH = frozenset({
    "meat", "chicken", "mutton", "beef", "pork", "lamb", "bacon", "ham", "turkey",
    "sausage", "fish", "salmon", "tuna", "prawn", "shrimp", "crab", "lobster", "keema",
})
EGGS = frozenset({"egg", "omelette", "omelet"})
DAIRY = frozenset({
    "milk", "paneer", "cheese", "curd", "yogurt", "yoghurt", "ghee", "butter",
    "cream", "buttermilk", "whey", "lassi", "raita", "khoa",
})
ROOT_VEGETABLES = frozenset({
    "potato", "onion", "garlic", "carrot", "beetroot", "radish", "ginger", "yam",
})
HONEY = frozenset({"honey"})

FORBIDDEN_BY_PREFERENCE = {
    "vegan": MEAT_AND_FISH | EGGS | DAIRY | HONEY,
    "vegetarian": MEAT_AND_FISH | EGGS,
    "jain": MEAT_AND_FISH | EGGS | ROOT_VEGETABLES | HONEY,
}

# "almond milk", "peanut butter" and the like are plant based
_PLANT_QUALIFIED = re.compile(
    r"\b(?:almond|soy|soya|oat|coconut|rice|cashew|peanut|nut|cocoa|vegan|plant[- ]based)\s+"
    r"(?:milk|yogurt|yoghurt|curd|butter|cream|cheese|paneer|ghee)\b"
)
_WORD = re.compile(r"[a-z]+")


def forbidden_tokens(food_preference: str) -> FrozenSet[str]:
    key = food_preference.strip().lower()
    for name, tokens in FORBIDDEN_BY_PREFERENCE.items():
        if key.startswith(name):
            return tokens
    return frozenset()


def _word_forms(word: str) -> FrozenSet[str]:
    """The word plus its likely singulars (eggs -> egg, potatoes -> potato)."""
    forms = {word}
    if word.endswith("s"):
        forms.add(word[:-1])
    if word.endswith("es"):
        forms.add(word[:-2])
    return frozenset(forms)


def flagged_items(plan: DietPlan, food_preference: str) -> List[str]:
    """Food-item words in the plan that the stated food preference rules out."""
    forbidden = forbidden_tokens(food_preference)
    if not forbidden:
        return []
    flagged = []
    for meal in plan.meals:
        text = _PLANT_QUALIFIED.sub(" ", meal.food_items.lower())
        for word in _WORD.findall(text):
            if _word_forms(word) & forbidden:
                flagged.append(word)
    return flagged


class DietPlanPolicy:
    """Generates a one-day meal plan. Failures propagate; there is no fallback plan."""

    def __init__(self, generator):
        self.generator = generator

    async def plan(self, profile: DietProfile) -> DietPlan:
        logger.info(
            "Generating %s diet plan (diabetes=%s, bp=%s, thyroid=%s)",
            profile.food_preference,
            profile.has_diabetes,
            profile.has_blood_pressure,
            profile.has_thyroid,
        )
        plan = await self.generator.generate(
            DIET_PROMPT, profile.model_dump(), DietPlan
        )

        flagged = flagged_items(plan, profile.food_preference)
        if flagged:
            logger.warning(
                "Generated plan is not %s, contains: %s",
                profile.food_preference,
                ", ".join(sorted(set(flagged))),
            )
            raise GenerationError(
                f"Generated plan does not respect the {profile.food_preference} preference"
            )
        return plan

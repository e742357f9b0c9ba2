# backend/app/services/doctor_match_service.py

import logging
import random
from typing import List, Optional

from app.core.errors import CatalogEmptyError, GenerationError, ValidationError
from app.models import AI_SELECTED, RANDOM_SELECTION, Doctor, DoctorSelection, MatchResult

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 20
MIN_MATCH_QUALITY = 6

GOOD_MATCH_MESSAGE = "Good match found based on symptoms/disease"
NO_MATCH_MESSAGE = "No specific match found - showing available doctor"
AI_FAILED_MESSAGE = "AI processing failed - showing available doctor"
AI_FAILED_ACCURACY = 50

SYSTEM_PROMPT = "You match patients to doctors. You only ever choose doctors from the list you are given."

MATCH_PROMPT = """
Task: Based on the disease/symptom description and available doctors, decide:
1. Analyze the medical requirements and symptoms
2. Select the best-suited doctor (name only)
3. Provide a short justification for the selected doctor
4. Rate the match quality from 1-10 (10 being perfect match)

Rules:
- Do NOT mention doctors not in the list.
- Only suggest ONE doctor who is most suitable.
- Consider specialization, experience, and rating.
- If no doctor seems particularly suitable, rate the match as 5 or below.
- Return the doctor's name exactly as written in the list.

Disease/Symptom Description:
{{description}}

Available Doctors:
{{doctors}}
"""


def validate_description(description: Optional[str]) -> str:
    text = (description or "").strip()
    if len(text) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            "Please provide a detailed disease/symptom description (min 20 characters)."
        )
    return text


def format_doctors(doctors: List[Doctor]) -> str:
    return "\n".join(
        f"Doctor {i}:\n"
        f"Name: {d.name}\n"
        f"Age: {d.age}\n"
        f"Description: {d.short_description}\n"
        f"Specialization: {d.specialization}\n"
        f"Experience: {d.experience} years\n"
        f"Gender: {d.gender}\n"
        f"Rating: {d.rating:g}/10\n"
        f"Email: {d.email}\n"
        for i, d in enumerate(doctors, start=1)
    )


# Fragments shorter than this ("Dr", "Dr.") are titles, not names.
MIN_FRAGMENT_LENGTH = 5


def find_by_name(doctors: List[Doctor], name: str) -> Optional[Doctor]:
    """Case-insensitive lookup on the catalog name.

    An exact match wins. Otherwise a fragment of at least MIN_FRAGMENT_LENGTH
    characters resolves only when it appears in exactly one catalog name.
    """
    wanted = name.strip().casefold()
    if not wanted:
        return None
    for d in doctors:
        if d.name.strip().casefold() == wanted:
            return d
    if len(wanted) < MIN_FRAGMENT_LENGTH:
        return None
    partial = [d for d in doctors if wanted in d.name.casefold()]
    return partial[0] if len(partial) == 1 else None


class DoctorMatchPolicy:
    """Picks one doctor from the catalog for a symptom description.

    Once the description is valid and the catalog non-empty this always
    returns a doctor. Model failures, weak matches and unknown names fall
    back to a uniformly random catalog entry.
    """

    def __init__(self, generator, catalog, rng: Optional[random.Random] = None):
        self.generator = generator
        self.catalog = catalog
        self.rng = rng or random.Random()

    async def match(self, description: str) -> MatchResult:
        description = validate_description(description)

        doctors = await self.catalog.list_doctors()
        if not doctors:
            raise CatalogEmptyError("No doctors found in the database.")

        logger.info("Matching description against %d doctors", len(doctors))
        try:
            selection = await self.generator.generate(
                MATCH_PROMPT,
                {"description": description, "doctors": format_doctors(doctors)},
                DoctorSelection,
                system_prompt=SYSTEM_PROMPT,
            )
        except GenerationError as e:
            logger.warning("AI processing failed, falling back to random selection: %s", e)
            return self._result(
                self.rng.choice(doctors),
                reason=AI_FAILED_MESSAGE,
                match_type=RANDOM_SELECTION,
                accuracy=AI_FAILED_ACCURACY,
                message=AI_FAILED_MESSAGE,
            )

        accuracy = selection.matchQuality * 10
        doctor = None
        if selection.matchQuality >= MIN_MATCH_QUALITY:
            doctor = find_by_name(doctors, selection.selectedDoctorName)
            if doctor is None:
                logger.warning(
                    "Model chose %r which is not in the catalog", selection.selectedDoctorName
                )

        if doctor is None:
            logger.info("No specific match (quality %d/10), selecting random doctor", selection.matchQuality)
            return self._result(
                self.rng.choice(doctors),
                reason=NO_MATCH_MESSAGE,
                match_type=RANDOM_SELECTION,
                accuracy=accuracy,
                message=NO_MATCH_MESSAGE,
            )

        logger.info("Matched %s with %d%% accuracy", doctor.name, accuracy)
        return self._result(
            doctor,
            reason=selection.reason,
            match_type=AI_SELECTED,
            accuracy=accuracy,
            message=GOOD_MATCH_MESSAGE,
        )

    @staticmethod
    def _result(doctor: Doctor, reason: str, match_type: str, accuracy: int, message: str) -> MatchResult:
        return MatchResult(
            **doctor.model_dump(),
            reason=reason,
            matchType=match_type,
            matchAccuracy=f"{accuracy}%",
            message=message,
        )

# backend/app/api/routes/ai_routes.py

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from pydantic import ValidationError as SchemaError

from app.api.dependencies import ServiceContainer, get_services
from app.core.errors import AuthError, GenerationError, ValidationError
from app.models import DietPlan, DietProfile, PrescriptionExtraction
from app.services.quota_ledger import Feature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])


@router.post("/diet-plan", response_model=DietPlan)
async def diet_plan(
    body: Dict[str, Any] = Body(...),
    services: ServiceContainer = Depends(get_services),
):
    """
    Generate a one-day meal plan. The body is the diet profile plus userId;
    identity is checked before the profile is validated.
    """
    user_id = body.get("userId") or body.get("user_id")
    if not user_id:
        raise AuthError("User not authenticated.")
    try:
        profile = DietProfile.model_validate(body)
    except SchemaError as e:
        raise ValidationError(
            f"Invalid diet profile: {e.error_count()} field(s) failed validation"
        ) from e

    await services.ledger.ensure_allowed(user_id, Feature.DIET_PLAN)
    try:
        plan = await services.diet_plan.plan(profile)
    except GenerationError as e:
        logger.error("Diet plan generation failed for %s: %s", user_id, e)
        raise GenerationError("Failed to generate diet plan.") from e

    await services.ledger.commit(
        user_id, Feature.DIET_PLAN, record={"dietInfo": profile.model_dump(by_alias=True)}
    )
    return plan


@router.post("/prescription-scan", response_model=PrescriptionExtraction)
async def prescription_scan(
    image: UploadFile = File(...),
    user_id: Optional[str] = Form(None, alias="userId"),
    services: ServiceContainer = Depends(get_services),
):
    """
    Read a prescription photo: patient name plus every medication with
    dosage, frequency, composition, purpose and side effects.
    """
    if not user_id:
        raise AuthError("User not authenticated.")
    await services.ledger.ensure_allowed(user_id, Feature.PRESCRIPTION_SCAN)

    image_bytes = await image.read()
    try:
        result = await services.prescription_scan.extract(
            image_bytes, image.content_type or ""
        )
    except GenerationError as e:
        logger.error("Prescription scan failed for %s: %s", user_id, e)
        raise GenerationError("Failed to scan prescription.") from e

    await services.ledger.commit(user_id, Feature.PRESCRIPTION_SCAN)
    return result

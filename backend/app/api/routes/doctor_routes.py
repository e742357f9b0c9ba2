# backend/app/api/routes/doctor_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends

from app.api.dependencies import ServiceContainer, get_services
from app.core.errors import AuthError
from app.models import Doctor, DoctorMatchRequest, MatchResult
from app.services.doctor_match_service import validate_description
from app.services.quota_ledger import Feature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["doctors"])


@router.get("/doctors", response_model=List[Doctor])
async def list_doctors(services: ServiceContainer = Depends(get_services)):
    logger.info("Fetching all doctors...")
    return await services.catalog.list_doctors()


@router.post("/doctor-match", response_model=MatchResult)
async def doctor_match(
    body: DoctorMatchRequest,
    services: ServiceContainer = Depends(get_services),
):
    """
    Pick the best doctor for a symptom description.
    Consumes one doctor search from the user's quota on success.
    """
    if not body.userId:
        raise AuthError("User not authenticated.")
    validate_description(body.description)

    await services.ledger.ensure_allowed(body.userId, Feature.DOCTOR_SEARCH)

    result = await services.doctor_match.match(body.description)
    await services.ledger.commit(body.userId, Feature.DOCTOR_SEARCH)
    return result

# backend/app/api/routes/user_routes.py

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from app.api.dependencies import ServiceContainer, get_services
from app.models import FeatureUsage, User, UserProfile

router = APIRouter(tags=["users"])


@router.post("/users", response_model=User)
async def onboard_user(profile: UserProfile, services: ServiceContainer = Depends(get_services)):
    return await services.directory.onboard(profile)


@router.get("/users/{uid}", response_model=User)
async def get_user(uid: str, services: ServiceContainer = Depends(get_services)):
    return await services.directory.get(uid)


@router.get("/users/{uid}/quota", response_model=Dict[str, FeatureUsage])
async def get_quota(uid: str, services: ServiceContainer = Depends(get_services)):
    return await services.ledger.usage(uid)


@router.get("/users/{uid}/diet-info")
async def get_diet_info(uid: str, services: ServiceContainer = Depends(get_services)) -> Optional[Dict[str, Any]]:
    return await services.directory.diet_info(uid)


@router.get("/patients", response_model=List[User])
async def list_patients(services: ServiceContainer = Depends(get_services)):
    return await services.directory.patients()

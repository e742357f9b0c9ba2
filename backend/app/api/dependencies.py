# backend/app/api/dependencies.py
"""
Service container built once at startup and handed to routes through
FastAPI dependencies. It owns the MongoDB and model client handles and closes
them on shutdown.
"""

import logging
import random
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request
from pymongo import AsyncMongoClient

from app.core.config import Settings
from app.services.diet_plan_service import DietPlanPolicy
from app.services.doctor_match_service import DoctorMatchPolicy
from app.services.generation_client import (
    StructuredGenerationClient,
    build_model_client,
    model_name,
)
from app.services.mailer import BrevoMailer
from app.services.prescription_scan_service import PrescriptionScanPolicy
from app.services.prescription_service import PrescriptionBook
from app.services.quota_ledger import QuotaLedger, limits_from_settings
from app.services.stores import (
    InMemoryDoctorCatalog,
    InMemoryPrescriptionStore,
    InMemoryUserStore,
    MongoDoctorCatalog,
    MongoPrescriptionStore,
    MongoUserStore,
)
from app.services.user_service import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    catalog: Any
    directory: UserDirectory
    ledger: QuotaLedger
    doctor_match: DoctorMatchPolicy
    diet_plan: DietPlanPolicy
    prescription_scan: PrescriptionScanPolicy
    prescriptions: PrescriptionBook
    mailer: BrevoMailer
    model_client: Any = None
    mongo_client: Optional[AsyncMongoClient] = None

    async def close(self) -> None:
        if self.model_client is not None:
            await self.model_client.close()
        if self.mongo_client is not None:
            await self.mongo_client.close()
        logger.info("Service clients closed")


def assemble_services(
    settings: Settings,
    users,
    catalog,
    prescription_store,
    model_client,
    mongo_client: Optional[AsyncMongoClient] = None,
    rng: Optional[random.Random] = None,
    mailer: Optional[BrevoMailer] = None,
) -> ServiceContainer:
    generator = StructuredGenerationClient(
        model_client, model_name(settings), timeout=settings.MODEL_TIMEOUT_SECONDS
    )
    directory = UserDirectory(users)
    return ServiceContainer(
        catalog=catalog,
        directory=directory,
        ledger=QuotaLedger(users, limits_from_settings(settings)),
        doctor_match=DoctorMatchPolicy(generator, catalog, rng=rng),
        diet_plan=DietPlanPolicy(generator),
        prescription_scan=PrescriptionScanPolicy(generator),
        prescriptions=PrescriptionBook(directory, prescription_store),
        mailer=mailer or BrevoMailer(settings.BREVO_API_KEY, settings.SENDER_EMAIL, settings.SENDER_NAME),
        model_client=model_client,
        mongo_client=mongo_client,
    )


def build_services(settings: Settings) -> ServiceContainer:
    """Create real clients from settings."""
    model_client = build_model_client(settings)

    if not settings.MONGODB_URI:
        logger.warning("MONGODB_URI not set; using in-memory stores")
        return assemble_services(
            settings,
            InMemoryUserStore(),
            InMemoryDoctorCatalog(),
            InMemoryPrescriptionStore(),
            model_client,
        )

    mongo_client = AsyncMongoClient(settings.MONGODB_URI)
    db = mongo_client[settings.MONGODB_DB]
    logger.info("Using MongoDB database %s", settings.MONGODB_DB)
    return assemble_services(
        settings,
        MongoUserStore(db["users"]),
        MongoDoctorCatalog(db["doctors"]),
        MongoPrescriptionStore(db["prescriptions"]),
        model_client,
        mongo_client=mongo_client,
    )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services

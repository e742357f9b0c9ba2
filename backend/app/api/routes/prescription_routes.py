# backend/app/api/routes/prescription_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.dependencies import ServiceContainer, get_services
from app.models import Prescription, PrescriptionCreate

router = APIRouter(prefix="/prescriptions", tags=["prescriptions"])


@router.post("", response_model=Prescription)
async def write_prescription(body: PrescriptionCreate, services: ServiceContainer = Depends(get_services)):
    return await services.prescriptions.write(body)


@router.get("", response_model=List[Prescription])
async def list_prescriptions(
    patientId: Optional[str] = None,
    doctorId: Optional[str] = None,
    services: ServiceContainer = Depends(get_services),
):
    """Prescriptions for one patient or written by one doctor."""
    return await services.prescriptions.list(patient_id=patientId, doctor_id=doctorId)

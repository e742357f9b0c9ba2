# backend/app/services/prescription_service.py

import logging
from datetime import datetime
from typing import List, Optional

from app.core.errors import AuthError, ValidationError
from app.models import Prescription, PrescriptionCreate, Role

logger = logging.getLogger(__name__)


def format_timestamp(now: datetime) -> str:
    # e.g. "October 19, 2026 at 04:45 PM"
    return f"{now.strftime('%B')} {now.day}, {now.year} at {now.strftime('%I:%M %p')}"


class PrescriptionBook:
    """Doctor-authored prescriptions."""

    def __init__(self, directory, prescriptions, clock=datetime.now):
        self.directory = directory
        self.prescriptions = prescriptions
        self.clock = clock

    async def write(self, request: PrescriptionCreate) -> Prescription:
        if not request.doctor_id:
            raise AuthError("User not authenticated.")
        doctor = await self.directory.find(request.doctor_id)
        if doctor is None or doctor.role != Role.DOCTOR:
            raise AuthError("Only doctors can write prescriptions.")

        patient = await self.directory.find(request.patient_id)
        if patient is None or patient.role != Role.PATIENT:
            raise ValidationError("Please select a valid patient.")
        if not request.disease_details.strip() or not request.medications.strip():
            raise ValidationError(
                "Please select a patient, fill in disease details, and add medications."
            )

        record = {
            "doctorId": doctor.uid,
            "patientId": patient.uid,
            "doctorName": doctor.display_name(),
            "patientName": patient.display_name(),
            "diseaseDetails": request.disease_details,
            "labTests": request.lab_tests,
            "medications": request.medications,
            "additionalNotes": request.additional_notes,
            "dateTime": format_timestamp(self.clock()),
        }
        record_id = await self.prescriptions.add(record)
        logger.info("Saved prescription %s for patient %s", record_id, patient.uid)
        return Prescription.model_validate({**record, "id": record_id})

    async def list(self, patient_id: Optional[str] = None, doctor_id: Optional[str] = None) -> List[Prescription]:
        if bool(patient_id) == bool(doctor_id):
            raise ValidationError("Provide exactly one of patientId or doctorId.")
        filters = {"patientId": patient_id} if patient_id else {"doctorId": doctor_id}
        docs = await self.prescriptions.find(filters)
        return [Prescription.model_validate(d) for d in docs]

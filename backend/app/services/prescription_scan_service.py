# backend/app/services/prescription_scan_service.py

import logging

from app.core.errors import ValidationError
from app.models import PrescriptionExtraction
from app.services.generation_client import to_data_uri

logger = logging.getLogger(__name__)

SCAN_PROMPT = """You are an expert pharmacist and medical analyst. You will be provided with an image of a prescription. Your tasks are:
1. Extract the patient's name. If not available, return "Not available".
2. Identify EACH and EVERY medication listed on the prescription.
3. For each medication, extract the following details:
    - The medication name.
    - The dosage (e.g., "500mg", "1 tablet").
    - The frequency (e.g., "Once a day", "Twice a day before food").
4. Using your knowledge base, provide the following for each medication:
    - The medical composition (the active ingredients).
    - The purpose of the medicine, explained in simple, easy-to-understand terms.
    - A list of common, basic side effects.
5. Decode any complex medical jargon into simple terms within your explanations.
6. If no medication can be read, return an empty medications list. Do NOT invent medicine names.

Format the output as a JSON object with the patient's name and a list of all extracted medication details."""


class PrescriptionScanPolicy:
    """Reads a prescription photo with a vision model. No local OCR, no fallback."""

    def __init__(self, generator):
        self.generator = generator

    async def extract(self, image: bytes, content_type: str) -> PrescriptionExtraction:
        if not image:
            raise ValidationError("Please upload a prescription image.")
        if not (content_type or "").startswith("image/"):
            raise ValidationError("Prescription must be an image file.")

        logger.info("Scanning prescription image (%s, %d bytes)", content_type, len(image))
        result = await self.generator.generate(
            SCAN_PROMPT,
            {},
            PrescriptionExtraction,
            image_data_uri=to_data_uri(image, content_type),
        )
        logger.info("Extracted %d medications", len(result.medications))
        return result

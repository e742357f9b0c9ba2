# backend/app/services/mailer.py

import logging
from typing import Any, Dict, List, Optional

import requests

from app.core.errors import EmailDeliveryError, ValidationError

logger = logging.getLogger(__name__)

BREVO_ENDPOINT = "https://api.brevo.com/v3/smtp/email"
DEFAULT_SUBJECT = "Registration Confirmation Email"
DEFAULT_HTML = "<p>WELCOME TO SANSTHAPANA!</p>"


class BrevoMailer:
    """Sends transactional email through the Brevo REST API."""

    def __init__(self, api_key: str, sender_email: str, sender_name: str, session=None):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.session = session or requests.Session()

    def send(
        self,
        recipients: List[Dict[str, Any]],
        subject: Optional[str] = None,
        html_content: Optional[str] = None,
    ) -> None:
        if not recipients:
            raise ValidationError("Recipients array is required")
        if not self.api_key or not self.sender_email:
            raise EmailDeliveryError("BREVO_API_KEY or SENDER_EMAIL is missing")

        payload = {
            "to": recipients,
            "sender": {"email": self.sender_email, "name": self.sender_name},
            "subject": subject or DEFAULT_SUBJECT,
            "htmlContent": html_content or DEFAULT_HTML,
        }
        headers = {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }

        try:
            response = self.session.post(BREVO_ENDPOINT, json=payload, headers=headers, timeout=10)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("Send email failed: %s", e)
            raise EmailDeliveryError(f"Failed to send email: {e}") from e

        logger.info("Sent '%s' to %d recipient(s)", payload["subject"], len(recipients))

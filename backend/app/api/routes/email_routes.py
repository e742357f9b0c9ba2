# backend/app/api/routes/email_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.dependencies import ServiceContainer, get_services


class Recipient(BaseModel):
    email: str
    name: Optional[str] = None


class EmailRequest(BaseModel):
    recipients: List[Recipient] = []
    subject: Optional[str] = None
    htmlContent: Optional[str] = None


router = APIRouter(tags=["email"])


@router.post("/email")
def send_email(body: EmailRequest, services: ServiceContainer = Depends(get_services)):
    # sync route: requests blocks, FastAPI runs it in the threadpool
    services.mailer.send(
        [r.model_dump(exclude_none=True) for r in body.recipients],
        subject=body.subject,
        html_content=body.htmlContent,
    )
    return {"success": True}

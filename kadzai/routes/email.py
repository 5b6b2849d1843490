"""
Kadzai Backend — Email Routes
==============================

POST /api/send-email   booking confirmation to the traveller
POST /api/contact      contact-form message to the company inbox
"""

from fastapi import APIRouter

from kadzai.schemas.common import ErrorResponse
from kadzai.schemas.email import BookingEmailRequest, ContactRequest, EmailSentResponse
from kadzai.services.email_service import email_service

router = APIRouter(prefix="/api", tags=["Email"])


@router.post(
    "/send-email",
    response_model=EmailSentResponse,
    response_model_exclude_none=True,
    responses={
        400: {"description": "Invalid booking payload", "model": ErrorResponse},
        500: {"description": "SMTP delivery failed", "model": ErrorResponse},
    },
    summary="Send a booking confirmation email",
)
async def send_booking_email(body: BookingEmailRequest) -> EmailSentResponse:
    await email_service.send_booking_confirmation(body.to, body.booking)
    return EmailSentResponse(success=True)


@router.post(
    "/contact",
    response_model=EmailSentResponse,
    responses={
        400: {"description": "Missing required fields", "model": ErrorResponse},
        500: {"description": "SMTP delivery failed", "model": ErrorResponse},
    },
    summary="Relay a contact-form message",
)
async def contact(body: ContactRequest) -> EmailSentResponse:
    await email_service.send_contact_message(body)
    return EmailSentResponse(success=True, message="Message sent successfully")

"""
Kadzai Backend — Email Service
===============================

What:  Builds and sends the two transactional emails: the booking
       confirmation to a traveller and contact-form messages to the company inbox.
How:   `email.message.EmailMessage` (plain-text part + HTML alternative) sent
       with `smtplib` over STARTTLS. smtplib blocks, so delivery runs in a
       worker thread; tenacity retries connection-level failures.
Who:   POST /api/send-email and POST /api/contact.

Every user-supplied value is HTML-escaped before it goes into a template.
"""

import asyncio
import logging
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from html import escape

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from kadzai.config import settings
from kadzai.exceptions import EmailDeliveryError
from kadzai.schemas.email import BookingEmailDetails, ContactRequest

logger = logging.getLogger(__name__)

# Connection-level failures worth another attempt. Authentication and
# recipient refusals are SMTPException subclasses too but are final.
TRANSIENT_SMTP_ERRORS = (
    smtplib.SMTPConnectError,
    smtplib.SMTPServerDisconnected,
    ConnectionError,
    TimeoutError,
)


def format_travel_date(value: str) -> str:
    """ISO date/datetime → "7 March 2025"; anything else is shown as given."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"{parsed.day} {parsed:%B %Y}"


def format_naira(amount: float) -> str:
    if float(amount).is_integer():
        return f"₦{amount:,.0f}"
    return f"₦{amount:,.2f}"


class EmailService:

    # ── Message builders ──────────────────────────────────────────────────

    def build_booking_confirmation(self, to: str, booking: BookingEmailDetails) -> EmailMessage:
        company = settings.mail_from_name
        reference = escape(booking.reference)
        passengers = "".join(
            f"<li>{escape(p.name)} - Seat {escape(p.seat)}</li>" for p in booking.passengers
        )
        travel_date = escape(format_travel_date(booking.date))
        total = format_naira(booking.total_amount)

        html = f"""
        <h1>Your {escape(company)} Booking Confirmation: {reference}</h1>
        <h2>Trip Details</h2>
        <p><strong>Route:</strong> {escape(booking.origin)} → {escape(booking.destination)}</p>
        <p><strong>Date:</strong> {travel_date}</p>
        <p><strong>Time:</strong> {escape(booking.time)}</p>
        <h3>Passengers ({len(booking.passengers)})</h3>
        <ul>{passengers}</ul>
        <p>Total Paid: {total}</p>
        <p>Need help? Contact our support team at {escape(settings.support_email)}</p>
        """
        text = "\n".join(
            [
                f"Booking confirmation: {booking.reference}",
                f"Route: {booking.origin} -> {booking.destination}",
                f"Date: {format_travel_date(booking.date)}",
                f"Time: {booking.time}",
                "Passengers:",
                *[f"  - {p.name} (seat {p.seat})" for p in booking.passengers],
                f"Total paid: {total}",
                f"Support: {settings.support_email}",
            ]
        )

        message = EmailMessage()
        message["Subject"] = f"Your Travel Ticket Confirmation: {booking.reference}"
        message["From"] = formataddr((company, settings.sender_address))
        message["To"] = to
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def build_contact_message(self, payload: ContactRequest) -> EmailMessage:
        company = settings.mail_from_name
        html = f"""
        <h1>New Message from {escape(company)} Contact Form</h1>
        <p><strong>Name:</strong> {escape(payload.name)}</p>
        <p><strong>Email:</strong> {escape(payload.email or 'Not provided')}</p>
        <p><strong>Phone:</strong> {escape(payload.phone)}</p>
        <hr />
        <h2>Message:</h2>
        <p style="white-space: pre-wrap;">{escape(payload.message)}</p>
        """

        message = EmailMessage()
        message["Subject"] = f"New Contact Form Message from {payload.name}"
        # The relay only sends as our own account; the visitor goes in Reply-To
        message["From"] = formataddr((payload.name, settings.sender_address))
        message["To"] = settings.contact_recipient
        if payload.email:
            message["Reply-To"] = payload.email
        message.set_content(
            f"Name: {payload.name}\nEmail: {payload.email or 'Not provided'}\n"
            f"Phone: {payload.phone}\n\n{payload.message}"
        )
        message.add_alternative(html, subtype="html")
        return message

    # ── Sending ───────────────────────────────────────────────────────────

    async def send_booking_confirmation(self, to: str, booking: BookingEmailDetails) -> None:
        message = self.build_booking_confirmation(to, booking)
        await self._send(message, failure_message="Failed to send email")
        logger.info("Booking confirmation %s sent", booking.reference)

    async def send_contact_message(self, payload: ContactRequest) -> None:
        message = self.build_contact_message(payload)
        await self._send(message, failure_message="Failed to send message")
        logger.info("Contact form message relayed to inbox")

    async def _send(self, message: EmailMessage, failure_message: str) -> None:
        try:
            await self._deliver_with_retry(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "SMTP delivery failed (%s): %s",
                type(e).__name__,
                str(e),
            )
            raise EmailDeliveryError(
                failure_message,
                context={"error_type": type(e).__name__},
            )

    @retry(
        retry=retry_if_exception_type(TRANSIENT_SMTP_ERRORS),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _deliver_with_retry(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._deliver, message)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(
            settings.smtp_host,
            settings.smtp_port,
            timeout=settings.smtp_timeout,
        ) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls(context=ssl.create_default_context())
            if settings.smtp_username and settings.smtp_password:
                smtp.login(settings.smtp_username, settings.smtp_password)
            smtp.send_message(message)


email_service = EmailService()

"""
Kadzai Backend — Email Service Unit Tests
==========================================

What we test:
    ✅ Booking confirmation subject, recipients, formatted date and Naira total
    ✅ User-supplied values are HTML-escaped
    ✅ Contact message headers (Reply-To visitor, "Not provided" email)
    ✅ SMTP session: STARTTLS, login, send
    ✅ SMTP failures surface as EmailDeliveryError with the route's message
"""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from kadzai.exceptions import EmailDeliveryError
from kadzai.schemas.email import BookingEmailDetails, ContactRequest
from kadzai.services.email_service import EmailService, format_naira, format_travel_date


@pytest.fixture
def booking_details():
    return BookingEmailDetails.model_validate({
        "reference": "TE1A2B3C4D",
        "from": "Lagos",
        "to": "Abuja",
        "date": "2025-03-07T00:00:00.000Z",
        "time": "08:00",
        "passengers": [
            {"name": "Ada Obi", "seat": "1A"},
            {"name": "Tunde <b>Obi</b>", "seat": "1B"},
        ],
        "totalAmount": 30000,
    })


def _html(message) -> str:
    return message.get_body(preferencelist=("html",)).get_content()


def _text(message) -> str:
    return message.get_body(preferencelist=("plain",)).get_content()


class TestFormatting:

    def test_travel_date(self):
        assert format_travel_date("2025-03-07") == "7 March 2025"
        assert format_travel_date("2025-12-25T10:00:00Z") == "25 December 2025"

    def test_unparseable_date_is_kept(self):
        assert format_travel_date("Friday") == "Friday"

    def test_naira(self):
        assert format_naira(15000) == "₦15,000"
        assert format_naira(1500.5) == "₦1,500.50"


class TestMessageBuilders:

    def setup_method(self):
        self.service = EmailService()

    def test_booking_confirmation(self, booking_details):
        message = self.service.build_booking_confirmation("ada@example.com", booking_details)

        assert message["Subject"] == "Your Travel Ticket Confirmation: TE1A2B3C4D"
        assert message["To"] == "ada@example.com"
        assert "bookings@kadzai.test" in message["From"]

        html = _html(message)
        assert "Lagos → Abuja" in html
        assert "7 March 2025" in html
        assert "₦30,000" in html
        assert "Passengers (2)" in html
        assert "Ada Obi - Seat 1A" in html
        assert "&lt;b&gt;Obi&lt;/b&gt;" in html
        assert "<b>Obi</b>" not in html
        assert "kdztransportation@gmail.com" in html

        assert "TE1A2B3C4D" in _text(message)

    def test_contact_message(self):
        payload = ContactRequest(
            name="Chidi", email="chidi@example.com", phone="08012345678", message="Hello\nthere"
        )

        message = self.service.build_contact_message(payload)

        assert message["Subject"] == "New Contact Form Message from Chidi"
        assert message["To"] == "inbox@kadzai.test"
        assert message["Reply-To"] == "chidi@example.com"
        assert "Chidi" in message["From"]
        assert "bookings@kadzai.test" in message["From"]

    def test_contact_without_email(self):
        payload = ContactRequest(name="Chidi", phone="08012345678", message="Hi")

        message = self.service.build_contact_message(payload)

        assert message["Reply-To"] is None
        assert "Not provided" in _html(message)

    def test_contact_requires_fields(self):
        with pytest.raises(ValueError, match="Missing required fields"):
            ContactRequest(name="Chidi", message="Hi")


class TestSending:

    def setup_method(self):
        self.service = EmailService()

    @pytest.mark.asyncio
    async def test_send_booking_confirmation(self, booking_details):
        with patch("kadzai.services.email_service.smtplib.SMTP") as mock_smtp_cls:
            smtp = MagicMock()
            mock_smtp_cls.return_value.__enter__.return_value = smtp

            await self.service.send_booking_confirmation("ada@example.com", booking_details)

        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("bookings@kadzai.test", "not-a-real-password")
        sent = smtp.send_message.call_args[0][0]
        assert sent["To"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_auth_failure_becomes_delivery_error(self, booking_details):
        with patch("kadzai.services.email_service.smtplib.SMTP") as mock_smtp_cls:
            smtp = MagicMock()
            smtp.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
            mock_smtp_cls.return_value.__enter__.return_value = smtp

            with pytest.raises(EmailDeliveryError) as exc_info:
                await self.service.send_booking_confirmation("ada@example.com", booking_details)

        assert exc_info.value.message == "Failed to send email"
        assert exc_info.value.status_code == 500
        smtp.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_contact_failure_message(self):
        payload = ContactRequest(name="Chidi", phone="08012345678", message="Hi")
        with patch("kadzai.services.email_service.smtplib.SMTP") as mock_smtp_cls:
            smtp = MagicMock()
            smtp.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            mock_smtp_cls.return_value.__enter__.return_value = smtp

            with pytest.raises(EmailDeliveryError) as exc_info:
                await self.service.send_contact_message(payload)

        assert exc_info.value.message == "Failed to send message"

"""
Kadzai Backend — Webhook Handler Unit Tests
============================================

What:  WebhookService with a real PaystackService for signatures and a
       patched booking_service, so only the webhook's own decisions are
       under test.

What we test:
    ✅ Missing/invalid signature and malformed JSON are rejected
    ✅ Non charge.success events are acknowledged and ignored
    ✅ Metadata validation (required keys, customer, passengers)
    ✅ Naira/kobo amount reconciliation
    ✅ Duplicate deliveries are acknowledged, not re-booked
    ✅ Successful delivery books with both references
"""

import hashlib
import hmac
import json
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from kadzai.exceptions import ConflictError, ValidationError, WebhookProcessingError
from kadzai.schemas.booking import PaymentCheckBooking, PaymentCheckResponse
from kadzai.services.paystack_service import PaystackService
from kadzai.services.webhook_service import WebhookService

SECRET = "sk_test_webhook"
TRIP_ID = str(uuid.uuid4())


def _event(**data_overrides):
    metadata = {
        "bookingReference": "TE1A2B3C4D",
        "tripId": TRIP_ID,
        "totalAmount": 30000,
        "customer": {"email": "ada@example.com", "phone": "+2348012345678"},
        "passengers": [
            {"name": "Ada Obi", "seat": "1A", "age": 30, "gender": "female"},
            {"name": "Tunde Obi", "seat": "1B", "age": 32, "gender": "male"},
        ],
    }
    data = {
        "reference": "PSK_123",
        "status": "success",
        "amount": 3000000,
        "metadata": metadata,
    }
    data.update(data_overrides)
    return {"event": "charge.success", "data": data}


def _signed(event):
    body = json.dumps(event).encode()
    return body, hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()


@pytest.fixture
def service():
    return WebhookService(gateway=PaystackService(secret_key=SECRET))


@pytest.fixture
def bookings():
    with patch("kadzai.services.webhook_service.booking_service") as mock_bookings:
        mock_bookings.check_payment = AsyncMock(
            return_value=PaymentCheckResponse(exists=False, booking=None)
        )
        mock_bookings.create_booking = AsyncMock()
        yield mock_bookings


class TestSignatureAndParsing:

    @pytest.mark.asyncio
    async def test_missing_signature(self, service, mock_db_session, bookings):
        body, _ = _signed(_event())
        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, None)
        assert exc_info.value.message == "Missing Paystack signature"

    @pytest.mark.asyncio
    async def test_invalid_signature(self, service, mock_db_session, bookings):
        body, _ = _signed(_event())
        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, "0" * 128)
        assert exc_info.value.message == "Invalid Paystack signature"
        bookings.create_booking.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_json(self, service, mock_db_session, bookings):
        body = b"not json"
        signature = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()
        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Invalid JSON payload"

    @pytest.mark.asyncio
    async def test_other_events_ignored(self, service, mock_db_session, bookings):
        body, signature = _signed({"event": "transfer.success", "data": {}})

        ack = await service.handle_paystack_event(mock_db_session, body, signature)

        assert ack.message == "Event not handled"
        bookings.check_payment.assert_not_called()


class TestMetadata:

    @pytest.mark.asyncio
    async def test_failed_charge(self, service, mock_db_session, bookings):
        body, signature = _signed(_event(status="failed"))
        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Payment not successful: failed"

    @pytest.mark.asyncio
    async def test_missing_metadata_fields(self, service, mock_db_session, bookings):
        event = _event()
        del event["data"]["metadata"]["tripId"]
        body, signature = _signed(event)

        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Missing required metadata fields"
        assert exc_info.value.context["missing"] == ["tripId"]

    @pytest.mark.asyncio
    async def test_metadata_as_json_string(self, service, mock_db_session, bookings):
        event = _event()
        event["data"]["metadata"] = json.dumps(event["data"]["metadata"])
        body, signature = _signed(event)
        bookings.create_booking.return_value.reference = "TE1A2B3C4D"

        ack = await service.handle_paystack_event(mock_db_session, body, signature)

        assert ack.message == "Webhook processed successfully"

    @pytest.mark.asyncio
    async def test_missing_customer_phone(self, service, mock_db_session, bookings):
        event = _event()
        event["data"]["metadata"]["customer"] = {"email": "ada@example.com"}
        body, signature = _signed(event)

        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Missing customer email or phone"

    @pytest.mark.asyncio
    async def test_bad_passenger(self, service, mock_db_session, bookings):
        event = _event()
        event["data"]["metadata"]["passengers"][1]["age"] = 0
        body, signature = _signed(event)

        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Invalid passenger data"
        assert exc_info.value.context["passenger_index"] == 1

    @pytest.mark.asyncio
    async def test_passenger_over_age_limit(self, service, mock_db_session, bookings):
        event = _event()
        event["data"]["metadata"]["passengers"][0]["age"] = 121
        body, signature = _signed(event)

        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Invalid passenger data"
        assert exc_info.value.context["passenger_index"] == 0

    @pytest.mark.asyncio
    async def test_amount_mismatch(self, service, mock_db_session, bookings):
        body, signature = _signed(_event(amount=2000000))

        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Amount mismatch"
        bookings.create_booking.assert_not_called()


class TestBooking:

    @pytest.mark.asyncio
    async def test_creates_booking_with_both_references(self, service, mock_db_session, bookings):
        bookings.create_booking.return_value.reference = "TE1A2B3C4D"
        body, signature = _signed(_event())

        ack = await service.handle_paystack_event(mock_db_session, body, signature)

        assert ack.message == "Webhook processed successfully"
        assert ack.booking_reference == "TE1A2B3C4D"
        bookings.check_payment.assert_awaited_once_with(
            mock_db_session, reference="TE1A2B3C4D", payment_reference="PSK_123"
        )
        _, payload = bookings.create_booking.call_args[0]
        assert payload.reference == "TE1A2B3C4D"
        assert payload.payment_reference == "PSK_123"
        assert str(payload.trip_id) == TRIP_ID
        assert [p.seat for p in payload.passengers] == ["1A", "1B"]
        assert bookings.create_booking.call_args.kwargs["created_by"] == "paystack-webhook"

    @pytest.mark.asyncio
    async def test_duplicate_delivery(self, service, mock_db_session, bookings):
        bookings.check_payment.return_value = PaymentCheckResponse(
            exists=True,
            booking=PaymentCheckBooking(
                reference="TE1A2B3C4D",
                payment_reference="PSK_123",
                email="ada@example.com",
                phone="+2348012345678",
                status="confirmed",
            ),
        )
        body, signature = _signed(_event())

        ack = await service.handle_paystack_event(mock_db_session, body, signature)

        assert ack.message == "Booking already processed"
        bookings.create_booking.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_insert_acknowledged(self, service, mock_db_session, bookings):
        bookings.create_booking.side_effect = ConflictError("exists")
        body, signature = _signed(_event())

        ack = await service.handle_paystack_event(mock_db_session, body, signature)

        assert ack.message == "Booking already processed"

    @pytest.mark.asyncio
    async def test_seat_taken_is_processing_error(self, service, mock_db_session, bookings):
        bookings.create_booking.side_effect = ValidationError("Seat 1A is not available")
        body, signature = _signed(_event())

        with pytest.raises(WebhookProcessingError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Failed to create booking: Seat 1A is not available"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_invalid_customer_email(self, service, mock_db_session, bookings):
        event = _event()
        event["data"]["metadata"]["customer"]["email"] = "not-an-email"
        body, signature = _signed(event)

        with pytest.raises(ValidationError) as exc_info:
            await service.handle_paystack_event(mock_db_session, body, signature)
        assert exc_info.value.message == "Invalid booking metadata"

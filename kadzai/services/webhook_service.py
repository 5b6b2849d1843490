"""
Kadzai Backend — Paystack Webhook Handler
==========================================

What:  Turns a signed `charge.success` event into a confirmed booking.
Who:   POST /api/paystack/webhook (called by Paystack, not by browsers).

Processing order:
    1. Signature   → x-paystack-signature must equal HMAC-SHA512(body, secret)
    2. Event type  → anything but charge.success is acknowledged and ignored
    3. Metadata    → customer, passengers, tripId, totalAmount, bookingReference
    4. Amount      → totalAmount (Naira) must equal amount / 100 (kobo)
    5. Dedupe      → an existing booking for either reference is acknowledged
    6. Create      → BookingService.create_booking with both references

Paystack redelivers on any non-2xx response, so duplicates are expected.
Dedupe is the reference lookup in step 5 plus the unique constraints on
`bookings.reference` / `bookings.payment_reference` for concurrent deliveries.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.exceptions import (
    ConflictError,
    ValidationError,
    WebhookProcessingError,
)
from kadzai.schemas.booking import BookingCreate
from kadzai.schemas.payment import WebhookAck
from kadzai.services.booking_service import booking_service
from kadzai.services.gateway_base import PaymentGateway
from kadzai.services.paystack_service import paystack_service

logger = logging.getLogger(__name__)

HANDLED_EVENT = "charge.success"
REQUIRED_METADATA = ("customer", "passengers", "tripId", "totalAmount", "bookingReference")


class WebhookService:

    def __init__(self, gateway: PaymentGateway = paystack_service):
        self.gateway = gateway

    async def handle_paystack_event(
        self,
        db: AsyncSession,
        payload: bytes,
        signature: Optional[str],
    ) -> WebhookAck:
        if not signature:
            raise ValidationError("Missing Paystack signature")
        if not self.gateway.verify_signature(payload, signature):
            logger.warning("Rejected webhook with invalid signature")
            raise ValidationError("Invalid Paystack signature")

        try:
            event = json.loads(payload)
        except ValueError:
            raise ValidationError("Invalid JSON payload")
        if not isinstance(event, dict):
            raise ValidationError("Invalid JSON payload")

        event_type = event.get("event")
        if event_type != HANDLED_EVENT:
            logger.info("Ignoring Paystack event %s", event_type)
            return WebhookAck(message="Event not handled")

        data = event.get("data") or {}
        payment_reference = data.get("reference")
        if data.get("status") != "success" or not payment_reference:
            raise ValidationError(f"Payment not successful: {data.get('status')}")

        metadata = self._parse_metadata(data.get("metadata"))
        self._check_amount(metadata, data.get("amount"))
        booking_reference = str(metadata["bookingReference"])

        existing = await booking_service.check_payment(
            db,
            reference=booking_reference,
            payment_reference=payment_reference,
        )
        if existing.exists:
            logger.info("Webhook for %s already processed", booking_reference)
            return WebhookAck(
                message="Booking already processed",
                booking_reference=existing.booking.reference,
            )

        booking_input = self._booking_input(metadata, payment_reference)
        try:
            booking = await booking_service.create_booking(
                db, booking_input, created_by="paystack-webhook"
            )
        except ConflictError:
            # a concurrent delivery inserted it first
            return WebhookAck(message="Booking already processed", booking_reference=booking_reference)
        except ValidationError as e:
            logger.error(
                "Paid booking %s could not be created: %s",
                booking_reference,
                e.message,
            )
            raise WebhookProcessingError(
                f"Failed to create booking: {e.message}",
                context={"booking_reference": booking_reference},
            )

        logger.info(
            "Webhook created booking %s for payment %s",
            booking.reference,
            payment_reference,
        )
        return WebhookAck(
            message="Webhook processed successfully",
            booking_reference=booking.reference,
        )

    # ── Metadata checks ───────────────────────────────────────────────────

    def _parse_metadata(self, raw: Any) -> Dict[str, Any]:
        # Paystack echoes metadata back as given, which may be a JSON string
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                raise ValidationError("Invalid metadata")
        if not isinstance(raw, dict):
            raise ValidationError("Missing metadata")

        missing = [key for key in REQUIRED_METADATA if raw.get(key) in (None, "")]
        if missing:
            raise ValidationError(
                "Missing required metadata fields",
                context={"missing": missing},
            )

        customer = raw["customer"]
        if not isinstance(customer, dict) or not customer.get("email") or not customer.get("phone"):
            raise ValidationError("Missing customer email or phone")

        passengers = raw["passengers"]
        if not isinstance(passengers, list) or not passengers:
            raise ValidationError("Passengers must be a non-empty array")
        for index, passenger in enumerate(passengers):
            if not self._valid_passenger(passenger):
                raise ValidationError(
                    "Invalid passenger data",
                    context={"passenger_index": index},
                )
        return raw

    @staticmethod
    def _valid_passenger(passenger: Any) -> bool:
        if not isinstance(passenger, dict):
            return False
        age = passenger.get("age")
        return (
            bool(passenger.get("name"))
            and bool(passenger.get("seat"))
            and isinstance(age, int)
            and not isinstance(age, bool)
            and 1 <= age <= 120
            and passenger.get("gender") in ("male", "female")
        )

    @staticmethod
    def _check_amount(metadata: Dict[str, Any], amount_kobo: Any) -> None:
        try:
            expected = float(metadata["totalAmount"])
            paid = float(amount_kobo) / 100
        except (TypeError, ValueError):
            raise ValidationError("Invalid payment amount")
        if abs(expected - paid) > 0.005:
            logger.warning("Webhook amount mismatch: metadata=%.2f paid=%.2f", expected, paid)
            raise ValidationError(
                "Amount mismatch",
                context={"expected": expected, "paid": paid},
            )

    @staticmethod
    def _booking_input(metadata: Dict[str, Any], payment_reference: str) -> BookingCreate:
        customer = metadata["customer"]
        try:
            return BookingCreate(
                trip_id=metadata["tripId"],
                email=customer["email"],
                phone=customer["phone"],
                passengers=[
                    {
                        "name": p["name"],
                        "seat": str(p["seat"]),
                        "age": p["age"],
                        "gender": p["gender"],
                    }
                    for p in metadata["passengers"]
                ],
                payment_reference=payment_reference,
                reference=str(metadata["bookingReference"]),
            )
        except SchemaValidationError as e:
            raise ValidationError(
                "Invalid booking metadata",
                context={"errors": [err["msg"] for err in e.errors()]},
            )


webhook_service = WebhookService()

"""
Kadzai Backend — Paystack Routes
=================================

POST /api/paystack/initialize   start a hosted checkout (amount in kobo)
POST /api/paystack/verify       confirm a transaction succeeded
GET  /api/paystack/webhook      reachability check for the dashboard URL test
POST /api/paystack/webhook      signed event delivery from Paystack

The webhook reads the raw request body itself: the signature covers the
exact bytes Paystack sent, so the body must not be parsed and re-serialized
before verification.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from kadzai.database import get_db_session
from kadzai.schemas.common import ErrorResponse
from kadzai.schemas.payment import (
    InitializePaymentRequest,
    InitializePaymentResponse,
    VerifiedTransaction,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAck,
    WebhookStatusResponse,
)
from kadzai.services.paystack_service import paystack_service
from kadzai.services.webhook_service import webhook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/paystack", tags=["Payments"])


@router.post(
    "/initialize",
    response_model=InitializePaymentResponse,
    responses={
        400: {"description": "Invalid input or rejected by Paystack", "model": ErrorResponse},
        500: {"description": "Paystack unreachable", "model": ErrorResponse},
    },
    summary="Initialize a Paystack transaction",
)
async def initialize_payment(body: InitializePaymentRequest) -> InitializePaymentResponse:
    data = await paystack_service.initialize_transaction(
        email=body.email,
        amount=body.amount,
        reference=body.reference,
        metadata=body.metadata,
    )
    return InitializePaymentResponse(
        status=True,
        data=data,
        authorization_url=data.get("authorization_url", ""),
        access_code=data.get("access_code", ""),
        reference=data.get("reference", body.reference),
    )


@router.post(
    "/verify",
    response_model=VerifyPaymentResponse,
    responses={
        400: {"description": "Missing reference, rejected, or not successful", "model": ErrorResponse},
        500: {"description": "Paystack unreachable", "model": ErrorResponse},
    },
    summary="Verify a Paystack transaction",
)
async def verify_payment(body: VerifyPaymentRequest) -> VerifyPaymentResponse:
    data = await paystack_service.verify_transaction(body.reference)
    return VerifyPaymentResponse(
        status=True,
        data=VerifiedTransaction(
            reference=data.get("reference", body.reference),
            amount=data.get("amount", 0),
            status=data.get("status", ""),
            paid_at=data.get("paid_at"),
            created_at=data.get("created_at"),
            channel=data.get("channel"),
            currency=data.get("currency"),
            customer=data.get("customer"),
        ),
    )


@router.get("/webhook", response_model=WebhookStatusResponse, summary="Webhook reachability check")
async def webhook_status() -> WebhookStatusResponse:
    return WebhookStatusResponse(
        message="Webhook endpoint is working",
        timestamp=datetime.now(timezone.utc).isoformat(),
        methods=["GET", "POST"],
    )


@router.post(
    "/webhook",
    response_model=WebhookAck,
    response_model_exclude_none=True,
    responses={
        400: {"description": "Bad signature or invalid event", "model": ErrorResponse},
        500: {"description": "Booking could not be created", "model": ErrorResponse},
    },
    summary="Receive Paystack events",
)
async def paystack_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> WebhookAck:
    payload = await request.body()
    return await webhook_service.handle_paystack_event(db, payload, x_paystack_signature)

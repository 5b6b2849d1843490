"""
Kadzai Backend — Paystack Schemas
==================================

What:  Bodies of the /api/paystack endpoints and the subset of the Paystack
       payloads we read.
Note:  These models keep Paystack's snake_case keys (`authorization_url`,
       `paid_at`) because the frontend consumes them exactly as Paystack
       documents them. Amounts are integers in kobo.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from kadzai.schemas.common import CamelModel, is_valid_email


class InitializePaymentRequest(BaseModel):
    email: Optional[str] = None
    amount: Optional[int] = Field(default=None, strict=True, description="Amount in kobo")
    reference: Optional[str] = None
    # Echoed back in the charge.success webhook; see WebhookService
    metadata: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def check_fields(self) -> "InitializePaymentRequest":
        if not self.email or self.amount is None or not self.reference:
            raise ValueError("Missing required fields: email, amount, reference")
        if not is_valid_email(self.email):
            raise ValueError("Invalid email format")
        if self.amount <= 0:
            raise ValueError("Invalid amount")
        return self


class InitializePaymentResponse(BaseModel):
    status: bool = True
    data: Dict[str, Any]
    authorization_url: str
    access_code: str
    reference: str


class VerifyPaymentRequest(BaseModel):
    reference: Optional[str] = None

    @model_validator(mode="after")
    def require_reference(self) -> "VerifyPaymentRequest":
        if not self.reference or not self.reference.strip():
            raise ValueError("Reference is required")
        self.reference = self.reference.strip()
        return self


class VerifiedTransaction(BaseModel):
    reference: str
    amount: int
    status: str
    paid_at: Optional[str] = None
    created_at: Optional[str] = None
    channel: Optional[str] = None
    currency: Optional[str] = None
    customer: Optional[Dict[str, Any]] = None


class VerifyPaymentResponse(BaseModel):
    status: bool = True
    data: VerifiedTransaction


# ── Webhook ───────────────────────────────────────────────────────────────

class WebhookAck(CamelModel):
    message: str
    booking_reference: Optional[str] = None


class WebhookStatusResponse(BaseModel):
    message: str
    timestamp: str
    methods: List[str]

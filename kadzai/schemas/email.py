"""Bodies of POST /api/send-email and POST /api/contact."""

from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from kadzai.schemas.common import CamelModel, is_valid_email


class EmailPassenger(CamelModel):
    name: str
    seat: str


class BookingEmailDetails(CamelModel):
    reference: str = Field(min_length=1)
    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    date: str
    time: str
    passengers: List[EmailPassenger] = Field(default_factory=list)
    total_amount: float


class BookingEmailRequest(CamelModel):
    to: str
    booking: BookingEmailDetails

    @field_validator("to")
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_email(v):
            raise ValueError("Invalid email format")
        return v


class ContactRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self) -> "ContactRequest":
        if not self.name or not self.phone or not self.message:
            raise ValueError("Missing required fields")
        return self


class EmailSentResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None

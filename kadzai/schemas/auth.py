"""Request/response schemas for /api/auth and the /api/users admin area."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from kadzai.schemas.common import CamelModel, is_valid_email, is_valid_phone


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="after")
    def require_credentials(self) -> "LoginRequest":
        if not self.email or not self.password:
            raise ValueError("Email and password are required")
        return self


class PublicUser(CamelModel):
    """The user fields safe to hand to a browser (no password hash, no audit columns)."""
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    created_at: datetime
    is_active: bool


class LoginResponse(CamelModel):
    token: str = Field(description="Bearer token for the Authorization header")
    expires_at: datetime = Field(description="Token expiry (UTC); there is no refresh")
    user: PublicUser


# ── User administration ───────────────────────────────────────────────────

class UserResponse(PublicUser):
    """What operators see about each other: the public fields plus who changed them."""
    created_by: Optional[str] = None
    modified_by: Optional[str] = None


class UserListResponse(CamelModel):
    data: List[UserResponse]
    total: int


def _check_contact(email: Optional[str], phone: Optional[str]) -> None:
    if email is not None and not is_valid_email(email):
        raise ValueError("Invalid email format")
    if phone is not None and not is_valid_phone(phone):
        raise ValueError("Invalid phone number format")


class UserCreate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_fields(self) -> "UserCreate":
        required = (self.first_name, self.last_name, self.email, self.password, self.phone)
        if any(not value or not value.strip() for value in required):
            raise ValueError("Missing required fields")
        self.first_name = self.first_name.strip()
        self.last_name = self.last_name.strip()
        self.email = self.email.strip()
        self.phone = self.phone.strip()
        _check_contact(self.email, self.phone)
        return self


class UserUpdate(CamelModel):
    """Body of PATCH /api/users/{user_id}; a new password is hashed before storage."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_fields(self) -> "UserUpdate":
        for field in ("first_name", "last_name", "email", "password", "phone"):
            value = getattr(self, field)
            if value is not None and not value.strip():
                setattr(self, field, None)
        if self.email is not None:
            self.email = self.email.strip()
        if self.phone is not None:
            self.phone = self.phone.strip()
        if all(
            getattr(self, field) is None
            for field in ("first_name", "last_name", "email", "password", "phone", "is_active")
        ):
            raise ValueError("No fields provided for update")
        _check_contact(self.email, self.phone)
        return self

"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from myescrow.auth.password import validate_password_strength
from myescrow.schemas import CamelModel


def _normalize(v: str) -> str:
    return v.strip().lower()


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SignupRequest(CamelModel):
    """Create an account with name, email and a strong password."""

    name: str = Field(..., min_length=2, max_length=80)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            msg = "Name must be at least 2 characters."
            raise ValueError(msg)
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize(v)

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        validate_password_strength(v)
        return v


class LoginRequest(CamelModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize(v)


class VerifyEmailRequest(CamelModel):
    """Confirm an email address with the emailed numeric code."""

    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12, pattern=r"^\s*\d+\s*$")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize(v)


class ResendVerificationRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize(v)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserResponse(CamelModel):
    """Public view of an account."""

    id: str
    name: str
    email: str
    email_verified: bool = False
    wallet_balance: float = 0.0


class TokenResponse(CamelModel):
    """Bearer token plus the authenticated user."""

    token: str
    user: UserResponse


class VerificationStatusResponse(CamelModel):
    """Returned when the caller still has to confirm their email."""

    verification_required: bool = True
    email: str
    expires_at: datetime | None = None
    debug_code: str | None = None

"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from myescrow.auth import verification
from myescrow.auth.jwt import create_access_token
from myescrow.auth.schemas import (
    LoginRequest,
    ResendVerificationRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
    VerificationStatusResponse,
    VerifyEmailRequest,
)
from myescrow.auth.service import authenticate, create_account, get_user_by_email
from myescrow.config import get_settings
from myescrow.database import get_session
from myescrow.db.models import User
from myescrow.email.service import get_email_service
from myescrow.errors import AuthenticationError
from myescrow.wallet.currency import cents_to_dollars

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        email_verified=user.email_verified,
        wallet_balance=cents_to_dollars(user.wallet_balance_cents),
    )


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(token=create_access_token(user.id, user.email), user=user_response(user))


def _verification_response(email: str, issued: verification.IssuedCode) -> VerificationStatusResponse:
    settings = get_settings()
    return VerificationStatusResponse(
        verification_required=True,
        email=email,
        expires_at=issued.expires_at,
        debug_code=issued.code if settings.auth_debug_codes else None,
    )


async def _issue_and_send(db: AsyncSession, user: User) -> VerificationStatusResponse:
    """Issue a code, commit it, then make one synchronous delivery attempt."""
    issued = await verification.issue(db, user)
    await db.commit()
    await get_email_service().send_verification_email(user.email, issued.code, issued.expires_at, name=user.name)
    return _verification_response(user.email, issued)


@router.post(
    "/signup",
    status_code=201,
    response_model=TokenResponse | VerificationStatusResponse,
    response_model_exclude_none=True,
)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse | VerificationStatusResponse:
    """Create an account. Returns a token, or a verification prompt when required."""
    settings = get_settings()
    user = await create_account(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        email_verified=not settings.email_verification_required,
    )
    if settings.email_verification_required:
        return await _issue_and_send(db, user)

    await db.commit()
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Login with email + password."""
    user = await authenticate(db, body.email, body.password)
    if get_settings().email_verification_required and not user.email_verified:
        msg = "Email address has not been verified."
        raise AuthenticationError(msg)
    await db.commit()
    return _token_response(user)


@router.post("/verify-email", response_model=TokenResponse)
async def verify_email(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Confirm the emailed code and sign the user in."""
    user = await verification.confirm(db, body.email, body.code)
    await db.commit()
    return _token_response(user)


@router.post(
    "/resend-verification",
    response_model=VerificationStatusResponse,
    response_model_exclude_none=True,
)
async def resend_verification(
    body: ResendVerificationRequest,
    db: AsyncSession = Depends(get_session),
) -> VerificationStatusResponse:
    """Send a fresh code. Unknown and unverified emails get the same response shape."""
    user = await get_user_by_email(db, body.email)
    if user is None:
        settings = get_settings()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.email_verification_ttl_minutes)
        return VerificationStatusResponse(verification_required=True, email=body.email, expires_at=expires_at)
    if user.email_verified:
        return VerificationStatusResponse(verification_required=False, email=user.email)
    return await _issue_and_send(db, user)

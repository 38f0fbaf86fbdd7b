"""
Email verification codes.

A code is a zero-padded random number of ``email_verification_code_digits``
digits. Only its SHA-256 hash is stored. Issuing a code retires every
outstanding code for the same user; confirming consumes the code and marks
the user verified in the same transaction.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import desc, select, update

from myescrow.auth.service import get_user_by_email
from myescrow.config import get_settings
from myescrow.db.models import EmailVerificationToken, User
from myescrow.errors import ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

INVALID_CODE = "Invalid or expired verification code."


@dataclass(frozen=True)
class IssuedCode:
    code: str
    expires_at: datetime


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


def generate_code(digits: int) -> str:
    """Uniform over ``0 .. 10**digits - 1``, zero-padded."""
    return str(secrets.randbelow(10**digits)).zfill(digits)


async def issue(db: AsyncSession, user: User) -> IssuedCode:
    """
    Issue a fresh verification code for ``user``.

    Returns the plaintext code; only its hash is persisted.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)

    await db.execute(
        update(EmailVerificationToken)
        .where(EmailVerificationToken.user_id == user.id)
        .where(EmailVerificationToken.consumed_at.is_(None))
        .values(consumed_at=now)
    )

    code = generate_code(settings.email_verification_code_digits)
    expires_at = now + timedelta(minutes=settings.email_verification_ttl_minutes)
    db.add(
        EmailVerificationToken(
            user_id=user.id,
            code_hash=hash_code(code),
            created_at=now,
            expires_at=expires_at,
        )
    )
    await db.flush()
    logger.info("verification_code_issued", user_id=user.id, expires_at=expires_at.isoformat())
    return IssuedCode(code=code, expires_at=expires_at)


async def confirm(db: AsyncSession, email: str, code: str) -> User:
    """
    Consume a verification code and mark the user verified.

    Raises:
        ValidationError: For an unknown email, a wrong code, an expired code
            or an already-consumed code, all with the same message.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        raise ValidationError(INVALID_CODE)

    now = datetime.now(timezone.utc)
    result = await db.execute(
        select(EmailVerificationToken)
        .where(EmailVerificationToken.user_id == user.id)
        .where(EmailVerificationToken.code_hash == hash_code(code.strip()))
        .where(EmailVerificationToken.consumed_at.is_(None))
        .where(EmailVerificationToken.expires_at > now)
        .order_by(desc(EmailVerificationToken.created_at))
        .limit(1)
    )
    token = result.scalar_one_or_none()
    if token is None:
        raise ValidationError(INVALID_CODE)

    # Conditional update so two concurrent confirms cannot both succeed.
    consumed = await db.execute(
        update(EmailVerificationToken)
        .where(EmailVerificationToken.id == token.id)
        .where(EmailVerificationToken.consumed_at.is_(None))
        .values(consumed_at=now)
    )
    if consumed.rowcount != 1:
        raise ValidationError(INVALID_CODE)

    user.email_verified = True
    await db.flush()
    logger.info("email_verified", user_id=user.id)
    return user

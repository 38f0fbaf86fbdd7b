"""
Account business logic.

Handles account creation, user lookup and credential checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from myescrow.auth.password import check_needs_rehash, hash_password, verify_password
from myescrow.db.models import User
from myescrow.errors import AuthenticationError, ConflictError
from myescrow.sequences.references import build_user_id
from myescrow.sequences.service import allocate

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password."


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (normalised before comparison)."""
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def create_account(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    *,
    email_verified: bool = False,
) -> User:
    """
    Create a user with a fresh ``usr_`` id and an argon2id password hash.

    Raises:
        ConflictError: If the normalised email is already registered.
    """
    normalized = normalize_email(email)
    if await get_user_by_email(db, normalized) is not None:
        msg = "Email already in use."
        raise ConflictError(msg)

    user_id = build_user_id(await allocate(db, "user"))
    user = User(
        id=user_id,
        name=name.strip(),
        email=normalized,
        password_hash=hash_password(password),
        email_verified=email_verified,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Concurrent signup with the same email won the unique index.
        await db.rollback()
        msg = "Email already in use."
        raise ConflictError(msg) from exc
    logger.info("user_created", user_id=user.id, email_verified=email_verified)
    return user


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


def verify_credential(user: User, password: str) -> None:
    """
    Check ``password`` against the stored hash.

    Raises:
        AuthenticationError: On mismatch, with a message that does not say
            whether the email or the password was wrong.
    """
    if not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """
    Resolve a user from email + password.

    Raises:
        AuthenticationError: If the email is unknown or the password is wrong.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        raise AuthenticationError(INVALID_CREDENTIALS)
    verify_credential(user, password)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.flush()
        logger.info("password_rehashed", user_id=user.id)

    return user

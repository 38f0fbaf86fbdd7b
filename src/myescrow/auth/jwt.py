"""
Stateless bearer token management.

HS* algorithms sign with ``jwt_secret``; RS*/ES* algorithms load PEM keys
from the configured paths.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import jwt

from myescrow.config import get_settings

_signing_key: str | None = None
_verifying_key: str | None = None


def _load_keys() -> tuple[str, str]:
    """Resolve signing and verifying keys (cached after first call)."""
    global _signing_key, _verifying_key  # noqa: PLW0603
    if _signing_key is None or _verifying_key is None:
        settings = get_settings()
        if settings.jwt_algorithm.upper().startswith("HS"):
            _signing_key = _verifying_key = settings.jwt_secret
        else:
            _signing_key = Path(settings.jwt_private_key_path).read_text()
            _verifying_key = Path(settings.jwt_public_key_path).read_text()
    return _signing_key, _verifying_key


def reset_keys() -> None:
    """Reset cached keys (useful for testing)."""
    global _signing_key, _verifying_key  # noqa: PLW0603
    _signing_key = None
    _verifying_key = None


def create_access_token(user_id: str, email: str) -> str:
    """
    Create an access token for a user.

    Args:
        user_id: The user's public id (``usr_...``).
        email: The user's normalised email.

    Returns:
        Encoded JWT string.
    """
    signing_key, _ = _load_keys()
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, signing_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or wrong type.
    """
    _, verifying_key = _load_keys()
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            verifying_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload

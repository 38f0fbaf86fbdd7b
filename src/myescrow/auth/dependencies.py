"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from myescrow.auth.jwt import verify_token
from myescrow.auth.service import get_user_by_id
from myescrow.database import get_session
from myescrow.db.models import User
from myescrow.errors import AuthenticationError

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer token, return the acting User.

    Raises 401 when the header is missing, the token is invalid or expired,
    or the user no longer exists.
    """
    if credentials is None:
        msg = "Unauthorized"
        raise AuthenticationError(msg)
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(str(e)) from e

    user = await get_user_by_id(db, str(payload["sub"]))
    if user is None:
        msg = "User not found."
        raise AuthenticationError(msg)
    return user

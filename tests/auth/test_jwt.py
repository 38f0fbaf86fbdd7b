"""Tests for bearer token creation and verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from myescrow.auth.jwt import create_access_token, verify_token
from myescrow.config import get_settings


class TestAccessToken:
    def test_round_trip_claims(self):
        token = create_access_token("usr_1000", "owner@example.com")
        payload = verify_token(token)
        assert payload["sub"] == "usr_1000"
        assert payload["email"] == "owner@example.com"
        assert payload["type"] == "access"
        assert payload["iss"] == get_settings().jwt_issuer

    def test_expired_token_rejected(self):
        settings = get_settings()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "usr_1000",
                "iat": now - timedelta(hours=2),
                "exp": now - timedelta(hours=1),
                "iss": settings.jwt_issuer,
                "type": "access",
            },
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_type_rejected(self):
        token = create_access_token("usr_1000", "owner@example.com")
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(token, expected_type="refresh")

    def test_foreign_signature_rejected(self):
        settings = get_settings()
        token = jwt.encode(
            {"sub": "usr_1000", "iss": settings.jwt_issuer, "type": "access"},
            "some-other-secret-that-is-also-long-enough",
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token("not.a.token")

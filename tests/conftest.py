"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from myescrow.auth.jwt import reset_keys
from myescrow.config import get_settings
from myescrow.database import close_db, get_engine, get_session, init_db
from myescrow.db.base import Base
from myescrow.email.service import reset_email_service
from myescrow.main import create_app

TEST_PASSWORD = "Sturdy-Passw0rd!"


@pytest.fixture(autouse=True)
def settings_env(monkeypatch, tmp_path):
    """Point the app at a throwaway SQLite file and a deterministic JWT secret."""
    monkeypatch.setenv("MYESCROW_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'myescrow.db'}")
    monkeypatch.setenv("MYESCROW_JWT_SECRET", "test-secret-that-is-long-enough-for-hs256")
    monkeypatch.setenv("MYESCROW_LOG_FORMAT", "console")
    monkeypatch.setenv("MYESCROW_EMAIL_PROVIDER", "log")
    get_settings.cache_clear()
    reset_keys()
    reset_email_service()
    yield get_settings()
    get_settings.cache_clear()
    reset_keys()
    reset_email_service()


@pytest.fixture
def override_settings(monkeypatch):
    """Set MYESCROW_* variables for one test: ``override_settings(auth_debug_codes="true")``."""

    def _apply(**values: str) -> None:
        for key, value in values.items():
            monkeypatch.setenv(f"MYESCROW_{key.upper()}", value)
        get_settings.cache_clear()
        reset_keys()

    return _apply


@pytest_asyncio.fixture
async def database(settings_env) -> AsyncGenerator[None, None]:
    """Initialise the engine and create every table."""
    await init_db(settings_env.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against a fresh app. Redis is left uninitialised."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service-level tests."""
    async for session in get_session():
        yield session
        await session.rollback()
        break


@pytest.fixture
def mock_email_service(monkeypatch):
    """Capture verification emails instead of delivering them."""
    mock_service = MagicMock()
    mock_service.send_verification_email = AsyncMock(return_value=None)

    monkeypatch.setattr("myescrow.auth.router.get_email_service", lambda *a, **kw: mock_service)
    return mock_service


def last_sent_code(mock_service: MagicMock) -> str:
    """The plaintext code passed to the most recent verification email."""
    return mock_service.send_verification_email.call_args.args[1]


async def signup_verified(
    client: AsyncClient,
    mock_service: MagicMock,
    email: str = "owner@example.com",
    name: str = "Olivia Owner",
) -> dict:
    """Sign up, confirm the emailed code, and return the token response body."""
    response = await client.post("/api/auth/signup", json={
        "name": name,
        "email": email,
        "password": TEST_PASSWORD,
    })
    assert response.status_code == 201, response.text
    response = await client.post("/api/auth/verify-email", json={
        "email": email,
        "code": last_sent_code(mock_service),
    })
    assert response.status_code == 200, response.text
    return response.json()


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, mock_email_service) -> AsyncClient:
    """Client carrying a bearer token for a verified user."""
    data = await signup_verified(client, mock_email_service)
    client.headers["Authorization"] = f"Bearer {data['token']}"
    return client


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}

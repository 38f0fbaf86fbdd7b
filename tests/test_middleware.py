"""Middleware tests: request ID, rate limiting, error envelope."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from myescrow.main import create_app
from myescrow.middleware.error_handler import validation_issues


def _use_redis(monkeypatch, redis: MagicMock) -> None:
    monkeypatch.setattr("myescrow.middleware.rate_limit.redis_configured", lambda: True)
    monkeypatch.setattr("myescrow.middleware.rate_limit.get_redis", lambda: redis)


def _fake_redis(count: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[count, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    return redis


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_malformed_request_id_replaced(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-Id": "bad id with spaces"})
    assert response.headers["x-request-id"] != "bad id with spaces"
    assert len(response.headers["x-request-id"]) == 36


@pytest.mark.asyncio
async def test_rate_limit_fails_open_without_redis(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, monkeypatch) -> None:
    _use_redis(monkeypatch, _fake_redis(3))
    response = await client.get("/version")
    assert response.status_code == 200
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "97"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, monkeypatch) -> None:
    _use_redis(monkeypatch, _fake_redis(101))
    response = await client.get("/version")
    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"
    assert response.json() == {"error": "Rate limit exceeded. Try again later."}


@pytest.mark.asyncio
async def test_rate_limit_exempts_health(client: AsyncClient, monkeypatch) -> None:
    _use_redis(monkeypatch, _fake_redis(500))
    response = await client.get("/health")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_rate_limit_fails_open_on_redis_error(client: AsyncClient, monkeypatch) -> None:
    redis = _fake_redis(0)
    redis.pipeline.return_value.execute = AsyncMock(side_effect=RedisConnectionError("down"))
    _use_redis(monkeypatch, redis)
    response = await client.get("/version")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_malformed_json_is_400(client: AsyncClient) -> None:
    response = await client.post(
        "/api/auth/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request payload."


@pytest.mark.asyncio
async def test_unhandled_exception_is_generic_500(database) -> None:
    app = create_app()

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_validation_issues_strip_location_prefix() -> None:
    issues = validation_issues([
        {"loc": ("body", "amount"), "msg": "Input should be greater than 0"},
        {"loc": ("path", "action"), "msg": "Input should be 'release'"},
        {"loc": ("body", "password"), "msg": "Value error, weak", "ctx": {"error": ValueError("weak")}},
    ])
    assert issues == [
        {"path": "amount", "message": "Input should be greater than 0"},
        {"path": "action", "message": "Input should be 'release'"},
        {"path": "password", "message": "weak"},
    ]


@pytest.mark.asyncio
async def test_rate_limiter_can_be_disabled(database, override_settings, monkeypatch) -> None:
    override_settings(rate_limit_requests="0")
    _use_redis(monkeypatch, _fake_redis(1_000))
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_cors_headers_on_error_responses(client: AsyncClient) -> None:
    response = await client.get("/api/dashboard/overview", headers={"Origin": "http://localhost:5173"})
    assert response.status_code == 401
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"

"""Liveness, readiness and version probes."""

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from myescrow.config import get_settings
from myescrow.database import get_session
from myescrow.redis_client import get_redis, redis_configured

router = APIRouter(tags=["Health"])


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


async def _redis_status() -> str:
    if not redis_configured():
        return "not configured"
    try:
        await get_redis().ping()
    except (RedisError, OSError) as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> dict[str, object]:  # noqa: B008
    """
    Database and Redis reachability.

    ``ready`` only when both answer; a missing Redis degrades the service
    (no rate limiting) but does not take it down.
    """
    checks = {"database": await _database_status(db), "redis": await _redis_status()}
    status = "ready" if all(value == "ok" for value in checks.values()) else "degraded"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"name": "myescrow-api", "version": settings.app_version, "environment": settings.environment}

"""FastAPI application factory and process lifecycle."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI

from myescrow.auth.router import router as auth_router
from myescrow.config import get_settings
from myescrow.dashboard.router import router as dashboard_router
from myescrow.dashboard.seed import seed_demo_data
from myescrow.database import close_db, get_session, init_db
from myescrow.health.router import router as health_router
from myescrow.middleware import setup_middleware
from myescrow.redis_client import close_redis, init_redis
from myescrow.wallet.router import router as wallet_router

logger = structlog.get_logger()

ROUTERS: tuple[APIRouter, ...] = (health_router, auth_router, dashboard_router, wallet_router)


async def _seed() -> None:
    async for db in get_session():
        created = await seed_demo_data(db)
        logger.info("demo_seed_checked", created=created)
        break


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database and Redis on startup, seed if asked, close both on shutdown."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.warning("redis_disabled", reason="empty redis_url", rate_limiting=False)

    if settings.seed_demo_data:
        await _seed()

    logger.info("api_started", environment=settings.environment, version=settings.app_version)
    try:
        yield
    finally:
        await close_redis()
        await close_db()
        logger.info("api_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="MyEscrow API",
        description="Wallets, escrows, disputes and email verification for the MyEscrow dashboard",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    setup_middleware(app, settings)
    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()

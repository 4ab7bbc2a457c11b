"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from mindful.config import get_settings
from mindful.database import close_db, init_db
from mindful.health.router import router as health_router
from mindful.leaderboard.router import router as leaderboard_router
from mindful.middleware import setup_middleware
from mindful.redis_client import close_redis, init_redis
from mindful.scoring.router import router as scoring_router
from mindful.sessions.router import router as sessions_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url, settings.db_pool_size, settings.db_max_overflow)
    await init_redis(settings.redis_url, settings.redis_max_connections)
    logger.info("startup", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Mindful API",
        description="Engagement tracking and scoring for the Mindful activities platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(sessions_router)
    app.include_router(scoring_router)
    app.include_router(leaderboard_router)

    return app


app = create_app()

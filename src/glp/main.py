"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from arq import create_pool
from arq.connections import RedisSettings
from fastapi import FastAPI

from glp.config import get_settings
from glp.database import Database
from glp.health.router import router as health_router
from glp.middleware import setup_middleware
from glp.progress.router import router as progress_router
from glp.redis_client import RedisClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle.

    Connections live on ``app.state`` so request handlers and middleware
    reach them through the running application.
    """
    settings = get_settings()
    app.state.database = Database(settings.database_url)
    app.state.redis = RedisClient(settings.redis_url)

    # Milestone emails are optional; the API keeps serving without a queue
    try:
        app.state.arq = await create_pool(RedisSettings.from_dsn(settings.arq_redis_url))
    except Exception:
        logger.warning("arq pool unavailable, milestone emails disabled", exc_info=True)
        app.state.arq = None

    yield

    if app.state.arq is not None:
        await app.state.arq.aclose()
    await app.state.redis.close()
    await app.state.database.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="GameLearn Progress API",
        description="Learning progress tracking: lesson progress, course rollups, streaks and activity heatmaps",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(progress_router)

    return app


app = create_app()

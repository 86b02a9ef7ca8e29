"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Request
from sqlalchemy import text

from glp.config import get_settings
from glp.redis_client import get_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, object]:
    """Readiness probe checking DB and Redis connectivity."""
    checks: dict[str, object] = {}

    # Database check
    database = getattr(request.app.state, "database", None)
    if database is None:
        checks["database"] = "error: not initialized"
    else:
        try:
            async with database.session_factory() as db:
                result = await db.execute(text("SELECT 1"))
                result.scalar()
            checks["database"] = "ok"
        except Exception as exc:
            checks["database"] = f"error: {exc}"

    # Redis check
    redis = get_redis(request)
    if redis is None:
        checks["redis"] = "error: not initialized"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }

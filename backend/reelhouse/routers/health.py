"""Health check endpoints."""

from fastapi import APIRouter, Depends
from redis import asyncio as aioredis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from reelhouse.database import get_db
from reelhouse.config import get_settings

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {"status": "healthy", "version": settings.app_version}


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness check including database connectivity.

    Redis is only checked when it is configured for the statistics cache.
    """
    checks = {"database": False}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception:
        pass

    if settings.redis_url:
        checks["redis"] = False
        try:
            r = aioredis.from_url(settings.redis_url)
            try:
                await r.ping()
                checks["redis"] = True
            finally:
                await r.aclose()
        except Exception:
            pass

    all_healthy = all(checks.values())
    return {
        "status": "ready" if all_healthy else "degraded",
        "checks": checks,
    }

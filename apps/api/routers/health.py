"""
Health check endpoints.
"""

from typing import List

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import redis.asyncio as redis
from sqlalchemy import text

from config import is_demo_mode, settings
from database import engine
from middleware.embedding import normalize_frame_ancestors

router = APIRouter()


def _missing_auth_settings() -> List[str]:
    if is_demo_mode(settings):
        return []
    return [
        name
        for name in ("AUTH_PROVIDER_PUBLISHABLE_KEY", "AUTH_PROVIDER_SECRET_KEY")
        if not (getattr(settings, name) or "").strip()
    ]


async def _database_status() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        return f"down: {str(e)}"
    return "up"


async def _redis_status() -> str:
    # Rate limiting falls back to in-process counters, so redis is optional.
    try:
        client = redis.from_url(settings.REDIS_URL)
        try:
            await client.ping()
        finally:
            await client.aclose()
    except Exception as e:
        return f"down: {str(e)}"
    return "up"


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Reports the auth mode, embedding allow-list and backing services.
    """
    missing = _missing_auth_settings()
    database = await _database_status()

    if is_demo_mode(settings):
        identity_provider = "not_required"
    else:
        identity_provider = "missing" if missing else "configured"

    return {
        "status": "healthy" if database == "up" and not missing else "degraded",
        "api": "up",
        "app_mode": settings.APP_MODE,
        "force_demo_mode": settings.FORCE_DEMO_MODE,
        "frame_ancestors": normalize_frame_ancestors(settings.FRAME_ANCESTORS),
        "database": database,
        "redis": await _redis_status(),
        "identity_provider": identity_provider,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness requires auth keys (outside demo mode) and a reachable database."""
    missing = _missing_auth_settings()
    database = await _database_status()
    if missing or database != "up":
        return JSONResponse(
            status_code=503,
            content={"ready": False, "missing": missing, "database": database},
        )
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    return {"alive": True}

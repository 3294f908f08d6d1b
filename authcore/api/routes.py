"""Operational endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from authcore.database import health_check as db_health_check
from authcore.services.redis_service import health_check as redis_health_check

router = APIRouter()


@router.get("/health")
async def health_check() -> JSONResponse:
    """Report whether the user directory and the refresh-token store are reachable.

    Returns 200 when both answer and 503 otherwise.
    """
    database_ok = await db_health_check()
    redis_ok = await redis_health_check()
    healthy = database_ok and redis_ok

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "healthy" if database_ok else "unavailable",
            "redis": "healthy" if redis_ok else "unavailable",
        },
    )

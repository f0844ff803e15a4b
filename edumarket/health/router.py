"""Health check endpoints."""

from fastapi import APIRouter, Response, status

from edumarket.config import get_settings
from edumarket.core.database import CassandraConnection
from edumarket.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(response: Response) -> dict[str, str | bool]:
    """Readiness probe - not ready (503) while Cassandra is disconnected.

    Redis is reported but optional.
    """
    settings = get_settings()
    cassandra_ok = CassandraConnection.is_connected()
    if not cassandra_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "ready" if cassandra_ok else "not_ready",
        "environment": settings.environment,
        "debug": settings.debug,
        "cassandra": cassandra_ok,
        "redis": get_redis() is not None,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }

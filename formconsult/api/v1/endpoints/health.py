"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from formconsult.config import settings
from formconsult.core.redis_client import check_redis_connection
from formconsult.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Health check including the database and cache."""

    database: str
    cache: str
    email: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Basic liveness check."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Health check with database and cache status.

    The cache is reported as ``disabled`` when CACHE_ENABLED is off and does not
    affect the overall status in that case.
    """
    db_healthy = await check_database_connection()

    if settings.cache_enabled:
        cache_state = "healthy" if await check_redis_connection() else "unhealthy"
    else:
        cache_state = "disabled"

    return DetailedHealthResponse(
        status="healthy" if db_healthy and cache_state != "unhealthy" else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        cache=cache_state,
        email="configured" if settings.email_enabled else "disabled",
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """Simple ping endpoint."""
    return {"message": "pong"}

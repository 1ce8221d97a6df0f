"""API v1 router configuration."""

from fastapi import APIRouter

from formconsult.api.v1.endpoints import appointments, auth, consultants, health, notifications

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(consultants.router, prefix="/consultants", tags=["Consultants"])
api_router.include_router(notifications.router, tags=["Notifications"])

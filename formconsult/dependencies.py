"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from formconsult.core.redis_client import CacheManager, get_cache_manager
from formconsult.core.security import decode_access_token
from formconsult.database import get_db
from formconsult.services.appointment_service import AppointmentService
from formconsult.services.user_service import UserService

# Security
security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> UUID:
    """
    Extract and validate user ID from JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise _unauthenticated("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthenticated("Could not validate credentials")

    user_id_str = payload.get("sub")
    if user_id_str is None or not isinstance(user_id_str, str):
        raise _unauthenticated("Could not validate credentials")

    try:
        return UUID(user_id_str)
    except ValueError:
        raise _unauthenticated("Invalid user ID format")


def get_cache() -> CacheManager | None:
    """Cache manager, or None when caching is disabled."""
    return get_cache_manager()


async def get_current_user(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    cache: Annotated[CacheManager | None, Depends(get_cache)],
) -> dict:
    """
    Get current user from database.

    Cached records carry string ids; they are converted back to UUIDs so the
    user can be used directly in queries.

    Raises:
        HTTPException: If user not found or inactive
    """
    user = await UserService(cache).get_user_by_id(db, user_id)

    if not user:
        raise _unauthenticated("User not found")

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    for key in ("id", "company_id"):
        if isinstance(user.get(key), str):
            user[key] = UUID(user[key])

    return user


def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    cache: Annotated[CacheManager | None, Depends(get_cache)],
) -> AppointmentService:
    """Appointment service bound to the request's session."""
    return AppointmentService(db, cache_manager=cache)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
Cache = Annotated[CacheManager | None, Depends(get_cache)]
Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]

"""Consultant directory for assignment."""

from datetime import datetime

from fastapi import APIRouter, Query, status

from formconsult.dependencies import Appointments, CurrentUser
from formconsult.schemas.users import ConsultantListResponse

router = APIRouter()


@router.get(
    "",
    response_model=ConsultantListResponse,
    status_code=status.HTTP_200_OK,
    summary="List assignable consultants",
)
async def list_consultants(
    current_user: CurrentUser,
    service: Appointments,
    scheduled_at: datetime | None = Query(None, description="Flag who is free at this time"),
) -> ConsultantListResponse:
    """
    List active consultants. Super admin only.

    Args:
        current_user: Authenticated user
        service: Appointment service
        scheduled_at: Optional slot used to compute ``is_available``

    Returns:
        Consultants ordered by name
    """
    return await service.list_consultants(current_user, scheduled_at)

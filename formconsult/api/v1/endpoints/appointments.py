"""Consultation request endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from formconsult.dependencies import Appointments, CurrentUser
from formconsult.schemas.appointments import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentMutationResponse,
    AppointmentStatus,
    AppointmentTransition,
)

router = APIRouter()


@router.post(
    "",
    response_model=AppointmentDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Request a consultation",
)
async def create_appointment(
    data: AppointmentCreate,
    current_user: CurrentUser,
    service: Appointments,
) -> AppointmentDetail:
    """
    File a consultation request for the authenticated employee or company admin.

    The request starts PENDING and every super admin is notified.
    """
    return await service.create_appointment(current_user, data)


@router.get(
    "",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List consultations",
)
async def list_appointments(
    current_user: CurrentUser,
    service: Appointments,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List the consultations visible to the authenticated user.

    Args:
        current_user: Authenticated user
        service: Appointment service
        status_filter: Only return consultations in this status
        limit: Maximum number of items

    Returns:
        Total count and the most recent consultations
    """
    filters = AppointmentFilters(status=status_filter, limit=limit)
    return await service.list_appointments(current_user, filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentDetail,
    status_code=status.HTTP_200_OK,
    summary="Get consultation by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_user: CurrentUser,
    service: Appointments,
) -> AppointmentDetail:
    """Get a consultation with requester, consultant and company."""
    return await service.get_appointment(appointment_id, current_user)


@router.api_route(
    "/{appointment_id}",
    methods=["PUT", "PATCH"],
    response_model=AppointmentMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Update consultation",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentTransition,
    current_user: CurrentUser,
    service: Appointments,
) -> AppointmentMutationResponse:
    """
    Change a consultation's status and/or its attributes.

    Either ``action`` (accept, cancel, assign) or ``status`` selects the target
    status; ``action`` wins when both are sent. ``consultant_id`` can only be
    set by a super admin, and ``actual_duration`` is required to complete.

    Raises:
        HTTPException: 403 if access denied, 404 if not found, 409 if the
            transition is not allowed or raced, 422 if the body is invalid
    """
    return await service.transition_appointment(appointment_id, current_user, data)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete consultation",
)
async def delete_appointment(
    appointment_id: UUID,
    current_user: CurrentUser,
    service: Appointments,
) -> dict[str, str]:
    """Permanently delete a consultation (requester, company admin or super admin)."""
    await service.delete_appointment(appointment_id, current_user)
    return {"message": "Consultation deleted successfully"}

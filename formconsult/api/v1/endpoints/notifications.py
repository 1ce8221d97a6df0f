"""Notification inbox endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from formconsult.core.exceptions import NotFoundException
from formconsult.dependencies import CurrentUser, DatabaseSession
from formconsult.schemas.notifications import (
    MarkReadRequest,
    NotificationActionResponse,
    NotificationListResponse,
    NotificationRecord,
)
from formconsult.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="Get current user's notifications",
)
async def list_notifications(
    current_user: CurrentUser,
    db: DatabaseSession,
    limit: int = Query(20, ge=1, le=100, description="Maximum number of notifications"),
    unread: bool = Query(False, description="Only return unread notifications"),
) -> NotificationListResponse:
    """
    Get the authenticated user's most recent notifications.

    Args:
        current_user: Authenticated user
        db: Database session
        limit: Maximum number of notifications
        unread: Only return unread notifications

    Returns:
        Notifications and the unread count
    """
    result = await NotificationService.get_user_notifications(
        db=db,
        user_id=current_user["id"],
        limit=limit,
        unread_only=unread,
    )

    return NotificationListResponse(
        notifications=[NotificationRecord.model_validate(n) for n in result["notifications"]],
        unread_count=result["unread_count"],
    )


@router.patch(
    "/read",
    response_model=NotificationActionResponse,
    summary="Mark notifications as read",
)
async def mark_notifications_read(
    body: MarkReadRequest,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> NotificationActionResponse:
    """
    Mark one notification, or all of the user's notifications, as read.

    Raises:
        HTTPException: If the notification does not belong to the user
    """
    if body.mark_all_as_read:
        affected = await NotificationService.mark_all_as_read(db, current_user["id"])
        return NotificationActionResponse(affected=affected)

    affected = await NotificationService.mark_as_read(db, body.notification_id, current_user["id"])
    if not affected:
        raise NotFoundException("Notification not found")

    return NotificationActionResponse(affected=affected)


@router.delete(
    "/{notification_id}",
    response_model=NotificationActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete notification",
)
async def delete_notification(
    notification_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> NotificationActionResponse:
    """
    Delete one of the user's notifications.

    Raises:
        HTTPException: If notification not found
    """
    deleted = await NotificationService.delete_notification(db, notification_id, current_user["id"])
    if not deleted:
        raise NotFoundException("Notification not found")

    return NotificationActionResponse(affected=1)


@router.delete(
    "",
    response_model=NotificationActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete all notifications",
)
async def delete_all_notifications(
    current_user: CurrentUser,
    db: DatabaseSession,
) -> NotificationActionResponse:
    """Delete every notification of the authenticated user."""
    affected = await NotificationService.delete_all(db, current_user["id"])
    return NotificationActionResponse(affected=affected)

"""In-app notification schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class NotificationRecord(BaseModel):
    """Schema for notification record."""

    id: UUID
    user_id: UUID
    type: str
    title: str
    message: str
    data: dict[str, Any] | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    """Schema for the notification inbox."""

    notifications: list[NotificationRecord]
    unread_count: int


class MarkReadRequest(BaseModel):
    """Mark one notification, or all of them, as read."""

    notification_id: UUID | None = None
    mark_all_as_read: bool = False

    @model_validator(mode="after")
    def require_target(self) -> "MarkReadRequest":
        """Require either a notification id or the mark-all flag."""
        if self.notification_id is None and not self.mark_all_as_read:
            raise ValueError("notification_id or mark_all_as_read is required")
        return self


class NotificationActionResponse(BaseModel):
    """Result of a bulk or single notification mutation."""

    success: bool = True
    affected: int = Field(default=0, ge=0)

"""Notification service for in-app consultation notifications."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, desc, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from formconsult.models.notifications import notifications

logger = structlog.get_logger(__name__)


def _json_safe(data: dict[str, Any] | None) -> dict[str, Any] | None:
    """Stringify values the JSON column cannot store natively."""
    if data is None:
        return None
    return {
        key: value if isinstance(value, str | int | float | bool) or value is None else str(value)
        for key, value in data.items()
    }


class NotificationService:
    """Service for managing notifications."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: str | UUID,
        notification_type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """
        Persist a notification for one recipient.

        Failures are logged and reported through the return value; this method
        never raises so callers can fan out to several recipients safely.

        Args:
            db: Database session
            user_id: Recipient user ID
            notification_type: Tag such as ``consultation_assigned``
            title: Short headline
            message: Body text
            data: Optional payload for the UI (appointment id, names, duration)

        Returns:
            True if the notification was stored
        """
        try:
            if isinstance(user_id, str):
                user_id = UUID(user_id)

            await db.execute(
                insert(notifications).values(
                    user_id=user_id,
                    type=notification_type,
                    title=title,
                    message=message,
                    data=_json_safe(data),
                    is_read=False,
                )
            )
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.warning(
                "notification_create_failed",
                user_id=str(user_id),
                notification_type=notification_type,
                error=str(e),
            )
            return False

        logger.info(
            "notification_created",
            user_id=str(user_id),
            notification_type=notification_type,
        )
        return True

    @staticmethod
    async def get_user_notifications(
        db: AsyncSession,
        user_id: UUID,
        limit: int = 20,
        unread_only: bool = False,
    ) -> dict[str, Any]:
        """
        Get the most recent notifications for a user.

        Args:
            db: Database session
            user_id: User ID
            limit: Maximum number of notifications returned
            unread_only: Only return unread notifications

        Returns:
            Dictionary with the notifications and the user's unread count
        """
        query = select(notifications).where(notifications.c.user_id == user_id)
        if unread_only:
            query = query.where(notifications.c.is_read.is_(False))

        query = query.order_by(desc(notifications.c.created_at)).limit(limit)
        result = await db.execute(query)
        records = [dict(row) for row in result.mappings().all()]

        unread_query = (
            select(func.count())
            .select_from(notifications)
            .where(notifications.c.user_id == user_id, notifications.c.is_read.is_(False))
        )
        unread_count = (await db.execute(unread_query)).scalar_one()

        return {"notifications": records, "unread_count": unread_count}

    @staticmethod
    async def mark_as_read(db: AsyncSession, notification_id: UUID, user_id: UUID) -> int:
        """Mark one of the user's notifications as read; returns rows affected."""
        result = await db.execute(
            update(notifications)
            .where(notifications.c.id == notification_id, notifications.c.user_id == user_id)
            .values(is_read=True)
        )
        await db.commit()
        return result.rowcount

    @staticmethod
    async def mark_all_as_read(db: AsyncSession, user_id: UUID) -> int:
        """Mark every unread notification of the user as read."""
        result = await db.execute(
            update(notifications)
            .where(notifications.c.user_id == user_id, notifications.c.is_read.is_(False))
            .values(is_read=True)
        )
        await db.commit()
        return result.rowcount

    @staticmethod
    async def delete_notification(db: AsyncSession, notification_id: UUID, user_id: UUID) -> bool:
        """Delete one of the user's notifications."""
        result = await db.execute(
            delete(notifications).where(
                notifications.c.id == notification_id,
                notifications.c.user_id == user_id,
            )
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def delete_all(db: AsyncSession, user_id: UUID) -> int:
        """Delete every notification of the user."""
        result = await db.execute(delete(notifications).where(notifications.c.user_id == user_id))
        await db.commit()
        return result.rowcount

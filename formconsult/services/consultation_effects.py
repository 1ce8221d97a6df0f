"""Notifications and emails sent after a consultation changes status.

``EFFECTS`` maps each resulting status to the side effects it triggers. The
runner only executes after the status write has been committed; every effect
gets its own timeout and its failures are logged, never raised.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from formconsult.config import settings
from formconsult.schemas.appointments import AppointmentStatus
from formconsult.schemas.users import UserRole
from formconsult.services.email_service import EmailService
from formconsult.services.notification_service import NotificationService
from formconsult.services.user_service import UserService

logger = structlog.get_logger(__name__)

DEFAULT_ADMIN_NAME = "Administrator"
DEFAULT_COMPANY_NAME = "Your company"
DEFAULT_USER_NAME = "User"

TYPE_REQUESTED = "consultation_request"
TYPE_ASSIGNED = "consultation_assigned"
TYPE_CONFIRMED = "consultation_confirmed"
TYPE_REJECTED = "consultation_rejected"
TYPE_CANCELED = "consultation_canceled"
TYPE_COMPLETED = "consultation_completed"


@dataclass(frozen=True)
class TransitionContext:
    """Everything an effect needs about the committed transition."""

    appointment: dict[str, Any]
    requester: dict[str, Any] | None
    company: dict[str, Any] | None
    actor: dict[str, Any]
    consultant_id: UUID | None = None
    notes: str | None = None
    actual_duration: int | None = None

    @property
    def appointment_id(self) -> str:
        return str(self.appointment["id"])

    @property
    def title(self) -> str:
        return self.appointment["title"]

    @property
    def requester_name(self) -> str:
        return (self.requester or {}).get("name") or DEFAULT_USER_NAME

    @property
    def company_name(self) -> str:
        return (self.company or {}).get("name") or DEFAULT_COMPANY_NAME

    @property
    def actor_name(self) -> str:
        return self.actor.get("name") or DEFAULT_ADMIN_NAME


Effect = Callable[[AsyncSession, TransitionContext], Awaitable[None]]


async def _notify_requester(
    db: AsyncSession,
    ctx: TransitionContext,
    notification_type: str,
    title: str,
    message: str,
    **extra: Any,
) -> None:
    await NotificationService.create_notification(
        db,
        ctx.appointment["user_id"],
        notification_type,
        title,
        message,
        {"appointmentId": ctx.appointment_id, **extra},
    )


async def _notify_company_admin(
    db: AsyncSession,
    ctx: TransitionContext,
    notification_type: str,
    title: str,
    message: str,
    **extra: Any,
) -> None:
    admin = await UserService().find_first_by_company_and_role(
        db, ctx.appointment["company_id"], UserRole.ADMIN_ENTREPRISE
    )
    if admin is None:
        return

    await NotificationService.create_notification(
        db,
        admin["id"],
        notification_type,
        title,
        message,
        {"appointmentId": ctx.appointment_id, "employeeName": ctx.requester_name, **extra},
    )


async def _notify_super_admins(
    db: AsyncSession,
    ctx: TransitionContext,
    notification_type: str,
    title: str,
    message: str,
    **extra: Any,
) -> None:
    # create_notification never raises, so one recipient cannot block the rest
    for admin in await UserService().find_all_by_role(db, UserRole.SUPER_ADMIN):
        await NotificationService.create_notification(
            db,
            admin["id"],
            notification_type,
            title,
            message,
            {"appointmentId": ctx.appointment_id, **extra},
        )


async def _resolve_admin_name(db: AsyncSession, ctx: TransitionContext) -> str:
    actor = await UserService().get_user_by_id(db, ctx.actor["id"])
    return (actor or {}).get("name") or DEFAULT_ADMIN_NAME


# PENDING


async def notify_super_admins_requested(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_super_admins(
        db,
        ctx,
        TYPE_REQUESTED,
        "New consultation request",
        f'{ctx.requester_name} from {ctx.company_name} requested the consultation "{ctx.title}".',
        employeeName=ctx.requester_name,
        companyName=ctx.company_name,
    )


# ASSIGNED


async def notify_consultant_assigned(db: AsyncSession, ctx: TransitionContext) -> None:
    if ctx.consultant_id is None:
        return
    await NotificationService.create_notification(
        db,
        ctx.consultant_id,
        TYPE_ASSIGNED,
        "New consultation assigned to you",
        f'The consultation "{ctx.title}" has been assigned to you by {ctx.actor_name}.',
        {"appointmentId": ctx.appointment_id, "scheduledAt": ctx.appointment["scheduled_at"]},
    )


async def notify_requester_assigned(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_requester(
        db,
        ctx,
        TYPE_ASSIGNED,
        "Consultant assigned to your request",
        f'A consultant has been assigned to your request "{ctx.title}". '
        "You will receive a confirmation shortly.",
    )


async def notify_company_admin_assigned(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_company_admin(
        db,
        ctx,
        TYPE_ASSIGNED,
        "Consultant assigned for your team",
        f'A consultant has been assigned to "{ctx.title}" requested by {ctx.requester_name}.',
    )


# CONFIRMED


async def notify_requester_confirmed(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_requester(
        db,
        ctx,
        TYPE_CONFIRMED,
        "Consultation confirmed",
        f'Your consultation "{ctx.title}" has been confirmed. Get ready for your session.',
        scheduledAt=ctx.appointment["scheduled_at"],
    )


async def email_requester_approved(db: AsyncSession, ctx: TransitionContext) -> None:
    if not ctx.requester or not ctx.requester.get("email"):
        logger.warning("approval_email_skipped", appointment_id=ctx.appointment_id, reason="no_recipient")
        return

    await EmailService.send_consultation_approved(
        ctx.requester["email"],
        ctx.requester_name,
        ctx.title,
        ctx.company_name,
        await _resolve_admin_name(db, ctx),
    )


# REJECTED


async def notify_requester_rejected(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_requester(
        db,
        ctx,
        TYPE_REJECTED,
        "Consultation postponed",
        f'Your consultation "{ctx.title}" has to be postponed. '
        "Our team will contact you with a new assignment.",
    )


async def notify_company_admin_rejected(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_company_admin(
        db,
        ctx,
        TYPE_REJECTED,
        "Consultation postponed for your team",
        f'The consultation "{ctx.title}" of {ctx.requester_name} has been postponed. '
        "A new assignment will follow.",
    )


async def notify_super_admins_rejected(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_super_admins(
        db,
        ctx,
        TYPE_REJECTED,
        "Consultation declined - reassignment needed",
        f'The consultation "{ctx.title}" was declined by {ctx.actor_name}. '
        "It needs to be reassigned.",
    )


# CANCELED


async def notify_requester_canceled(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_requester(
        db,
        ctx,
        TYPE_CANCELED,
        "Consultation request declined",
        f'Your request "{ctx.title}" could not be accepted.',
    )


async def email_requester_rejected(db: AsyncSession, ctx: TransitionContext) -> None:
    if not ctx.requester or not ctx.requester.get("email"):
        logger.warning("rejection_email_skipped", appointment_id=ctx.appointment_id, reason="no_recipient")
        return

    await EmailService.send_consultation_rejected(
        ctx.requester["email"],
        ctx.requester_name,
        ctx.title,
        ctx.company_name,
        await _resolve_admin_name(db, ctx),
        ctx.notes or None,
    )


# COMPLETED


async def notify_requester_completed(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_requester(
        db,
        ctx,
        TYPE_COMPLETED,
        "Consultation completed",
        f'Your consultation "{ctx.title}" is over. Please tell us how it went.',
    )


async def notify_company_admin_completed(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_company_admin(
        db,
        ctx,
        TYPE_COMPLETED,
        "Consulting session completed",
        f'The consultation "{ctx.title}" of {ctx.requester_name} is completed. '
        f"Duration: {ctx.actual_duration} minutes.",
        duration=ctx.actual_duration,
    )


async def notify_super_admins_completed(db: AsyncSession, ctx: TransitionContext) -> None:
    await _notify_super_admins(
        db,
        ctx,
        TYPE_COMPLETED,
        "Consulting session completed",
        f'The consultation "{ctx.title}" for {ctx.company_name} is completed. '
        f"Duration: {ctx.actual_duration} minutes.",
        companyName=ctx.company_name,
        duration=ctx.actual_duration,
    )


EFFECTS: dict[AppointmentStatus, tuple[Effect, ...]] = {
    AppointmentStatus.PENDING: (notify_super_admins_requested,),
    AppointmentStatus.ASSIGNED: (
        notify_consultant_assigned,
        notify_requester_assigned,
        notify_company_admin_assigned,
    ),
    AppointmentStatus.CONFIRMED: (
        notify_requester_confirmed,
        email_requester_approved,
    ),
    AppointmentStatus.REJECTED: (
        notify_requester_rejected,
        notify_company_admin_rejected,
        notify_super_admins_rejected,
    ),
    AppointmentStatus.CANCELED: (
        notify_requester_canceled,
        email_requester_rejected,
    ),
    AppointmentStatus.COMPLETED: (
        notify_requester_completed,
        notify_company_admin_completed,
        notify_super_admins_completed,
    ),
}


# A consultant is assigned or replaced without entering ASSIGNED
REASSIGNMENT_EFFECTS: tuple[Effect, ...] = (
    notify_consultant_assigned,
    notify_requester_assigned,
)


async def _reset_session(db: AsyncSession) -> None:
    """Discard whatever a failed or cancelled effect left on the shared session."""
    try:
        await db.rollback()
    except SQLAlchemyError as e:
        logger.warning("consultation_side_effect_rollback_failed", error=str(e))


async def _run_effects(
    db: AsyncSession,
    effects: tuple[Effect, ...],
    ctx: TransitionContext,
    trigger: str,
    timeout: float | None,
) -> list[str]:
    timeout = settings.side_effect_timeout_seconds if timeout is None else timeout
    failed: list[str] = []

    for effect in effects:
        try:
            await asyncio.wait_for(effect(db, ctx), timeout=timeout)
        except Exception as e:
            failed.append(effect.__name__)
            logger.warning(
                "consultation_side_effect_failed",
                effect=effect.__name__,
                appointment_id=ctx.appointment_id,
                trigger=trigger,
                error=repr(e),
            )
            await _reset_session(db)

    return failed


async def run_post_transition_effects(
    db: AsyncSession,
    status: AppointmentStatus,
    ctx: TransitionContext,
    timeout: float | None = None,
) -> list[str]:
    """
    Run the side effects registered for ``status``.

    Effects share ``db``. When one fails or times out mid-query, the session
    is rolled back before the next effect uses it.

    Args:
        db: Database session, already committed
        status: Status the appointment has just entered
        ctx: Transition details
        timeout: Per-effect bound in seconds, defaults to the configured value

    Returns:
        Names of the effects that failed or timed out
    """
    return await _run_effects(db, EFFECTS.get(status, ()), ctx, status.value, timeout)


async def run_reassignment_effects(
    db: AsyncSession,
    ctx: TransitionContext,
    timeout: float | None = None,
) -> list[str]:
    """Notify the newly assigned consultant and the requester of a consultant change."""
    return await _run_effects(db, REASSIGNMENT_EFFECTS, ctx, "reassignment", timeout)

"""Appointment service for business logic."""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from formconsult.core.exceptions import (
    ConcurrentUpdateException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    PersistenceException,
    ValidationException,
)
from formconsult.core.permissions import (
    can_create_appointment,
    can_delete_appointment,
    can_transition_appointment,
    can_view_appointment,
    is_super_admin,
)
from formconsult.core.redis_client import CacheManager
from formconsult.models.appointments import appointments
from formconsult.models.companies import companies
from formconsult.models.users import users
from formconsult.schemas.appointments import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentMutationResponse,
    AppointmentStatus,
    AppointmentTransition,
)
from formconsult.schemas.users import (
    CompanySummary,
    ConsultantListResponse,
    ConsultantSummary,
    UserRole,
    UserSummary,
)
from formconsult.services.appointment_lifecycle import (
    ensure_consultant_assignable,
    ensure_target_requirements,
    ensure_transition_allowed,
    is_terminal,
    resolve_target_status,
)
from formconsult.services.consultation_effects import (
    TransitionContext,
    run_post_transition_effects,
    run_reassignment_effects,
)
from formconsult.services.consulting_hours import ConsultingHoursPolicy
from formconsult.services.user_service import UserService

logger = structlog.get_logger(__name__)

requester = users.alias("requester")
consultant = users.alias("consultant")


def _detail_query():
    """Appointment columns plus the display fields of the linked records."""
    return select(
        appointments,
        requester.c.name.label("requester_name"),
        requester.c.email.label("requester_email"),
        consultant.c.name.label("consultant_name"),
        consultant.c.email.label("consultant_email"),
        companies.c.name.label("company_name"),
    ).select_from(
        appointments.outerjoin(requester, appointments.c.user_id == requester.c.id)
        .outerjoin(consultant, appointments.c.assigned_consultant_id == consultant.c.id)
        .outerjoin(companies, appointments.c.company_id == companies.c.id)
    )


def _to_detail(row: Mapping[str, Any]) -> AppointmentDetail:
    data = dict(row)
    requester_name = data.pop("requester_name")
    requester_email = data.pop("requester_email")
    consultant_name = data.pop("consultant_name")
    consultant_email = data.pop("consultant_email")
    company_name = data.pop("company_name")

    if requester_email is not None:
        data["user"] = UserSummary(id=data["user_id"], name=requester_name, email=requester_email)
    if consultant_email is not None:
        data["consultant"] = UserSummary(
            id=data["assigned_consultant_id"], name=consultant_name, email=consultant_email
        )
    if company_name is not None:
        data["company"] = CompanySummary(id=data["company_id"], name=company_name)

    return AppointmentDetail.model_validate(data)


def _merge(supplied: str | None, existing: str | None) -> str | None:
    """A supplied value replaces the stored one only when it is non-empty."""
    return supplied if supplied else existing


class AppointmentService:
    """Service for managing consultation requests."""

    def __init__(
        self,
        db: AsyncSession,
        cache_manager: CacheManager | None = None,
        consulting_hours: ConsultingHoursPolicy | None = None,
    ):
        """Initialize service with database session."""
        self.db = db
        self.users = UserService(cache_manager)
        self.consulting_hours = consulting_hours or ConsultingHoursPolicy.from_settings()

    async def _fetch(self, appointment_id: UUID) -> Mapping[str, Any]:
        """Load one appointment with its display fields."""
        result = await self.db.execute(_detail_query().where(appointments.c.id == appointment_id))
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Consultation not found")

        return row

    async def _find_conflicting_assignment(
        self,
        consultant_id: UUID,
        scheduled_at: datetime,
        appointment_id: UUID | None = None,
    ) -> Mapping[str, Any] | None:
        """Another active consultation held by the consultant at the same time, if any."""
        query = select(appointments.c.id).where(
            appointments.c.assigned_consultant_id == consultant_id,
            appointments.c.scheduled_at == scheduled_at,
            appointments.c.status.in_([AppointmentStatus.ASSIGNED.value, AppointmentStatus.CONFIRMED.value]),
        )
        if appointment_id is not None:
            query = query.where(appointments.c.id != appointment_id)

        result = await self.db.execute(query.limit(1))
        return result.mappings().first()

    async def list_consultants(
        self,
        actor: dict,
        scheduled_at: datetime | None = None,
    ) -> ConsultantListResponse:
        """
        List the active consultants a super admin can assign.

        Args:
            actor: Authenticated user
            scheduled_at: Optional slot; each consultant is flagged as available
                when they hold no ASSIGNED or CONFIRMED consultation at that time

        Raises:
            ForbiddenException: If the user is not a super admin
        """
        if not is_super_admin(actor):
            raise ForbiddenException("Only a super admin can list consultants")

        consultants = []
        for user in await self.users.find_all_by_role(self.db, UserRole.CONSULTANT):
            if not user["is_active"]:
                continue
            is_available = None
            if scheduled_at is not None:
                is_available = await self._find_conflicting_assignment(user["id"], scheduled_at) is None
            consultants.append(
                ConsultantSummary(id=user["id"], name=user["name"], email=user["email"], is_available=is_available)
            )

        return ConsultantListResponse(consultants=consultants, total=len(consultants))

    async def create_appointment(
        self,
        actor: dict,
        data: AppointmentCreate,
    ) -> AppointmentDetail:
        """
        File a new consultation request in PENDING status.

        The request belongs to the acting user and inherits their company.
        Every super admin is notified once the request is stored.

        Args:
            actor: Authenticated user
            data: Request details

        Returns:
            Created consultation

        Raises:
            ForbiddenException: If the user may not file requests
        """
        if not can_create_appointment(actor):
            raise ForbiddenException("Only company members can request a consultation")

        appointment_id = uuid4()
        try:
            await self.db.execute(
                insert(appointments).values(
                    id=appointment_id,
                    title=data.title,
                    description=data.description,
                    scheduled_at=data.scheduled_at,
                    duration=data.duration,
                    status=AppointmentStatus.PENDING.value,
                    user_id=actor["id"],
                    company_id=actor["company_id"],
                )
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("consultation_create_failed", user_id=str(actor["id"]), error=str(e))
            raise PersistenceException("Failed to create consultation") from e

        row = await self._fetch(appointment_id)
        detail = _to_detail(row)
        logger.info("consultation_created", appointment_id=str(appointment_id), user_id=str(actor["id"]))

        await run_post_transition_effects(
            self.db,
            AppointmentStatus.PENDING,
            TransitionContext(
                appointment=dict(row),
                requester={"id": actor["id"], "name": actor.get("name"), "email": actor.get("email")},
                company={"name": row["company_name"]},
                actor=actor,
            ),
        )
        return detail

    async def list_appointments(
        self,
        actor: dict,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """
        List the consultations visible to the acting user.

        Employees see their own requests, company admins their company's,
        consultants the ones assigned to them plus every pending request, and
        super admins everything.

        Raises:
            ForbiddenException: For roles without access to consultations
        """
        role = actor.get("role")
        conditions = []

        if role == UserRole.SUPER_ADMIN.value:
            pass
        elif role == UserRole.ADMIN_ENTREPRISE.value:
            conditions.append(appointments.c.company_id == actor["company_id"])
        elif role == UserRole.CONSULTANT.value:
            conditions.append(
                or_(
                    appointments.c.assigned_consultant_id == actor["id"],
                    appointments.c.status == AppointmentStatus.PENDING.value,
                )
            )
        elif role == UserRole.EMPLOYE.value:
            conditions.append(appointments.c.user_id == actor["id"])
        else:
            raise ForbiddenException("Access denied to consultations")

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        where = and_(*conditions) if conditions else None

        count_stmt = select(func.count()).select_from(appointments)
        stmt = _detail_query()
        if where is not None:
            count_stmt = count_stmt.where(where)
            stmt = stmt.where(where)

        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = stmt.order_by(
            appointments.c.created_at.desc(),
            appointments.c.scheduled_at.asc(),
        ).limit(filters.limit)
        result = await self.db.execute(stmt)

        return AppointmentListResponse(
            total=total,
            items=[_to_detail(row) for row in result.mappings().all()],
        )

    async def get_appointment(
        self,
        appointment_id: UUID,
        actor: dict,
    ) -> AppointmentDetail:
        """
        Get a consultation with requester, consultant and company expanded.

        Raises:
            NotFoundException: If the consultation does not exist
            ForbiddenException: If the user may not view it
        """
        row = await self._fetch(appointment_id)

        if not can_view_appointment(actor, row):
            raise ForbiddenException("Access denied to this consultation")

        return _to_detail(row)

    async def transition_appointment(
        self,
        appointment_id: UUID,
        actor: dict,
        data: AppointmentTransition,
    ) -> AppointmentMutationResponse:
        """
        Move a consultation through its lifecycle.

        The write is conditional on the status read at the start of the call,
        so two concurrent transitions cannot both succeed. Notifications and
        emails for the new status are sent after the commit and never fail
        the request. A consultant change that does not enter ASSIGNED
        notifies the new consultant and the requester.

        Args:
            appointment_id: Consultation ID
            actor: Authenticated user
            data: Action or target status plus attribute changes

        Returns:
            Confirmation message and the updated consultation

        Raises:
            NotFoundException: If the consultation or the consultant does not exist
            ForbiddenException: If the user may not change this consultation
            ValidationException: If the body is empty, incomplete for the target
                status, or assigns a consultant without super admin rights or to a
                consultation that is not ASSIGNED or CONFIRMED afterwards
            ConflictException: If the consultant is already booked at that time
            InvalidTransitionException: If the target is not reachable
            ConcurrentUpdateException: If the status changed in the meantime
            PersistenceException: If the write fails
        """
        current = await self._fetch(appointment_id)

        if not can_transition_appointment(actor, current):
            raise ForbiddenException("Access denied to this consultation")

        if data.consultant_id is not None:
            if not is_super_admin(actor):
                raise ValidationException("Only a super admin can assign a consultant")
            assignee = await self.users.get_user_with_role(
                self.db, data.consultant_id, UserRole.CONSULTANT
            )
            if assignee is None:
                raise NotFoundException("Consultant not found")

        current_status = AppointmentStatus(current["status"])
        target = resolve_target_status(data.action, data.status)

        if target is None:
            if not data.has_attribute_changes:
                raise ValidationException("Provide an action, a status or a field to update")
            if is_terminal(current_status):
                raise ConflictException(f"Consultation is {current_status.value} and can no longer be modified")
        else:
            ensure_transition_allowed(current_status, target)
            ensure_target_requirements(
                target,
                data.consultant_id or current["assigned_consultant_id"],
                data.actual_duration,
            )

        reassigned = False
        if data.consultant_id is not None:
            ensure_consultant_assignable(target or current_status)
            conflict = await self._find_conflicting_assignment(
                data.consultant_id, current["scheduled_at"], appointment_id
            )
            if conflict is not None:
                raise ConflictException("Consultant already has a consultation at this time")
            reassigned = data.consultant_id != current["assigned_consultant_id"]

        now = datetime.now(UTC)
        values: dict[str, Any] = {
            "meeting_url": _merge(data.meeting_url, current["meeting_url"]),
            "notes": _merge(data.notes, current["notes"]),
            "updated_at": now,
        }

        if target is not None:
            values["status"] = target.value
        if data.consultant_id is not None:
            values["assigned_consultant_id"] = data.consultant_id
        if target == AppointmentStatus.COMPLETED:
            values.update(
                duration=data.actual_duration,
                actual_duration=data.actual_duration,
                completed_at=now,
            )

        try:
            result = await self.db.execute(
                update(appointments)
                .where(
                    appointments.c.id == appointment_id,
                    appointments.c.status == current_status.value,
                )
                .values(**values)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                logger.warning(
                    "consultation_transition_conflict",
                    appointment_id=str(appointment_id),
                    expected_status=current_status.value,
                )
                raise ConcurrentUpdateException()

            if target == AppointmentStatus.COMPLETED:
                await self.consulting_hours.record_completion(
                    self.db, current["company_id"], data.actual_duration
                )

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "consultation_transition_failed",
                appointment_id=str(appointment_id),
                error=str(e),
            )
            raise PersistenceException("Failed to update consultation") from e

        row = await self._fetch(appointment_id)
        detail = _to_detail(row)
        logger.info(
            "consultation_updated",
            appointment_id=str(appointment_id),
            from_status=current_status.value,
            to_status=target.value if target else current_status.value,
            actor_id=str(actor["id"]),
        )

        ctx = TransitionContext(
            appointment=dict(row),
            requester=detail.user.model_dump() if detail.user else None,
            company=detail.company.model_dump() if detail.company else None,
            actor=actor,
            consultant_id=data.consultant_id,
            notes=data.notes,
            actual_duration=data.actual_duration,
        )
        if target is not None:
            await run_post_transition_effects(self.db, target, ctx)
        # Entering ASSIGNED already notifies the consultant
        if reassigned and target != AppointmentStatus.ASSIGNED:
            await run_reassignment_effects(self.db, ctx)

        return AppointmentMutationResponse(
            message="Consultation updated successfully",
            appointment=detail,
        )

    async def delete_appointment(
        self,
        appointment_id: UUID,
        actor: dict,
    ) -> None:
        """
        Permanently delete a consultation. No notification is sent.

        Raises:
            NotFoundException: If the consultation does not exist
            ForbiddenException: If the user may not delete it
        """
        current = await self._fetch(appointment_id)

        if not can_delete_appointment(actor, current):
            raise ForbiddenException("Access denied to this consultation")

        try:
            await self.db.execute(delete(appointments).where(appointments.c.id == appointment_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("consultation_delete_failed", appointment_id=str(appointment_id), error=str(e))
            raise PersistenceException("Failed to delete consultation") from e

        logger.info("consultation_deleted", appointment_id=str(appointment_id), actor_id=str(actor["id"]))

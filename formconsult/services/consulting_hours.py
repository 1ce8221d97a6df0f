"""Company consulting-hours accounting for completed consultations."""

from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

from formconsult.config import settings
from formconsult.models.companies import companies

logger = structlog.get_logger(__name__)


def minutes_to_hours(minutes: int) -> float:
    """Convert a session length to hours, rounded to two decimals."""
    return round(minutes / 60, 2)


@dataclass(frozen=True)
class ConsultingHoursPolicy:
    """Charges completed sessions to the owning company's hour counter.

    Disabled unless CONSULTING_HOURS_TRACKING_ENABLED is set. The update joins
    the caller's unit of work and is committed together with the completion.
    """

    enabled: bool = False

    @classmethod
    def from_settings(cls) -> "ConsultingHoursPolicy":
        return cls(enabled=settings.consulting_hours_tracking_enabled)

    async def record_completion(
        self,
        db: AsyncSession,
        company_id: UUID,
        actual_duration: int,
    ) -> float:
        """
        Add ``actual_duration`` minutes to the company counter.

        Returns:
            Hours charged (0.0 when the policy is disabled)
        """
        if not self.enabled:
            return 0.0

        hours = minutes_to_hours(actual_duration)
        await db.execute(
            update(companies)
            .where(companies.c.id == company_id)
            .values(
                consulting_hours_used=companies.c.consulting_hours_used + hours,
                updated_at=func.now(),
            )
        )
        logger.info("consulting_hours_charged", company_id=str(company_id), hours=hours)
        return hours

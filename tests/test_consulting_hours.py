"""Tests for consulting-hours accounting."""

import pytest
from sqlalchemy import select

from formconsult.models import companies
from formconsult.services.consulting_hours import ConsultingHoursPolicy, minutes_to_hours


async def hours_used(db_session, company: dict) -> float:
    result = await db_session.execute(
        select(companies.c.consulting_hours_used).where(companies.c.id == company["id"])
    )
    return result.scalar_one()


@pytest.mark.parametrize(("minutes", "hours"), [(60, 1.0), (90, 1.5), (45, 0.75), (50, 0.83), (1, 0.02)])
def test_minutes_to_hours(minutes: int, hours: float) -> None:
    assert minutes_to_hours(minutes) == hours


def test_policy_is_disabled_by_default() -> None:
    assert ConsultingHoursPolicy().enabled is False
    assert ConsultingHoursPolicy.from_settings().enabled is False


@pytest.mark.asyncio
async def test_disabled_policy_leaves_counter_untouched(db_session, make_company) -> None:
    company = await make_company()

    charged = await ConsultingHoursPolicy(enabled=False).record_completion(db_session, company["id"], 120)
    await db_session.commit()

    assert charged == 0.0
    assert await hours_used(db_session, company) == 0.0


@pytest.mark.asyncio
async def test_enabled_policy_accumulates(db_session, make_company) -> None:
    company = await make_company()
    policy = ConsultingHoursPolicy(enabled=True)

    await policy.record_completion(db_session, company["id"], 90)
    await policy.record_completion(db_session, company["id"], 30)
    await db_session.commit()

    assert await hours_used(db_session, company) == pytest.approx(2.0)


@pytest.mark.asyncio
async def test_charge_is_part_of_the_callers_transaction(db_session, make_company) -> None:
    company = await make_company()

    await ConsultingHoursPolicy(enabled=True).record_completion(db_session, company["id"], 60)
    await db_session.rollback()

    assert await hours_used(db_session, company) == 0.0

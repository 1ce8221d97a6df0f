"""Tests for the post-transition notification and email fan-out."""

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import insert

from formconsult.models import notifications
from formconsult.schemas.appointments import AppointmentStatus
from formconsult.services import consultation_effects
from formconsult.services.consultation_effects import (
    EFFECTS,
    TransitionContext,
    run_post_transition_effects,
    run_reassignment_effects,
)
from formconsult.services.notification_service import NotificationService


def types_of(records: list[dict]) -> list[str]:
    return [n["type"] for n in records]


def _context(world, **overrides) -> TransitionContext:
    appointment = {
        "id": uuid4(),
        "title": "Security posture review",
        "scheduled_at": datetime.now(UTC),
        "user_id": world.employee["id"],
        "company_id": world.acme["id"],
    }
    values = {
        "appointment": appointment,
        "requester": {"id": world.employee["id"], "name": "Alice Martin", "email": world.employee["email"]},
        "company": {"name": "Acme"},
        "actor": world.super_admin,
    }
    values.update(overrides)
    return TransitionContext(**values)


def test_every_status_reached_by_a_transition_has_effects() -> None:
    for status in AppointmentStatus:
        assert EFFECTS[status], status


def test_email_only_for_confirmed_and_canceled() -> None:
    with_email = {
        status
        for status, effects in EFFECTS.items()
        if any(effect.__name__.startswith("email_") for effect in effects)
    }
    assert with_email == {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED}


@pytest.mark.asyncio
async def test_failing_effect_does_not_stop_the_others(db_session, world, monkeypatch) -> None:
    calls = []

    async def broken(db, ctx):
        raise RuntimeError("boom")

    async def working(db, ctx):
        calls.append(ctx.appointment_id)

    monkeypatch.setitem(EFFECTS, AppointmentStatus.REJECTED, (broken, working))
    ctx = _context(world)

    failed = await run_post_transition_effects(db_session, AppointmentStatus.REJECTED, ctx)

    assert failed == ["broken"]
    assert calls == [ctx.appointment_id]


@pytest.mark.asyncio
async def test_slow_effect_times_out(db_session, world, monkeypatch) -> None:
    finished = []

    async def slow(db, ctx):
        await asyncio.sleep(1)
        finished.append("slow")

    async def fast(db, ctx):
        finished.append("fast")

    monkeypatch.setitem(EFFECTS, AppointmentStatus.CANCELED, (slow, fast))

    failed = await run_post_transition_effects(
        db_session, AppointmentStatus.CANCELED, _context(world), timeout=0.01
    )

    assert failed == ["slow"]
    assert finished == ["fast"]


@pytest.mark.asyncio
async def test_effect_cancelled_mid_write_does_not_leak_into_the_next(
    db_session, world, monkeypatch, notifications_for
) -> None:
    async def stalled(db, ctx):
        await db.execute(
            insert(notifications).values(
                user_id=world.employee["id"], type="half_written", title="t", message="m"
            )
        )
        await asyncio.sleep(1)

    monkeypatch.setitem(
        EFFECTS,
        AppointmentStatus.CANCELED,
        (stalled, consultation_effects.notify_requester_canceled),
    )

    failed = await run_post_transition_effects(
        db_session, AppointmentStatus.CANCELED, _context(world), timeout=0.05
    )

    assert failed == ["stalled"]
    assert types_of(await notifications_for(world.employee)) == ["consultation_canceled"]


@pytest.mark.asyncio
async def test_reassignment_notifies_new_consultant_and_requester(
    db_session, world, notifications_for
) -> None:
    ctx = _context(world, consultant_id=world.other_consultant["id"])

    failed = await run_reassignment_effects(db_session, ctx)

    assert failed == []
    [notification] = await notifications_for(world.other_consultant)
    assert notification["type"] == "consultation_assigned"
    assert "Sam Super" in notification["message"]
    assert types_of(await notifications_for(world.employee)) == ["consultation_assigned"]
    assert await notifications_for(world.company_admin) == []


@pytest.mark.asyncio
async def test_super_admin_fan_out_continues_after_a_failed_recipient(db_session, world) -> None:
    create = AsyncMock(side_effect=[False, True])

    with patch.object(NotificationService, "create_notification", create):
        await consultation_effects.notify_super_admins_rejected(db_session, _context(world))

    recipients = {call.args[1] for call in create.await_args_list}
    assert recipients == {world.super_admin["id"], world.second_super_admin["id"]}


@pytest.mark.asyncio
async def test_consultant_notification_skipped_without_consultant(db_session, world, notifications_for) -> None:
    await consultation_effects.notify_consultant_assigned(db_session, _context(world))
    assert await notifications_for(world.consultant) == []


@pytest.mark.asyncio
async def test_approved_email_falls_back_to_generic_names(db_session, world, email_mocks) -> None:
    ctx = _context(
        world,
        requester={"id": world.employee["id"], "name": None, "email": world.employee["email"]},
        company=None,
        actor={"id": uuid4(), "name": None},
    )

    await consultation_effects.email_requester_approved(db_session, ctx)

    email_mocks.approved.assert_awaited_once_with(
        world.employee["email"], "User", "Security posture review", "Your company", "Administrator"
    )


@pytest.mark.asyncio
async def test_rejected_email_without_notes_has_no_reason(db_session, world, email_mocks) -> None:
    await consultation_effects.email_requester_rejected(db_session, _context(world, notes=""))

    email_mocks.rejected.assert_awaited_once_with(
        world.employee["email"], "Alice Martin", "Security posture review", "Acme", "Sam Super", None
    )


@pytest.mark.asyncio
async def test_email_skipped_without_requester_address(db_session, world, email_mocks) -> None:
    await consultation_effects.email_requester_approved(db_session, _context(world, requester=None))
    email_mocks.approved.assert_not_awaited()


@pytest.mark.asyncio
async def test_notification_payload_carries_appointment_and_employee(
    db_session, world, notifications_for
) -> None:
    ctx = _context(world, actual_duration=50)

    await consultation_effects.notify_company_admin_completed(db_session, ctx)

    [notification] = await notifications_for(world.company_admin)
    assert notification["type"] == "consultation_completed"
    assert notification["data"] == {
        "appointmentId": ctx.appointment_id,
        "employeeName": "Alice Martin",
        "duration": 50,
    }
    assert "50 minutes" in notification["message"]
    assert notification["is_read"] is False

"""Tests for the consultation status state machine."""

import pytest

from formconsult.core.exceptions import InvalidTransitionException, ValidationException
from formconsult.schemas.appointments import AppointmentStatus, TransitionAction
from formconsult.services.appointment_lifecycle import (
    ALLOWED_TRANSITIONS,
    ensure_consultant_assignable,
    ensure_target_requirements,
    ensure_transition_allowed,
    is_terminal,
    resolve_target_status,
)

S = AppointmentStatus


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (S.PENDING, S.ASSIGNED),
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.REJECTED),
        (S.PENDING, S.CANCELED),
        (S.ASSIGNED, S.CONFIRMED),
        (S.ASSIGNED, S.REJECTED),
        (S.ASSIGNED, S.CANCELED),
        (S.CONFIRMED, S.COMPLETED),
        (S.CONFIRMED, S.CANCELED),
    ],
)
def test_allowed_transitions(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """Every declared edge is accepted."""
    ensure_transition_allowed(current, target)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (S.PENDING, S.COMPLETED),
        (S.PENDING, S.PENDING),
        (S.ASSIGNED, S.ASSIGNED),
        (S.ASSIGNED, S.COMPLETED),
        (S.CONFIRMED, S.ASSIGNED),
        (S.CONFIRMED, S.REJECTED),
        (S.CONFIRMED, S.PENDING),
    ],
)
def test_undeclared_transitions_rejected(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """Edges missing from the table raise a conflict carrying both statuses."""
    with pytest.raises(InvalidTransitionException) as exc_info:
        ensure_transition_allowed(current, target)

    assert exc_info.value.status_code == 409
    assert exc_info.value.current_status == current.value
    assert exc_info.value.target_status == target.value


@pytest.mark.parametrize("terminal", [S.REJECTED, S.CANCELED, S.COMPLETED])
def test_terminal_statuses_have_no_exit(terminal: AppointmentStatus) -> None:
    """Nothing leaves a terminal status, not even the same status again."""
    assert is_terminal(terminal)
    for target in AppointmentStatus:
        with pytest.raises(InvalidTransitionException):
            ensure_transition_allowed(terminal, target)


def test_table_covers_every_status() -> None:
    assert set(ALLOWED_TRANSITIONS) == set(AppointmentStatus)
    assert not any(is_terminal(s) for s in (S.PENDING, S.ASSIGNED, S.CONFIRMED))


def test_transition_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        ALLOWED_TRANSITIONS[S.COMPLETED] = frozenset({S.PENDING})  # type: ignore[index]


@pytest.mark.parametrize(
    ("action", "expected"),
    [
        (TransitionAction.ACCEPT, S.CONFIRMED),
        (TransitionAction.CANCEL, S.CANCELED),
        (TransitionAction.ASSIGN, S.ASSIGNED),
    ],
)
def test_actions_map_to_statuses(action: TransitionAction, expected: AppointmentStatus) -> None:
    assert resolve_target_status(action, None) == expected


def test_action_wins_over_status() -> None:
    assert resolve_target_status(TransitionAction.CANCEL, S.CONFIRMED) == S.CANCELED


def test_status_used_verbatim_without_action() -> None:
    assert resolve_target_status(None, S.REJECTED) == S.REJECTED


def test_no_action_and_no_status_resolves_to_none() -> None:
    assert resolve_target_status(None, None) is None


def test_confirmation_requires_consultant() -> None:
    with pytest.raises(ValidationException):
        ensure_target_requirements(S.CONFIRMED, None, None)

    ensure_target_requirements(S.CONFIRMED, "consultant-id", None)


def test_completion_requires_actual_duration() -> None:
    with pytest.raises(ValidationException):
        ensure_target_requirements(S.COMPLETED, "consultant-id", None)

    ensure_target_requirements(S.COMPLETED, "consultant-id", 45)


def test_other_targets_have_no_requirements() -> None:
    for target in (S.ASSIGNED, S.REJECTED, S.CANCELED):
        ensure_target_requirements(target, None, None)


@pytest.mark.parametrize("status", [S.ASSIGNED, S.CONFIRMED])
def test_consultant_can_be_held_while_active(status: AppointmentStatus) -> None:
    ensure_consultant_assignable(status)


@pytest.mark.parametrize("status", [S.PENDING, S.REJECTED, S.CANCELED, S.COMPLETED])
def test_consultant_cannot_be_set_elsewhere(status: AppointmentStatus) -> None:
    with pytest.raises(ValidationException):
        ensure_consultant_assignable(status)

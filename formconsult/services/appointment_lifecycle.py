"""Consultation status state machine.

The allowed transitions are declared once in ``ALLOWED_TRANSITIONS``; anything
not listed there is rejected, including every move out of a terminal status.
A reopened consultation must be submitted as a new request.
"""

from types import MappingProxyType

from formconsult.core.exceptions import InvalidTransitionException, ValidationException
from formconsult.schemas.appointments import AppointmentStatus, TransitionAction

ALLOWED_TRANSITIONS: MappingProxyType[AppointmentStatus, frozenset[AppointmentStatus]] = (
    MappingProxyType(
        {
            AppointmentStatus.PENDING: frozenset(
                {
                    AppointmentStatus.ASSIGNED,
                    AppointmentStatus.CONFIRMED,
                    AppointmentStatus.REJECTED,
                    AppointmentStatus.CANCELED,
                }
            ),
            AppointmentStatus.ASSIGNED: frozenset(
                {
                    AppointmentStatus.CONFIRMED,
                    AppointmentStatus.REJECTED,
                    AppointmentStatus.CANCELED,
                }
            ),
            AppointmentStatus.CONFIRMED: frozenset(
                {
                    AppointmentStatus.COMPLETED,
                    AppointmentStatus.CANCELED,
                }
            ),
            AppointmentStatus.REJECTED: frozenset(),
            AppointmentStatus.CANCELED: frozenset(),
            AppointmentStatus.COMPLETED: frozenset(),
        }
    )
)

ACTION_TARGETS: MappingProxyType[TransitionAction, AppointmentStatus] = MappingProxyType(
    {
        TransitionAction.ACCEPT: AppointmentStatus.CONFIRMED,
        TransitionAction.CANCEL: AppointmentStatus.CANCELED,
        TransitionAction.ASSIGN: AppointmentStatus.ASSIGNED,
    }
)


def is_terminal(status: AppointmentStatus) -> bool:
    """Return True when no transition leaves ``status``."""
    return not ALLOWED_TRANSITIONS[status]


def resolve_target_status(
    action: TransitionAction | None,
    status: AppointmentStatus | None,
) -> AppointmentStatus | None:
    """
    Map a transition request to its target status.

    Args:
        action: Optional shorthand verb, wins over ``status`` when both are set
        status: Optional explicit target status

    Returns:
        The target status, or None when the request carries neither
    """
    if action is not None:
        return ACTION_TARGETS[action]
    return status


def ensure_transition_allowed(
    current: AppointmentStatus,
    target: AppointmentStatus,
) -> None:
    """
    Validate a single status change against the transition table.

    Raises:
        InvalidTransitionException: If ``target`` is not reachable from ``current``
    """
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionException(current.value, target.value)


def ensure_target_requirements(
    target: AppointmentStatus,
    consultant_id: object | None,
    actual_duration: int | None,
) -> None:
    """
    Check the attributes a target status depends on.

    Args:
        target: Status being entered
        consultant_id: Consultant assigned after the write (existing or supplied)
        actual_duration: Real session length in minutes, if supplied

    Raises:
        ValidationException: If a required attribute is missing
    """
    if target == AppointmentStatus.CONFIRMED and consultant_id is None:
        raise ValidationException("A consultant must be assigned before confirmation")

    if target == AppointmentStatus.COMPLETED and actual_duration is None:
        raise ValidationException("actual_duration is required to complete a consultation")


# Statuses a consultation may hold once a consultant is set on it
ASSIGNABLE_STATUSES = frozenset({AppointmentStatus.ASSIGNED, AppointmentStatus.CONFIRMED})


def ensure_consultant_assignable(resulting: AppointmentStatus) -> None:
    """
    Check that a supplied consultant can be stored with the resulting status.

    Raises:
        ValidationException: If the consultation ends up anywhere but ASSIGNED or CONFIRMED
    """
    if resulting not in ASSIGNABLE_STATUSES:
        raise ValidationException(
            f"A consultant can only be assigned to an assigned or confirmed consultation, not {resulting.value}"
        )

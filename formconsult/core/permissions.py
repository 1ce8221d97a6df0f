"""Access rules for consultation requests.

Each operation has its own predicate. The rule sets overlap but none contains
another: transitions admit the assigned consultant while deletion admits the
requester, so they are kept as separate functions.
"""

from collections.abc import Mapping
from typing import Any

from formconsult.schemas.users import UserRole

Record = Mapping[str, Any]


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def _role(user: Record) -> str | None:
    role = user.get("role")
    return role.value if isinstance(role, UserRole) else role


def is_super_admin(user: Record) -> bool:
    """Return True for platform administrators."""
    return _role(user) == UserRole.SUPER_ADMIN.value


def is_company_admin_of(user: Record, appointment: Record) -> bool:
    """Return True when ``user`` administers the appointment's company."""
    return _role(user) == UserRole.ADMIN_ENTREPRISE.value and _same_id(
        user.get("company_id"), appointment.get("company_id")
    )


def is_requester(user: Record, appointment: Record) -> bool:
    """Return True when ``user`` submitted the request."""
    return _same_id(user.get("id"), appointment.get("user_id"))


def is_assigned_consultant(user: Record, appointment: Record) -> bool:
    """Return True when ``user`` is the consultant assigned to the request."""
    return _same_id(user.get("id"), appointment.get("assigned_consultant_id"))


def can_view_appointment(user: Record, appointment: Record) -> bool:
    """Requester, assigned consultant, company admin or super admin."""
    return (
        is_requester(user, appointment)
        or is_assigned_consultant(user, appointment)
        or is_company_admin_of(user, appointment)
        or is_super_admin(user)
    )


def can_transition_appointment(user: Record, appointment: Record) -> bool:
    """Assigned consultant (acting as consultant), company admin or super admin."""
    return (
        (_role(user) == UserRole.CONSULTANT.value and is_assigned_consultant(user, appointment))
        or is_company_admin_of(user, appointment)
        or is_super_admin(user)
    )


def can_delete_appointment(user: Record, appointment: Record) -> bool:
    """Requester, company admin or super admin."""
    return (
        is_requester(user, appointment)
        or is_company_admin_of(user, appointment)
        or is_super_admin(user)
    )


def can_create_appointment(user: Record) -> bool:
    """Employees and company admins attached to a company may file requests."""
    return _role(user) in (
        UserRole.EMPLOYE.value,
        UserRole.ADMIN_ENTREPRISE.value,
    ) and user.get("company_id") is not None

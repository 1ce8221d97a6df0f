"""Database models."""

from formconsult.models.appointments import appointments
from formconsult.models.companies import companies
from formconsult.models.metadata import metadata
from formconsult.models.notifications import notifications
from formconsult.models.users import users

__all__ = [
    "appointments",
    "companies",
    "metadata",
    "notifications",
    "users",
]

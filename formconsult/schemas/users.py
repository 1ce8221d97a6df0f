"""User schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr


class UserRole(str, Enum):
    """User role enumeration."""

    EMPLOYE = "EMPLOYE"
    CONSULTANT = "CONSULTANT"
    FORMATEUR = "FORMATEUR"
    ADMIN_ENTREPRISE = "ADMIN_ENTREPRISE"
    SUPER_ADMIN = "SUPER_ADMIN"


class UserSummary(BaseModel):
    """Minimal user identity embedded in other resources."""

    id: UUID
    name: str | None = None
    email: str

    model_config = {"from_attributes": True}


class CompanySummary(BaseModel):
    """Minimal company identity embedded in other resources."""

    id: UUID
    name: str

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """User schema for API responses."""

    id: UUID
    email: EmailStr
    name: str | None = None
    role: UserRole
    company_id: UUID | None = None
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class ConsultantSummary(UserSummary):
    """Consultant entry offered for assignment."""

    # None when no time slot was asked about
    is_available: bool | None = None


class ConsultantListResponse(BaseModel):
    """Consultants a super admin can assign."""

    consultants: list[ConsultantSummary]
    total: int

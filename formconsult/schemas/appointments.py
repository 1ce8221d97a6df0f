"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from formconsult.schemas.users import CompanySummary, UserSummary


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class TransitionAction(str, Enum):
    """Shorthand verbs accepted in place of an explicit status."""

    ACCEPT = "accept"
    CANCEL = "cancel"
    ASSIGN = "assign"


class AppointmentCreate(BaseModel):
    """Schema for an employee's consultation request."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    scheduled_at: datetime
    duration: int = Field(default=60, ge=1, le=24 * 60)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject whitespace-only titles."""
        if not v.strip():
            raise ValueError("Title must not be blank")
        return v.strip()


class AppointmentTransition(BaseModel):
    """Schema for a status transition and its accompanying attribute changes."""

    action: TransitionAction | None = None
    status: AppointmentStatus | None = None
    notes: str | None = Field(None, max_length=2000)
    meeting_url: str | None = Field(None, max_length=500)
    consultant_id: UUID | None = None
    actual_duration: int | None = Field(None, ge=1, le=24 * 60)

    @property
    def has_attribute_changes(self) -> bool:
        """Whether the body carries anything besides a status change."""
        return any(
            value not in (None, "")
            for value in (self.notes, self.meeting_url, self.consultant_id)
        )


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    title: str
    description: str | None = None
    status: AppointmentStatus
    scheduled_at: datetime
    duration: int | None = None
    actual_duration: int | None = None
    meeting_url: str | None = None
    notes: str | None = None
    completed_at: datetime | None = None
    user_id: UUID
    assigned_consultant_id: UUID | None = None
    company_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentDetail(AppointmentResponse):
    """Appointment with requester, consultant and company expanded."""

    user: UserSummary | None = None
    consultant: UserSummary | None = None
    company: CompanySummary | None = None


class AppointmentMutationResponse(BaseModel):
    """Confirmation wrapper returned by write operations."""

    message: str
    appointment: AppointmentDetail


class AppointmentListResponse(BaseModel):
    """Schema for appointment list response."""

    total: int
    items: list[AppointmentDetail]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    limit: int = Field(default=20, ge=1, le=100)

"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from formconsult.models.metadata import metadata

# Consultation requests
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Request details
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("scheduled_at", DateTime(timezone=True), nullable=False),
    # Minutes; replaced by the real duration on completion
    Column("duration", Integer, nullable=True),
    Column("actual_duration", Integer, nullable=True),
    Column("meeting_url", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Status management
    Column("status", Text, nullable=False, server_default=text("'PENDING'")),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    # Ownership / references
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column(
        "assigned_consultant_id",
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    ),
    # Inherited from the requester, never changed afterwards
    Column("company_id", Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('PENDING', 'ASSIGNED', 'CONFIRMED', 'REJECTED', 'COMPLETED', 'CANCELED')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "(status = 'COMPLETED') = (completed_at IS NOT NULL)",
        name="appointments_completed_at_check",
    ),
    Index("idx_appointments_company_id", "company_id"),
    Index("idx_appointments_user_id", "user_id"),
    Index("idx_appointments_consultant_id", "assigned_consultant_id"),
)

"""User model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Table,
    Text,
    Uuid,
    func,
    text,
    true,
)

from formconsult.models.metadata import metadata

users = Table(
    "users",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("name", Text, nullable=True),
    Column("password_hash", Text, nullable=True),
    Column("role", Text, nullable=False, server_default=text("'EMPLOYE'")),
    # SUPER_ADMIN and CONSULTANT accounts have no company
    Column(
        "company_id",
        Uuid,
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
    ),
    # Account state
    Column("is_active", Boolean, nullable=False, server_default=true()),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("last_login_at", DateTime(timezone=True)),
    CheckConstraint(
        "role IN ('EMPLOYE', 'CONSULTANT', 'FORMATEUR', 'ADMIN_ENTREPRISE', 'SUPER_ADMIN')",
        name="users_role_check",
    ),
    Index("idx_users_company_role", "company_id", "role"),
)

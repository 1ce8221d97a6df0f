"""Companies table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, Table, Text, Uuid, func, text

from formconsult.models.metadata import metadata

companies = Table(
    "companies",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", Text, nullable=False),
    # Hours consumed by completed consultations
    Column("consulting_hours_used", Float, nullable=False, server_default=text("0")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

import os
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import UUID, uuid4

# Settings are read at import time; the suite always runs against in-memory SQLite
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-formconsult")
os.environ["LOG_FORMAT"] = "console"
os.environ["CACHE_ENABLED"] = "false"
os.environ.pop("SMTP_HOST", None)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from formconsult.core.security import create_access_token, get_password_hash
from formconsult.database import get_db
from formconsult.dependencies import get_cache
from formconsult.main import app
from formconsult.models import appointments, companies, metadata, notifications, users
from formconsult.services.email_service import EmailService

TEST_PASSWORD = "Sup3r-secret"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_company(db_session: AsyncSession) -> Callable[..., Awaitable[dict]]:
    """Factory inserting a company."""

    async def _make(name: str = "Acme Consulting") -> dict:
        company = {"id": uuid4(), "name": name, "consulting_hours_used": 0.0}
        await db_session.execute(insert(companies).values(**company))
        await db_session.commit()
        return company

    return _make


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[dict]]:
    """Factory inserting a user with the given role."""

    async def _make(
        role: str,
        company_id: UUID | None = None,
        name: str | None = None,
        email: str | None = None,
        is_active: bool = True,
    ) -> dict:
        user_id = uuid4()
        user = {
            "id": user_id,
            "email": email or f"{role.lower()}-{user_id.hex[:8]}@formconsult.io",
            "name": name if name is not None else f"{role.title()} {user_id.hex[:4]}",
            "password_hash": TEST_PASSWORD_HASH,
            "role": role,
            "company_id": company_id,
            "is_active": is_active,
        }
        await db_session.execute(insert(users).values(**user))
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_appointment(db_session: AsyncSession) -> Callable[..., Awaitable[dict]]:
    """Factory inserting a consultation directly in a given status."""

    async def _make(
        requester: dict,
        status: str = "PENDING",
        consultant_id: UUID | None = None,
        title: str = "Cloud migration review",
        duration: int | None = 60,
        created_at: datetime | None = None,
        scheduled_at: datetime | None = None,
    ) -> dict:
        appointment = {
            "id": uuid4(),
            "title": title,
            "description": "Review of the migration plan",
            "scheduled_at": scheduled_at or datetime.now(UTC) + timedelta(days=3),
            "duration": duration,
            "status": status,
            "user_id": requester["id"],
            "company_id": requester["company_id"],
            "assigned_consultant_id": consultant_id,
        }
        if status == "COMPLETED":
            appointment["completed_at"] = datetime.now(UTC)
            appointment["actual_duration"] = duration
        if created_at is not None:
            appointment["created_at"] = created_at
        await db_session.execute(insert(appointments).values(**appointment))
        await db_session.commit()
        return appointment

    return _make


def auth_headers_for(user: dict) -> dict:
    """Bearer header for ``user``."""
    token = create_access_token(data={"sub": str(user["id"])}, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def world(make_company, make_user) -> SimpleNamespace:
    """Two companies with their staff, a consultant and a super admin."""
    acme = await make_company("Acme")
    globex = await make_company("Globex")

    return SimpleNamespace(
        acme=acme,
        globex=globex,
        employee=await make_user("EMPLOYE", acme["id"], name="Alice Martin"),
        colleague=await make_user("EMPLOYE", acme["id"], name="Bob Durand"),
        company_admin=await make_user("ADMIN_ENTREPRISE", acme["id"], name="Claire Admin"),
        other_admin=await make_user("ADMIN_ENTREPRISE", globex["id"], name="Gary Globex"),
        other_employee=await make_user("EMPLOYE", globex["id"], name="Greta Globex"),
        consultant=await make_user("CONSULTANT", name="Conrad Consultant"),
        other_consultant=await make_user("CONSULTANT", name="Olga Consultant"),
        trainer=await make_user("FORMATEUR", name="Fred Trainer"),
        super_admin=await make_user("SUPER_ADMIN", name="Sam Super"),
        second_super_admin=await make_user("SUPER_ADMIN", name="Sue Super"),
    )


@pytest.fixture
def email_mocks() -> Iterator[SimpleNamespace]:
    """Replace email delivery with AsyncMocks."""
    with (
        patch.object(EmailService, "send_consultation_approved", new_callable=AsyncMock) as approved,
        patch.object(EmailService, "send_consultation_rejected", new_callable=AsyncMock) as rejected,
    ):
        approved.return_value = True
        rejected.return_value = True
        yield SimpleNamespace(approved=approved, rejected=rejected)


@pytest.fixture
def auth() -> Callable[[dict], dict]:
    """Build bearer headers for a user record."""
    return auth_headers_for


@pytest.fixture
def notifications_for(db_session: AsyncSession) -> Callable[[dict], Awaitable[list[dict]]]:
    """Fetch every notification stored for a user, oldest first."""

    async def _fetch(user: dict) -> list[dict]:
        result = await db_session.execute(
            select(notifications)
            .where(notifications.c.user_id == user["id"])
            .order_by(notifications.c.created_at)
        )
        return [dict(row) for row in result.mappings().all()]

    return _fetch


@pytest.fixture
def password() -> str:
    """Plain-text password of every user created by ``make_user``."""
    return TEST_PASSWORD

"""User and company lookups."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from formconsult.core.redis_client import CacheManager
from formconsult.models.companies import companies
from formconsult.models.users import users
from formconsult.schemas.users import UserRole


class UserService:
    """Service for user operations."""

    # Cache TTL in seconds (30 minutes for user profiles)
    USER_CACHE_TTL = 1800

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_user_cache_key(user_id: UUID | str) -> str:
        """Generate cache key for user."""
        return f"user:{user_id}"

    def _invalidate(self, user_id: UUID | str) -> None:
        if self.cache:
            self.cache.delete(self._get_user_cache_key(user_id))

    async def get_user_by_id(self, db: AsyncSession, user_id: UUID) -> dict | None:
        """Get user by ID with caching."""
        if self.cache:
            cached_user = self.cache.get_json(self._get_user_cache_key(user_id))
            if cached_user:
                return cached_user

        query = select(users).where(users.c.id == user_id)
        result = await db.execute(query)
        user = result.mappings().first()

        if not user:
            return None

        user_dict = dict(user)
        # Never put credentials in the cache
        user_dict.pop("password_hash", None)

        if self.cache:
            self.cache.set_json(
                self._get_user_cache_key(user_id), user_dict, ttl=self.USER_CACHE_TTL
            )

        return user_dict

    async def get_user_by_email(self, db: AsyncSession, email: str) -> dict | None:
        """Get user by email, including the password hash."""
        query = select(users).where(users.c.email == email.lower())
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    async def get_user_with_role(
        self, db: AsyncSession, user_id: UUID, role: UserRole
    ) -> dict | None:
        """Get a user only if it holds ``role``."""
        query = select(users).where(users.c.id == user_id, users.c.role == role.value)
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    async def find_first_by_company_and_role(
        self, db: AsyncSession, company_id: UUID, role: UserRole
    ) -> dict | None:
        """Get the earliest-created user of a company with ``role``."""
        query = (
            select(users)
            .where(users.c.company_id == company_id, users.c.role == role.value)
            .order_by(users.c.created_at.asc())
            .limit(1)
        )
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    async def find_all_by_role(self, db: AsyncSession, role: UserRole) -> list[dict]:
        """Get every user holding ``role``, ordered by name."""
        query = select(users).where(users.c.role == role.value).order_by(users.c.name, users.c.email)
        result = await db.execute(query)
        return [dict(row) for row in result.mappings().all()]

    async def get_company(self, db: AsyncSession, company_id: UUID) -> dict | None:
        """Get company by ID."""
        query = select(companies).where(companies.c.id == company_id)
        result = await db.execute(query)
        company = result.mappings().first()
        return dict(company) if company else None

    async def update_last_login(self, db: AsyncSession, user_id: UUID) -> None:
        """Update user's last login timestamp."""
        query = update(users).where(users.c.id == user_id).values(last_login_at=datetime.now(UTC))
        await db.execute(query)
        await db.commit()
        self._invalidate(user_id)

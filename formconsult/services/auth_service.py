"""Authentication service for password login and JWT handling."""

from sqlalchemy.ext.asyncio import AsyncSession

from formconsult.core.exceptions import UnauthorizedException
from formconsult.core.redis_client import CacheManager
from formconsult.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    verify_password,
)
from formconsult.schemas.auth import Token
from formconsult.services.user_service import UserService


class AuthService:
    """Authentication service for credential checks and token issuance."""

    # Matches the default refresh token lifetime
    REVOCATION_TTL = 86400 * 30

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize auth service with an optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _blacklist_key(token: str) -> str:
        return f"blacklist:{token}"

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> dict:
        """
        Check email/password credentials.

        Args:
            db: Database session
            email: Account email
            password: Plain-text password

        Returns:
            The user record without its password hash

        Raises:
            UnauthorizedException: If credentials are wrong or the account is inactive
        """
        user_service = UserService(self.cache)
        user = await user_service.get_user_by_email(db, email)

        if not user or not verify_password(password, user.get("password_hash")):
            raise UnauthorizedException("Invalid email or password")

        if not user["is_active"]:
            raise UnauthorizedException("User account is deactivated")

        await user_service.update_last_login(db, user["id"])
        user.pop("password_hash", None)
        return user

    def create_tokens(self, user_id: str) -> Token:
        """Create an access/refresh token pair for a user."""
        return Token(
            access_token=create_access_token(data={"sub": user_id}),
            refresh_token=create_refresh_token(data={"sub": user_id}),
            token_type="bearer",
        )

    def refresh_access_token(self, refresh_token: str) -> Token:
        """
        Create new token pair from a refresh token.

        Raises:
            UnauthorizedException: If refresh token is invalid or revoked
        """
        payload = decode_refresh_token(refresh_token)

        if payload is None or payload.get("sub") is None:
            raise UnauthorizedException("Invalid refresh token")

        if self.cache and self.cache.exists(self._blacklist_key(refresh_token)):
            raise UnauthorizedException("Token has been revoked")

        return self.create_tokens(payload["sub"])

    def revoke_token(self, token: str) -> bool:
        """Blacklist a refresh token; returns False when no cache is configured."""
        if not self.cache:
            return False
        return self.cache.set(self._blacklist_key(token), "1", ttl=self.REVOCATION_TTL)

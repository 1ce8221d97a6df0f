"""Authentication endpoints."""

from fastapi import APIRouter, status

from formconsult.core.exceptions import BadRequestException
from formconsult.dependencies import Cache, CurrentUser, DatabaseSession
from formconsult.schemas.auth import LoginRequest, LoginResponse, Token, TokenRefresh
from formconsult.schemas.users import UserResponse
from formconsult.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Email and password login",
)
async def login(
    request: LoginRequest,
    db: DatabaseSession,
    cache: Cache,
) -> LoginResponse:
    """
    Check credentials and return a JWT token pair.

    Raises:
        HTTPException: 401 if the credentials are wrong or the account is inactive
    """
    auth_service = AuthService(cache)
    user = await auth_service.authenticate(db, request.email, request.password)
    tokens = auth_service.create_tokens(str(user["id"]))

    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/refresh",
    response_model=Token,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
)
async def refresh_token(request: TokenRefresh, cache: Cache) -> Token:
    """
    Exchange a refresh token for a new token pair.

    Raises:
        HTTPException: 401 if the refresh token is invalid or revoked
    """
    return AuthService(cache).refresh_access_token(request.refresh_token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout and revoke tokens",
)
async def logout(request: TokenRefresh, current_user: CurrentUser, cache: Cache) -> None:
    """
    Revoke a refresh token.

    Raises:
        HTTPException: 400 if token revocation is unavailable (cache disabled)
    """
    if not AuthService(cache).revoke_token(request.refresh_token):
        raise BadRequestException("Token revocation is not available")


@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Current user profile",
)
async def read_me(current_user: CurrentUser) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(current_user)

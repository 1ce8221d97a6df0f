"""Tests for authentication endpoints and dependencies."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from formconsult.core.redis_client import CacheManager
from formconsult.core.security import create_access_token, create_refresh_token, decode_access_token
from formconsult.dependencies import get_cache
from formconsult.main import app

BASE_URL = "/api/v1/auth"


@pytest.fixture
def cache(client: AsyncClient) -> MagicMock:
    """Cache manager double that reports every key as present."""
    manager = MagicMock(spec=CacheManager)
    manager.get_json.return_value = None
    manager.set.return_value = True
    manager.exists.return_value = True
    app.dependency_overrides[get_cache] = lambda: manager
    return manager


@pytest.mark.asyncio
async def test_login(client: AsyncClient, world, password: str) -> None:
    response = await client.post(
        f"{BASE_URL}/login",
        json={"email": world.company_admin["email"].upper(), "password": password},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["id"] == str(world.company_admin["id"])
    assert data["user"]["role"] == "ADMIN_ENTREPRISE"
    assert data["user"]["company_id"] == str(world.acme["id"])
    assert "password_hash" not in data["user"]
    assert decode_access_token(data["access_token"])["sub"] == str(world.company_admin["id"])


@pytest.mark.asyncio
async def test_login_updates_last_login(client: AsyncClient, world, auth, password: str) -> None:
    await client.post(f"{BASE_URL}/login", json={"email": world.employee["email"], "password": password})

    me = await client.get(f"{BASE_URL}/me", headers=auth(world.employee))
    assert me.json()["last_login_at"] is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "secret"),
    [
        ("nobody@formconsult.io", "whatever"),
        (None, "wrong-password"),
    ],
)
async def test_login_rejects_bad_credentials(client: AsyncClient, world, email, secret: str) -> None:
    response = await client.post(
        f"{BASE_URL}/login",
        json={"email": email or world.employee["email"], "password": secret},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_rejects_inactive_user(client: AsyncClient, make_user, password: str) -> None:
    user = await make_user("EMPLOYE", is_active=False)

    response = await client.post(f"{BASE_URL}/login", json={"email": user["email"], "password": password})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, world) -> None:
    refresh = create_refresh_token({"sub": str(world.employee["id"])})

    response = await client.post(f"{BASE_URL}/refresh", json={"refresh_token": refresh})

    assert response.status_code == 200
    assert decode_access_token(response.json()["access_token"])["sub"] == str(world.employee["id"])


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client: AsyncClient, world) -> None:
    access = create_access_token({"sub": str(world.employee["id"])})

    response = await client.post(f"{BASE_URL}/refresh", json={"refresh_token": access})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_rejects_revoked_token(client: AsyncClient, world, cache: MagicMock) -> None:
    refresh = create_refresh_token({"sub": str(world.employee["id"])})

    response = await client.post(f"{BASE_URL}/refresh", json={"refresh_token": refresh})

    assert response.status_code == 401
    assert response.json()["message"] == "Token has been revoked"
    cache.exists.assert_called_once_with(f"blacklist:{refresh}")


@pytest.mark.asyncio
async def test_logout_blacklists_refresh_token(client: AsyncClient, world, auth, cache: MagicMock) -> None:
    refresh = create_refresh_token({"sub": str(world.employee["id"])})

    response = await client.post(
        f"{BASE_URL}/logout", json={"refresh_token": refresh}, headers=auth(world.employee)
    )

    assert response.status_code == 204
    key, value = cache.set.call_args.args
    assert key == f"blacklist:{refresh}"
    assert value == "1"


@pytest.mark.asyncio
async def test_logout_without_cache(client: AsyncClient, world, auth) -> None:
    refresh = create_refresh_token({"sub": str(world.employee["id"])})

    response = await client.post(
        f"{BASE_URL}/logout", json={"refresh_token": refresh}, headers=auth(world.employee)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_me(client: AsyncClient, world, auth) -> None:
    response = await client.get(f"{BASE_URL}/me", headers=auth(world.consultant))

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == world.consultant["email"]
    assert data["role"] == "CONSULTANT"
    assert data["company_id"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": f"Bearer {create_refresh_token({'sub': str(uuid4())})}"},
        {"Authorization": f"Bearer {create_access_token({'sub': 'not-a-uuid'})}"},
        {"Authorization": f"Bearer {create_access_token({'sub': str(uuid4())})}"},
    ],
    ids=["missing", "malformed", "refresh-token", "bad-subject", "unknown-user"],
)
async def test_me_rejects_invalid_credentials(client: AsyncClient, headers: dict) -> None:
    response = await client.get(f"{BASE_URL}/me", headers=headers)

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_rejects_deactivated_user(client: AsyncClient, make_user, auth) -> None:
    user = await make_user("EMPLOYE", is_active=False)

    response = await client.get(f"{BASE_URL}/me", headers=auth(user))

    assert response.status_code == 403

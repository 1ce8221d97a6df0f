"""Tests for the consultant directory endpoint."""

from datetime import UTC, datetime

import pytest
from httpx import AsyncClient

BASE_URL = "/api/v1/consultants"


@pytest.mark.asyncio
async def test_super_admin_lists_active_consultants(client: AsyncClient, world, auth, make_user) -> None:
    await make_user("CONSULTANT", name="Inactive Consultant", is_active=False)

    response = await client.get(BASE_URL, headers=auth(world.super_admin))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [c["name"] for c in data["consultants"]] == ["Conrad Consultant", "Olga Consultant"]
    assert data["consultants"][0]["id"] == str(world.consultant["id"])
    assert all(c["is_available"] is None for c in data["consultants"])


@pytest.mark.asyncio
async def test_availability_for_a_slot(client: AsyncClient, world, auth, make_appointment) -> None:
    slot = datetime(2030, 3, 14, 10, 0, tzinfo=UTC)
    await make_appointment(world.employee, "CONFIRMED", world.consultant["id"], scheduled_at=slot)

    response = await client.get(
        BASE_URL,
        params={"scheduled_at": "2030-03-14T10:00:00Z"},
        headers=auth(world.super_admin),
    )

    assert response.status_code == 200
    availability = {c["name"]: c["is_available"] for c in response.json()["consultants"]}
    assert availability == {"Conrad Consultant": False, "Olga Consultant": True}


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["employee", "company_admin", "consultant", "trainer"])
async def test_other_roles_cannot_list_consultants(client: AsyncClient, world, auth, role: str) -> None:
    response = await client.get(BASE_URL, headers=auth(getattr(world, role)))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_listing_requires_authentication(client: AsyncClient) -> None:
    response = await client.get(BASE_URL)

    assert response.status_code == 401

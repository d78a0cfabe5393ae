"""
Tests for court listing, health and metrics endpoints.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from courtshare.core import security
from courtshare.models.court import Court
from conftest import create_access_token


@pytest.mark.asyncio
async def test_list_courts_sorted_by_name(client: AsyncClient, db_session, court):
    db_session.add(Court(name="Alta Plaza", description=""))
    await db_session.commit()

    response = await client.get("/api/v1/courts/")
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Alta Plaza", "Golden Gate Park"]


@pytest.mark.asyncio
async def test_get_court(client: AsyncClient, court):
    response = await client.get(f"/api/v1/courts/{court.id}")
    assert response.status_code == 200
    assert response.json()["city"] == "San Francisco"

    missing = await client.get("/api/v1/courts/999")
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Court 999 not found", "error": "not_found"}


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "reservation_attempts_total" in response.text


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    response = await client.get(
        "/api/v1/reservations/user",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"


@pytest.mark.asyncio
async def test_expired_token_rejected(client: AsyncClient, owner):
    """Tokens come from the identity layer; this service only verifies them."""
    token = create_access_token(
        data={"sub": str(owner.id), "email": owner.email},
        expires_delta=timedelta(minutes=-1),
    )
    response = await client.get(
        "/api/v1/reservations/user",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401
    assert not hasattr(security, "create_access_token")


@pytest.mark.asyncio
async def test_token_for_other_email_rejected(client: AsyncClient, owner):
    token = create_access_token(data={"sub": str(owner.id), "email": "someone@example.com"})
    response = await client.get(
        "/api/v1/reservations/user",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401

"""
Tests for reservation messages.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_members_post_and_read_messages(client: AsyncClient, owner_headers, player_headers, reservation):
    url = f"/api/v1/reservations/{reservation.id}/messages/"

    first = await client.post(url, json={"content": "Court 3 this time"}, headers=owner_headers)
    assert first.status_code == 201
    assert first.json()["user"]["email"] == "dana@example.com"

    await client.post(url, json={"content": "  On my way  "}, headers=player_headers)

    response = await client.get(url, headers=player_headers)
    assert response.status_code == 200
    assert [m["content"] for m in response.json()] == ["Court 3 this time", "On my way"]


@pytest.mark.asyncio
async def test_blank_message_rejected(client: AsyncClient, owner_headers, reservation):
    response = await client.post(
        f"/api/v1/reservations/{reservation.id}/messages/",
        json={"content": "   "},
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_outsider_cannot_read_messages(client: AsyncClient, outsider_headers, reservation):
    response = await client.get(f"/api/v1/reservations/{reservation.id}/messages/", headers=outsider_headers)
    assert response.status_code == 403

"""
Tests for the reservation lifecycle, including overlap conflicts.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from courtshare.models.invite import Invite
from courtshare.models.message import Message
from courtshare.models.participant import ParticipantStatus
from courtshare.models.reservation import Reservation
from courtshare.models.user import User
from conftest import parse_instant, utc


def _payload(court_id, start, end, **extra):
    body = {
        "courtId": court_id,
        "startTime": start.isoformat(),
        "endTime": end.isoformat(),
    }
    body.update(extra)
    return body


@pytest.mark.asyncio
async def test_create_reservation(client: AsyncClient, owner_headers, court):
    """Owner gets a named reservation with a short link and provisioned participants."""
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(
            court.id,
            utc(17),
            utc(18, 30),
            description="Doubles, bring balls",
            participantIds=["New.Person@Example.com", "dana@example.com"],
        ),
        headers=owner_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Dana's 6/15 Reservation at Golden Gate Park"
    assert parse_instant(data["startTime"]) == utc(17)
    assert parse_instant(data["endTime"]) == utc(18, 30)
    assert data["isOwner"] is True
    assert data["shortLink"].endswith(f"/r/{data['shortUrl']}")
    assert data["court"]["name"] == "Golden Gate Park"

    # The owner's own e-mail is skipped; the other address is provisioned lowercased
    assert [p["email"] for p in data["participants"]] == ["new.person@example.com"]
    assert data["participants"][0]["isGoing"] is True
    assert data["participants"][0]["hasPaid"] is False
    assert data["goingCount"] == 1
    assert data["notGoingCount"] == 0


@pytest.mark.asyncio
async def test_create_reservation_unauthenticated(client: AsyncClient, court):
    response = await client.post("/api/v1/reservations/", json=_payload(court.id, utc(17), utc(18)))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_reservation_missing_fields(client: AsyncClient, owner_headers):
    response = await client.post("/api/v1/reservations/", json={"description": "x"}, headers=owner_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation"


@pytest.mark.asyncio
async def test_create_reservation_requires_payment_info(client: AsyncClient, owner_headers, court):
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(17), utc(18), paymentRequired=True, paymentInfo="   "),
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_reservation_requires_password_when_protected(client: AsyncClient, owner_headers, court):
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(17), utc(18), passwordRequired=True),
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_reservation_too_long(client: AsyncClient, owner_headers, court):
    """Seven half-hour slots exceed the three hour limit."""
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(15), utc(18, 30)),
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_reservation_off_grid(client: AsyncClient, owner_headers, court):
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(17, 15), utc(18)),
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_reservation_unknown_court(client: AsyncClient, owner_headers):
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(999, utc(17), utc(18)),
        headers=owner_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_overlapping_reservation_conflicts(client: AsyncClient, db_session, player_headers, court, reservation):
    """A span overlapping an existing reservation on the same court returns 409."""
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(17, 30), utc(18, 30)),
        headers=player_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"

    count = await db_session.scalar(select(func.count()).select_from(Reservation))
    assert count == 1


@pytest.mark.asyncio
async def test_adjacent_reservation_allowed(client: AsyncClient, player_headers, court, reservation):
    """[18:00, 19:00) touches [17:00, 18:00) without overlapping."""
    response = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(18), utc(19)),
        headers=player_headers,
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_second_booking_of_same_slot_conflicts(client: AsyncClient, owner_headers, player_headers, court):
    """Two owners submit the same slot from stale grids; exactly one wins."""
    first = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(20), utc(21)),
        headers=owner_headers,
    )
    second = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(20), utc(21)),
        headers=player_headers,
    )
    assert sorted([first.status_code, second.status_code]) == [201, 409]


@pytest.mark.asyncio
async def test_get_reservation_member_only(
    client: AsyncClient, owner_headers, player_headers, outsider_headers, reservation
):
    owner_view = await client.get(f"/api/v1/reservations/{reservation.id}", headers=owner_headers)
    assert owner_view.status_code == 200
    assert owner_view.json()["isOwner"] is True

    player_view = await client.get(f"/api/v1/reservations/{reservation.id}", headers=player_headers)
    assert player_view.status_code == 200
    assert player_view.json()["isOwner"] is False

    outsider_view = await client.get(f"/api/v1/reservations/{reservation.id}", headers=outsider_headers)
    assert outsider_view.status_code == 403


@pytest.mark.asyncio
async def test_get_reservation_not_found(client: AsyncClient, owner_headers):
    response = await client.get("/api/v1/reservations/12345", headers=owner_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_user_reservations(client: AsyncClient, owner_headers, player_headers, reservation):
    mine = await client.get("/api/v1/reservations/user", headers=owner_headers)
    assert mine.status_code == 200
    assert [r["id"] for r in mine.json()["owned"]] == [reservation.id]
    assert mine.json()["participating"] == []

    theirs = await client.get("/api/v1/reservations/user", headers=player_headers)
    assert theirs.json()["owned"] == []
    assert [r["id"] for r in theirs.json()["participating"]] == [reservation.id]


@pytest.mark.asyncio
async def test_update_reservation_partial(client: AsyncClient, owner_headers, reservation):
    response = await client.put(
        f"/api/v1/reservations/{reservation.id}",
        json={"description": "Bring water"},
        headers=owner_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["description"] == "Bring water"
    assert parse_instant(data["startTime"]) == utc(17)


@pytest.mark.asyncio
async def test_update_reservation_forbidden_for_participant(client: AsyncClient, player_headers, reservation):
    response = await client.put(
        f"/api/v1/reservations/{reservation.id}",
        json={"description": "Hijacked"},
        headers=player_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reschedule_reservation(client: AsyncClient, owner_headers, court, reservation):
    """Moving to 13:00-15:00 local frees the old slot and keeps the name in sync."""
    response = await client.put(
        f"/api/v1/reservations/{reservation.id}/schedule",
        json={"startTime": utc(20).isoformat(), "endTime": utc(22).isoformat()},
        headers=owner_headers,
    )
    assert response.status_code == 200
    assert parse_instant(response.json()["startTime"]) == utc(20)
    assert parse_instant(response.json()["endTime"]) == utc(22)

    slots = await client.get(
        f"/api/v1/courts/{court.id}/time-slots",
        params={"date": "2030-06-15", "interval": 60},
    )
    by_start = {parse_instant(s["startTime"]): s["isAvailable"] for s in slots.json()}
    assert by_start[utc(17)] is True
    assert by_start[utc(20)] is False
    assert by_start[utc(21)] is False


@pytest.mark.asyncio
async def test_reschedule_overlapping_own_span(client: AsyncClient, owner_headers, reservation):
    """Extending over the reservation's own current slot is not a conflict."""
    response = await client.put(
        f"/api/v1/reservations/{reservation.id}/schedule",
        json={"startTime": utc(17).isoformat(), "endTime": utc(20).isoformat()},
        headers=owner_headers,
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_reschedule_into_other_reservation_conflicts(
    client: AsyncClient, owner_headers, player_headers, court, reservation
):
    other = await client.post(
        "/api/v1/reservations/",
        json=_payload(court.id, utc(19), utc(20)),
        headers=player_headers,
    )
    assert other.status_code == 201

    response = await client.put(
        f"/api/v1/reservations/{reservation.id}/schedule",
        json={"startTime": utc(18).isoformat(), "endTime": utc(20).isoformat()},
        headers=owner_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_reschedule_requires_hour_grid(client: AsyncClient, owner_headers, reservation):
    response = await client.put(
        f"/api/v1/reservations/{reservation.id}/schedule",
        json={"startTime": utc(17, 30).isoformat(), "endTime": utc(18, 30).isoformat()},
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_reservation_cascades(
    client: AsyncClient, db_session, owner_headers, player_headers, reservation
):
    reservation_id = reservation.id
    await client.post(
        f"/api/v1/reservations/{reservation_id}/messages/",
        json={"content": "See you there"},
        headers=player_headers,
    )
    await client.post(
        f"/api/v1/reservations/{reservation_id}/invite",
        json={"email": "late@example.com"},
        headers=owner_headers,
    )

    forbidden = await client.delete(f"/api/v1/reservations/{reservation_id}/delete", headers=player_headers)
    assert forbidden.status_code == 403

    response = await client.delete(f"/api/v1/reservations/{reservation_id}/delete", headers=owner_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "reservationId": reservation_id}

    for model in (Reservation, ParticipantStatus, Invite, Message):
        count = await db_session.scalar(select(func.count()).select_from(model))
        assert count == 0, model.__name__

    # Users are never removed with a reservation
    users = await db_session.scalar(select(func.count()).select_from(User))
    assert users == 2

    gone = await client.get(f"/api/v1/reservations/{reservation_id}", headers=owner_headers)
    assert gone.status_code == 404

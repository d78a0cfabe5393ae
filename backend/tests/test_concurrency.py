"""
Race scenarios run across independent sessions, one connection each.

The interleaved tests pin the losing request's reads before the winner
commits and run on any backend. The simultaneous tests rely on PostgreSQL row
locks and run only when TEST_DATABASE_URL points at PostgreSQL.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from courtshare.core.errors import ConflictError
from courtshare.models.court import Court
from courtshare.models.invite import Invite
from courtshare.models.participant import ParticipantStatus
from courtshare.models.reservation import Reservation
from courtshare.models.user import User
from courtshare.schemas.reservation import ReservationCreate
from courtshare.services import access_service
from courtshare.services.reservation_service import create_reservation
from courtshare.services.slot_service import get_time_slots
from conftest import BOOKING_DAY, TEST_DATABASE_URL, utc

requires_postgres = pytest.mark.skipif(
    not TEST_DATABASE_URL.startswith("postgresql"),
    reason="simultaneous writers need row locks; set TEST_DATABASE_URL to PostgreSQL",
)


async def _seed(session_factory) -> dict:
    async with session_factory() as db:
        owner = User(email="dana@example.com", name="Dana Whitfield")
        player = User(email="b@example.com", name="Bo Player")
        rival = User(email="c@example.com", name="Cam Rival")
        court = Court(name="Golden Gate Park", description="")
        db.add_all([owner, player, rival, court])
        await db.commit()
        return {"owner": owner.id, "player": player.id, "rival": rival.id, "court": court.id}


def _booking(court_id: int) -> ReservationCreate:
    """10:00-11:00 local on BOOKING_DAY."""
    return ReservationCreate(court_id=court_id, start_time=utc(17), end_time=utc(18), slot_minutes=60)


async def _seed_invite(session_factory, ids: dict) -> tuple[int, str]:
    """Reservation owned by Dana with an open invite for Bo."""
    async with session_factory() as db:
        owner = await db.get(User, ids["owner"])
        reservation = await create_reservation(db, owner, _booking(ids["court"]))
        invite = await access_service.create_invite(db, reservation.id, owner, "b@example.com")
        return reservation.id, invite.token


async def _count(session_factory, model, *criteria) -> int:
    async with session_factory() as db:
        return await db.scalar(select(func.count()).select_from(model).where(*criteria))


@pytest.mark.asyncio
async def test_invite_accept_race_consumes_token_once(session_factory, monkeypatch):
    """
    Both accepts read the invite as unused; the first stamps it and commits
    before the second reaches its conditional update.
    """
    ids = await _seed(session_factory)
    reservation_id, token = await _seed_invite(session_factory, ids)

    async with session_factory() as first, session_factory() as second:
        first_user = await first.get(User, ids["player"])
        second_user = await second.get(User, ids["player"])
        await first.commit()
        await second.commit()

        real_get_invite = access_service._get_invite

        async def read_then_let_first_accept(db, invite_token):
            invite = await real_get_invite(db, invite_token)
            await db.commit()
            monkeypatch.setattr(access_service, "_get_invite", real_get_invite)
            assert await access_service.accept_invite(first, invite_token, first_user) == reservation_id
            return invite

        monkeypatch.setattr(access_service, "_get_invite", read_then_let_first_accept)
        with pytest.raises(ConflictError):
            await access_service.accept_invite(second, token, second_user)

    assert await _count(session_factory, ParticipantStatus, ParticipantStatus.reservation_id == reservation_id) == 1
    async with session_factory() as db:
        invite = (await db.execute(select(Invite).where(Invite.token == token))).scalar_one()
        assert invite.used_at is not None


@pytest.mark.asyncio
async def test_booking_from_stale_grid_conflicts_across_sessions(session_factory):
    """The loser saw the slot free, but the write-time re-check sees the winner's row."""
    ids = await _seed(session_factory)

    async with session_factory() as first, session_factory() as second:
        owner = await first.get(User, ids["owner"])
        rival = await second.get(User, ids["rival"])

        grid = await get_time_slots(second, ids["court"], BOOKING_DAY, width_minutes=60)
        assert next(s for s in grid if s.start == utc(17)).is_available
        await first.commit()
        await second.commit()

        await create_reservation(first, owner, _booking(ids["court"]))
        with pytest.raises(ConflictError):
            await create_reservation(second, rival, _booking(ids["court"]))

    assert await _count(session_factory, Reservation, Reservation.court_id == ids["court"]) == 1


@requires_postgres
@pytest.mark.asyncio
async def test_simultaneous_bookings_of_same_slot(session_factory):
    ids = await _seed(session_factory)

    async def book(user_id):
        async with session_factory() as db:
            user = await db.get(User, user_id)
            return await create_reservation(db, user, _booking(ids["court"]))

    results = await asyncio.gather(book(ids["owner"]), book(ids["rival"]), return_exceptions=True)

    assert sum(isinstance(r, Reservation) for r in results) == 1
    assert sum(isinstance(r, ConflictError) for r in results) == 1
    assert await _count(session_factory, Reservation, Reservation.court_id == ids["court"]) == 1


@requires_postgres
@pytest.mark.asyncio
async def test_simultaneous_invite_accepts(session_factory):
    ids = await _seed(session_factory)
    reservation_id, token = await _seed_invite(session_factory, ids)

    async def accept():
        async with session_factory() as db:
            user = await db.get(User, ids["player"])
            return await access_service.accept_invite(db, token, user)

    results = await asyncio.gather(accept(), accept(), return_exceptions=True)

    assert results.count(reservation_id) == 1
    assert sum(isinstance(r, ConflictError) for r in results) == 1
    assert await _count(session_factory, ParticipantStatus, ParticipantStatus.reservation_id == reservation_id) == 1

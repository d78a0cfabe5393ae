"""
Reservation lifecycle: create, read, update, reschedule, delete.

CONCURRENCY STRATEGY: Court Row Lock + Overlap Re-check
========================================================

Problem:
  Two owners load the slot grid, both see 10:00-11:00 free, both POST.
  Availability was only advisory at read time, so both inserts succeed.
  Result: Double booking.

Solution:
  Every write that places a reservation on a court runs, inside one
  transaction:

  1. SELECT ... FROM courts WHERE id = :court_id FOR UPDATE
     (serializes writers per court; readers are not blocked)
  2. Re-run the half-open overlap query against reservations on that court
  3. INSERT / UPDATE the reservation, then COMMIT

  The second writer blocks on step 1 until the first commits, then sees the
  new row in step 2 and fails with a conflict.

  On PostgreSQL the migration also installs an exclusion constraint
  (court_id WITH =, tstzrange(start_time, end_time) WITH &&). If anything
  bypasses the lock, the constraint violation is translated to a conflict.

Why per-court locking is fine here:
  Contention is a handful of people per court per day. Serializing writes on
  one court costs nothing measurable and never touches other courts.
"""

import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.clock import ensure_utc, utc_to_local
from courtshare.core.config import get_settings
from courtshare.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from courtshare.core.logging import get_logger
from courtshare.core.metrics import (
    record_participant_join,
    record_reservation_attempt,
    reservation_latency,
)
from courtshare.models.court import Court
from courtshare.models.invite import Invite
from courtshare.models.message import Message
from courtshare.models.participant import ParticipantStatus
from courtshare.models.reservation import Reservation
from courtshare.models.user import User
from courtshare.schemas.reservation import ReservationCreate, ReservationUpdate
from courtshare.services.slot_service import EDIT_MAX_SLOTS, EDIT_SLOT_MINUTES, max_slots_for, validate_span
from courtshare.services.user_service import find_or_create_user_by_email

logger = get_logger(__name__)
settings = get_settings()

MAX_SHORT_URL_ATTEMPTS = 5


def format_reservation_name(owner: User, start_time: datetime, court_name: str) -> str:
    """e.g. "Dana's 3/10 Reservation at Golden Gate Park". Date is facility-local."""
    first_name = owner.first_name or "Unknown"
    local = utc_to_local(start_time)
    return f"{first_name}'s {local.month}/{local.day} Reservation at {court_name}"


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


async def generate_short_url(db: AsyncSession) -> str:
    for _ in range(MAX_SHORT_URL_ATTEMPTS):
        candidate = secrets.token_urlsafe(settings.SHORT_URL_BYTES)
        taken = await db.execute(select(Reservation.id).where(Reservation.short_url == candidate))
        if taken.first() is None:
            return candidate
    raise ConflictError("Could not allocate a unique short URL, please retry")


async def get_reservation(db: AsyncSession, reservation_id: int) -> Reservation:
    """Load a reservation with court, owner and participants, refreshed from storage."""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()
    if not reservation:
        raise NotFoundError(f"Reservation {reservation_id} not found")
    return reservation


def ensure_owner(reservation: Reservation, user: User, action: str = "modify") -> None:
    if not reservation.is_owned_by(user.id):
        logger.warning(
            "reservation_forbidden",
            reservation_id=reservation.id,
            user_id=user.id,
            action=action,
        )
        raise ForbiddenError(f"Only the reservation owner can {action} this reservation")


def ensure_member(reservation: Reservation, user: User) -> None:
    """Owner or participant. Shared by full reads, rosters and messages."""
    if reservation.is_owned_by(user.id) or reservation.has_participant(user.id):
        return
    raise ForbiddenError("Not authorized to view this reservation")


async def assert_court_free(
    db: AsyncSession,
    court_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> None:
    """Lock the court row, then re-run the overlap check inside this transaction."""
    locked = await db.execute(select(Court.id).where(Court.id == court_id).with_for_update())
    if locked.first() is None:
        raise NotFoundError(f"Court {court_id} not found")

    query = select(Reservation.id).where(
        Reservation.court_id == court_id,
        Reservation.start_time < end,
        Reservation.end_time > start,
    )
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)

    clash = (await db.execute(query.limit(1))).first()
    if clash is not None:
        logger.info(
            "reservation_conflict",
            court_id=court_id,
            start=start.isoformat(),
            end=end.isoformat(),
            conflicting_reservation_id=clash.id,
        )
        raise ConflictError("The selected time overlaps an existing reservation")


async def create_reservation(db: AsyncSession, owner: User, data: ReservationCreate) -> Reservation:
    if not data.court_id or not data.start_time or not data.end_time:
        record_reservation_attempt("create", "invalid")
        raise ValidationError("Missing required fields: courtId, startTime and endTime")

    payment_info = _clean(data.payment_info)
    if data.payment_required and not payment_info:
        record_reservation_attempt("create", "invalid")
        raise ValidationError("Payment information is required when payment is required")

    password = data.password if data.password and data.password.strip() else None
    if data.password_required and not password:
        record_reservation_attempt("create", "invalid")
        raise ValidationError("A password is required when password protection is enabled")

    start, end = ensure_utc(data.start_time), ensure_utc(data.end_time)
    try:
        validate_span(start, end, data.slot_minutes, max_slots_for(data.slot_minutes))
    except ValidationError:
        record_reservation_attempt("create", "invalid")
        raise

    court = await db.get(Court, data.court_id)
    if not court:
        raise NotFoundError(f"Court {data.court_id} not found")

    owner_id = owner.id
    with reservation_latency.time():
        try:
            await assert_court_free(db, court.id, start, end)
        except ConflictError:
            record_reservation_attempt("create", "conflict")
            raise

        participants: list[User] = []
        seen = {owner.email}
        for email in data.participant_emails:
            user = await find_or_create_user_by_email(db, email)
            if user.email in seen:
                continue
            seen.add(user.email)
            participants.append(user)

        reservation = Reservation(
            name=format_reservation_name(owner, start, court.name),
            description=_clean(data.description),
            start_time=start,
            end_time=end,
            short_url=await generate_short_url(db),
            password=password,
            password_required=bool(data.password_required and password),
            payment_required=data.payment_required,
            payment_info=payment_info,
            owner_id=owner_id,
            court_id=court.id,
        )
        try:
            async with db.begin_nested():
                db.add(reservation)
                await db.flush()
                for user in participants:
                    db.add(ParticipantStatus(
                        user_id=user.id,
                        reservation_id=reservation.id,
                        is_going=True,
                        has_paid=False,
                    ))
                await db.flush()
        except IntegrityError as e:
            record_reservation_attempt("create", "conflict")
            logger.warning("reservation_insert_rejected", court_id=court.id, error=str(e.orig))
            raise ConflictError("The selected time overlaps an existing reservation")

        reservation_id = reservation.id
        await db.commit()

    for _ in participants:
        record_participant_join("create")
    record_reservation_attempt("create", "success")
    logger.info(
        "reservation_created",
        reservation_id=reservation_id,
        owner_id=owner_id,
        court_id=court.id,
        start=start.isoformat(),
        end=end.isoformat(),
        participants=len(participants),
    )
    return await get_reservation(db, reservation_id)


async def get_reservation_for_member(db: AsyncSession, reservation_id: int, user: User) -> Reservation:
    reservation = await get_reservation(db, reservation_id)
    ensure_member(reservation, user)
    return reservation


async def list_user_reservations(db: AsyncSession, user: User) -> tuple[list[Reservation], list[Reservation]]:
    """(owned, participating), each ordered by start time."""
    participating_ids = select(ParticipantStatus.reservation_id).where(ParticipantStatus.user_id == user.id)
    result = await db.execute(
        select(Reservation)
        .where(or_(Reservation.owner_id == user.id, Reservation.id.in_(participating_ids)))
        .order_by(Reservation.start_time.asc())
        .execution_options(populate_existing=True)
    )
    reservations = list(result.scalars().all())
    owned = [r for r in reservations if r.is_owned_by(user.id)]
    participating = [r for r in reservations if not r.is_owned_by(user.id)]
    return owned, participating


async def update_reservation(
    db: AsyncSession,
    reservation_id: int,
    user: User,
    data: ReservationUpdate,
) -> Reservation:
    """Owner-only edit of description and payment info. Time and court are immutable here."""
    reservation = await get_reservation(db, reservation_id)
    ensure_owner(reservation, user, "update")

    changed = data.model_fields_set
    if "payment_info" in changed:
        payment_info = _clean(data.payment_info)
        if reservation.payment_required and not payment_info:
            raise ValidationError("Payment information is required when payment is required")
        reservation.payment_info = payment_info
    if "description" in changed:
        reservation.description = _clean(data.description)

    await db.flush()
    await db.commit()
    logger.info("reservation_updated", reservation_id=reservation_id, fields=sorted(changed))
    return await get_reservation(db, reservation_id)


async def reschedule_reservation(
    db: AsyncSession,
    reservation_id: int,
    user: User,
    start_time: datetime,
    end_time: datetime,
) -> Reservation:
    """
    Move a reservation on its court using the edit grid (60 minute slots, up
    to 6). Its own current span never conflicts with itself. Rescheduling to
    the current span is a no-op.
    """
    reservation = await get_reservation(db, reservation_id)
    ensure_owner(reservation, user, "reschedule")

    start, end = ensure_utc(start_time), ensure_utc(end_time)
    try:
        validate_span(start, end, EDIT_SLOT_MINUTES, EDIT_MAX_SLOTS)
    except ValidationError:
        record_reservation_attempt("reschedule", "invalid")
        raise

    if reservation.start_time == start and reservation.end_time == end:
        return reservation

    court_id = reservation.court_id
    with reservation_latency.time():
        try:
            await assert_court_free(db, court_id, start, end, exclude_reservation_id=reservation_id)
        except ConflictError:
            record_reservation_attempt("reschedule", "conflict")
            raise

        previous = (reservation.start_time, reservation.end_time)
        try:
            async with db.begin_nested():
                reservation.start_time = start
                reservation.end_time = end
                reservation.name = format_reservation_name(reservation.owner, start, reservation.court.name)
                await db.flush()
        except IntegrityError:
            record_reservation_attempt("reschedule", "conflict")
            raise ConflictError("The selected time overlaps an existing reservation")
        await db.commit()

    record_reservation_attempt("reschedule", "success")
    logger.info(
        "reservation_rescheduled",
        reservation_id=reservation_id,
        court_id=court_id,
        previous_start=previous[0].isoformat(),
        previous_end=previous[1].isoformat(),
        start=start.isoformat(),
        end=end.isoformat(),
    )
    return await get_reservation(db, reservation_id)


async def delete_reservation(db: AsyncSession, reservation_id: int, user: User) -> int:
    """
    Owner-only. Messages, invites, participant statuses and the reservation go
    in one transaction. Returns the court id so callers can drop cached slots.
    """
    reservation = await get_reservation(db, reservation_id)
    ensure_owner(reservation, user, "delete")
    court_id = reservation.court_id

    async with db.begin_nested():
        await db.execute(delete(Message).where(Message.reservation_id == reservation_id))
        await db.execute(delete(Invite).where(Invite.reservation_id == reservation_id))
        # Participant rows go through the ORM cascade on Reservation.participants
        await db.delete(reservation)
        await db.flush()
    await db.commit()

    logger.info("reservation_deleted", reservation_id=reservation_id, court_id=court_id, user_id=user.id)
    return court_id

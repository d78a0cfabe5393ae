"""
Participant status tracking.

Each participant carries two independent flags, is_going and has_paid. Either
the reservation owner or the participant themself may set them. Any
"are you sure?" or "notify the owner?" prompt around has_paid belongs to the
client; here a status change is a single-column write and nothing else.
"""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from courtshare.core.logging import get_logger
from courtshare.core.metrics import record_participant_join, record_status_update
from courtshare.models.participant import ParticipantStatus
from courtshare.models.reservation import Reservation
from courtshare.models.user import User
from courtshare.services.reservation_service import ensure_member, ensure_owner, get_reservation
from courtshare.services.user_service import find_or_create_user_by_email, find_user_by_email

logger = get_logger(__name__)

STATUS_COLUMNS = {
    "payment": "has_paid",
    "attendance": "is_going",
}


async def _get_participant(db: AsyncSession, reservation_id: int, user_id: int) -> ParticipantStatus:
    result = await db.execute(
        select(ParticipantStatus)
        .where(
            ParticipantStatus.reservation_id == reservation_id,
            ParticipantStatus.user_id == user_id,
        )
        .execution_options(populate_existing=True)
    )
    participant = result.scalar_one_or_none()
    if not participant:
        raise NotFoundError("Participant not found on this reservation")
    return participant


async def update_participant_status(
    db: AsyncSession,
    reservation_id: int,
    actor: User,
    user_id: int,
    status_type: str,
    value: bool,
) -> ParticipantStatus:
    if status_type not in STATUS_COLUMNS:
        raise ValidationError("Invalid status type")

    reservation = await get_reservation(db, reservation_id)
    actor_id = actor.id
    if not reservation.is_owned_by(actor_id) and actor_id != user_id:
        raise ForbiddenError("Only the owner or the participant can update this status")

    participant = await _get_participant(db, reservation_id, user_id)
    column = STATUS_COLUMNS[status_type]

    await db.execute(
        update(ParticipantStatus)
        .where(ParticipantStatus.id == participant.id)
        .values({column: value})
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    record_status_update(status_type)
    logger.info(
        "participant_status_updated",
        reservation_id=reservation_id,
        user_id=user_id,
        actor_id=actor_id,
        field=column,
        value=value,
    )
    return await _get_participant(db, reservation_id, user_id)


async def add_participant(db: AsyncSession, reservation_id: int, owner: User, email: str) -> ParticipantStatus:
    """Owner adds someone by e-mail, provisioning the user if needed."""
    reservation = await get_reservation(db, reservation_id)
    ensure_owner(reservation, owner, "add participants to")

    user = await find_or_create_user_by_email(db, email)
    user_id = user.id
    if reservation.is_owned_by(user_id):
        raise ValidationError("The owner is already part of this reservation")
    if reservation.has_participant(user_id):
        raise ConflictError("User is already a participant")

    try:
        async with db.begin_nested():
            db.add(ParticipantStatus(
                user_id=user_id,
                reservation_id=reservation_id,
                is_going=True,
                has_paid=False,
            ))
            await db.flush()
    except IntegrityError:
        raise ConflictError("User is already a participant")
    await db.commit()

    record_participant_join("owner")
    logger.info("participant_added", reservation_id=reservation_id, user_id=user_id)
    return await _get_participant(db, reservation_id, user_id)


async def remove_participant(db: AsyncSession, reservation_id: int, owner: User, email: str) -> Reservation:
    reservation = await get_reservation(db, reservation_id)
    ensure_owner(reservation, owner, "remove participants from")

    user = await find_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found")

    participant = await _get_participant(db, reservation_id, user.id)
    user_id = user.id
    await db.delete(participant)
    await db.commit()

    logger.info("participant_removed", reservation_id=reservation_id, user_id=user_id)
    return await get_reservation(db, reservation_id)


async def get_payment_roster(db: AsyncSession, reservation_id: int, viewer: User) -> Reservation:
    reservation = await get_reservation(db, reservation_id)
    ensure_member(reservation, viewer)
    return reservation

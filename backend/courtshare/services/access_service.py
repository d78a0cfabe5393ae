"""
Access tokens: invite tokens and short URLs.

Two independent ways into a reservation:

  - Invite token: owner-issued, bound to one e-mail, single use, expires after
    INVITE_TTL_DAYS. Accepting stamps used_at and inserts the participant row
    in one savepoint, so a participant without a consumed invite (or the
    reverse) is never visible.
  - Short URL: permanent and repeatable. Optionally gated by a plaintext
    shared password, stored as plaintext and compared as an exact string.
"""

import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.clock import utcnow
from courtshare.core.config import get_settings
from courtshare.core.errors import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from courtshare.core.logging import get_logger
from courtshare.core.metrics import record_invite_accept, record_participant_join, record_password_check
from courtshare.models.invite import Invite
from courtshare.models.participant import ParticipantStatus
from courtshare.models.reservation import Reservation
from courtshare.models.user import User
from courtshare.services.reservation_service import ensure_owner, get_reservation
from courtshare.services.user_service import normalize_email

logger = get_logger(__name__)
settings = get_settings()


async def _get_invite(db: AsyncSession, token: str) -> Invite:
    result = await db.execute(
        select(Invite).where(Invite.token == token).execution_options(populate_existing=True)
    )
    invite = result.scalar_one_or_none()
    if not invite:
        raise NotFoundError("Invite not found")
    return invite


def _check_invite_usable(invite: Invite) -> None:
    # Expiry wins over everything else, used or not
    if invite.is_expired(utcnow()):
        raise ExpiredError("Invite has expired")
    if invite.is_used:
        raise ConflictError("Invite has already been used")


async def create_invite(db: AsyncSession, reservation_id: int, owner: User, email: str) -> Invite:
    reservation = await get_reservation(db, reservation_id)
    ensure_owner(reservation, owner, "invite people to")

    email = normalize_email(email)
    if reservation.owner.email == email:
        raise ValidationError("The owner is already part of this reservation")
    if any(p.user.email == email for p in reservation.participants):
        raise ValidationError("User is already a participant")

    invite = Invite(
        token=secrets.token_urlsafe(settings.INVITE_TOKEN_BYTES),
        email=email,
        reservation_id=reservation.id,
        expires_at=utcnow() + timedelta(days=settings.INVITE_TTL_DAYS),
    )
    try:
        async with db.begin_nested():
            db.add(invite)
            await db.flush()
    except IntegrityError:
        raise ConflictError("Could not allocate a unique invite token, please retry")
    await db.commit()

    logger.info("invite_created", invite_id=invite.id, reservation_id=reservation.id, email=email)
    return invite


async def resolve_invite(db: AsyncSession, token: str) -> Invite:
    """Invite with its reservation loaded, if it can still be accepted."""
    invite = await _get_invite(db, token)
    _check_invite_usable(invite)
    return invite


async def accept_invite(db: AsyncSession, token: str, user: User) -> int:
    """Join the invite's reservation. Returns the reservation id."""
    try:
        invite = await _get_invite(db, token)
        _check_invite_usable(invite)
    except NotFoundError:
        record_invite_accept("not_found")
        raise
    except ExpiredError:
        record_invite_accept("expired")
        raise
    except ConflictError:
        record_invite_accept("conflict")
        raise

    if invite.email != user.email:
        logger.warning("invite_email_mismatch", invite_id=invite.id, user_id=user.id)
        raise ForbiddenError("This invite was issued to a different e-mail address")

    reservation = invite.reservation
    invite_id, reservation_id, user_id = invite.id, reservation.id, user.id
    if reservation.is_owned_by(user_id) or reservation.has_participant(user_id):
        record_invite_accept("conflict")
        raise ConflictError("You are already a participant")

    now = utcnow()
    try:
        async with db.begin_nested():
            stamped = await db.execute(
                update(Invite)
                .where(
                    Invite.id == invite_id,
                    Invite.used_at.is_(None),
                    Invite.expires_at >= now,
                )
                .values(used_at=now)
                .execution_options(synchronize_session=False)
            )
            if stamped.rowcount == 0:
                raise ConflictError("Invite has already been used")
            db.add(ParticipantStatus(
                user_id=user_id,
                reservation_id=reservation_id,
                is_going=True,
                has_paid=False,
            ))
            await db.flush()
    except IntegrityError:
        record_invite_accept("conflict")
        raise ConflictError("You are already a participant")
    except ConflictError:
        record_invite_accept("conflict")
        raise
    await db.commit()

    record_invite_accept("accepted")
    record_participant_join("invite")
    logger.info("invite_accepted", invite_id=invite_id, reservation_id=reservation_id, user_id=user_id)
    return reservation_id


async def get_reservation_by_short_url(db: AsyncSession, short_url: str) -> Reservation:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.short_url == short_url)
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


def _password_matches(reservation: Reservation, password: Optional[str]) -> bool:
    if not reservation.password_gate_active:
        return True
    if password is None:
        return False
    return secrets.compare_digest(password.encode(), reservation.password.encode())


async def verify_password(db: AsyncSession, short_url: str, password: Optional[str], user: User) -> bool:
    """
    Precondition check for joining through a short link. Existing members and
    reservations without an active password gate always pass.
    """
    reservation = await get_reservation_by_short_url(db, short_url)

    if reservation.is_owned_by(user.id) or reservation.has_participant(user.id):
        return True

    if not _password_matches(reservation, password):
        record_password_check(False)
        logger.warning("short_link_password_rejected", reservation_id=reservation.id, user_id=user.id)
        raise UnauthorizedError("Invalid password")

    record_password_check(True)
    return True


async def join_reservation(
    db: AsyncSession,
    reservation_id: int,
    user: User,
    is_going: bool = True,
    has_paid: bool = False,
    password: Optional[str] = None,
) -> Reservation:
    """
    Join via short link. Repeatable by anyone holding the link (and password);
    the password gate is re-checked here since verification holds no state.
    """
    reservation = await get_reservation(db, reservation_id)
    user_id = user.id

    if reservation.is_owned_by(user_id):
        raise ConflictError("The owner is already part of this reservation")
    if reservation.has_participant(user_id):
        raise ConflictError("Already a participant")

    if not _password_matches(reservation, password):
        record_password_check(False)
        raise UnauthorizedError("Invalid password")

    try:
        async with db.begin_nested():
            db.add(ParticipantStatus(
                user_id=user_id,
                reservation_id=reservation_id,
                is_going=is_going,
                has_paid=has_paid,
            ))
            await db.flush()
    except IntegrityError:
        raise ConflictError("Already a participant")
    await db.commit()

    record_participant_join("link")
    logger.info("reservation_joined", reservation_id=reservation_id, user_id=user_id, is_going=is_going)
    return await get_reservation(db, reservation_id)

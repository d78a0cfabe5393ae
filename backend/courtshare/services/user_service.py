"""
User lookup and auto-provisioning.

`find_or_create_user_by_email` is the only place a user record is created on
first reference. Reservation creation and owner-add both go through it.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.errors import ValidationError
from courtshare.core.logging import get_logger
from courtshare.models.user import User

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    normalized = (email or "").strip().lower()
    if not normalized or "@" not in normalized:
        raise ValidationError(f"Invalid e-mail address: {email!r}")
    return normalized


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def find_or_create_user_by_email(db: AsyncSession, email: str) -> User:
    """Idempotent: concurrent callers for the same e-mail end up with one row."""
    normalized = normalize_email(email)
    user = await find_user_by_email(db, normalized)
    if user:
        return user

    try:
        async with db.begin_nested():
            user = User(email=normalized)
            db.add(user)
            await db.flush()
    except IntegrityError:
        # Another request provisioned the same e-mail first
        user = await find_user_by_email(db, normalized)
        if user is None:
            raise
        return user

    logger.info("user_provisioned", user_id=user.id, email=normalized)
    return user

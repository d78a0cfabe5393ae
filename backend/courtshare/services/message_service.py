"""
Reservation messages. Append-only; visible to the owner and participants.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.errors import ValidationError
from courtshare.core.logging import get_logger
from courtshare.models.message import Message
from courtshare.models.user import User
from courtshare.services.reservation_service import get_reservation_for_member

logger = get_logger(__name__)


async def post_message(db: AsyncSession, reservation_id: int, user: User, content: str) -> Message:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")

    await get_reservation_for_member(db, reservation_id, user)

    message = Message(reservation_id=reservation_id, user=user, content=content)
    db.add(message)
    await db.flush()
    await db.commit()

    logger.info("message_posted", message_id=message.id, reservation_id=reservation_id, user_id=user.id)
    return message


async def list_messages(db: AsyncSession, reservation_id: int, user: User) -> list[Message]:
    await get_reservation_for_member(db, reservation_id, user)
    result = await db.execute(
        select(Message)
        .where(Message.reservation_id == reservation_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(result.scalars().all())

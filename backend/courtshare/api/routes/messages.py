"""
Reservation message endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.security import get_current_user
from courtshare.db.session import get_db
from courtshare.models.user import User
from courtshare.schemas.message import MessageCreate, MessageResponse
from courtshare.services.message_service import list_messages, post_message
from courtshare.services.read_model import project_message

router = APIRouter(prefix="/reservations/{reservation_id}/messages", tags=["Messages"])


@router.get("/", response_model=list[MessageResponse])
async def list_messages_endpoint(
    reservation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    messages = await list_messages(db, reservation_id, user)
    return [project_message(m) for m in messages]


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message_endpoint(
    reservation_id: int,
    data: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await post_message(db, reservation_id, user, data.content)
    return project_message(message)

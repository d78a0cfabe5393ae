"""
Participant endpoints: status toggles, owner add/remove and the payment roster.
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.security import get_current_user
from courtshare.db.session import get_db
from courtshare.models.user import User
from courtshare.schemas.participant import ParticipantAdd, ParticipantStatusUpdate, PaymentRosterEntry
from courtshare.schemas.reservation import ParticipantView, ReservationResponse
from courtshare.services.participant_service import (
    add_participant,
    get_payment_roster,
    remove_participant,
    update_participant_status,
)
from courtshare.services.read_model import participant_view, project_reservation, project_roster

router = APIRouter(prefix="/reservations/{reservation_id}", tags=["Participants"])


@router.put("/participant-status", response_model=ParticipantView)
async def update_status_endpoint(
    reservation_id: int,
    data: ParticipantStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Set hasPaid (type=payment) or isGoing (type=attendance) for one participant."""
    participant = await update_participant_status(
        db, reservation_id, user, data.user_id, data.type, data.value
    )
    return participant_view(participant)


@router.post("/participants", response_model=ParticipantView, status_code=status.HTTP_201_CREATED)
async def add_participant_endpoint(
    reservation_id: int,
    data: ParticipantAdd,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    participant = await add_participant(db, reservation_id, user, data.email)
    return participant_view(participant)


@router.delete("/participants", response_model=ReservationResponse)
async def remove_participant_endpoint(
    reservation_id: int,
    email: EmailStr = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reservation = await remove_participant(db, reservation_id, user, email)
    return project_reservation(reservation, user.id)


@router.get("/payment", response_model=list[PaymentRosterEntry])
async def payment_roster_endpoint(
    reservation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reservation = await get_payment_roster(db, reservation_id, user)
    return project_roster(reservation)

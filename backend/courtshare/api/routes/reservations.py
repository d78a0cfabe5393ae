"""
Reservation lifecycle endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.security import get_current_user
from courtshare.db.session import get_db
from courtshare.models.user import User
from courtshare.schemas.reservation import (
    ReservationCreate,
    ReservationDeleteResponse,
    ReservationListResponse,
    ReservationReschedule,
    ReservationResponse,
    ReservationUpdate,
)
from courtshare.services.cache_service import invalidate_court_slots
from courtshare.services.read_model import project_reservation
from courtshare.services.reservation_service import (
    create_reservation,
    delete_reservation,
    get_reservation_for_member,
    list_user_reservations,
    reschedule_reservation,
    update_reservation,
)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation_endpoint(
    data: ReservationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve 1 or more contiguous slots on a court.

    The overlap check is re-run under a court row lock in the same transaction
    as the insert; a slot taken since the grid was loaded returns 409.
    """
    reservation = await create_reservation(db, user, data)
    await invalidate_court_slots(reservation.court_id)
    return project_reservation(reservation, user.id)


@router.get("/user", response_model=ReservationListResponse)
async def my_reservations_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    owned, participating = await list_user_reservations(db, user)
    return ReservationListResponse(
        owned=[project_reservation(r, user.id) for r in owned],
        participating=[project_reservation(r, user.id) for r in participating],
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation_endpoint(
    reservation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reservation = await get_reservation_for_member(db, reservation_id, user)
    return project_reservation(reservation, user.id)


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation_endpoint(
    reservation_id: int,
    data: ReservationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Owner-only edit of description and payment info."""
    reservation = await update_reservation(db, reservation_id, user, data)
    return project_reservation(reservation, user.id)


@router.put("/{reservation_id}/schedule", response_model=ReservationResponse)
async def reschedule_reservation_endpoint(
    reservation_id: int,
    data: ReservationReschedule,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move the reservation to other 60-minute slots on the same court."""
    reservation = await reschedule_reservation(db, reservation_id, user, data.start_time, data.end_time)
    await invalidate_court_slots(reservation.court_id)
    return project_reservation(reservation, user.id)


@router.delete("/{reservation_id}/delete", response_model=ReservationDeleteResponse)
async def delete_reservation_endpoint(
    reservation_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    court_id = await delete_reservation(db, reservation_id, user)
    await invalidate_court_slots(court_id)
    return ReservationDeleteResponse(reservation_id=reservation_id)

"""
Short-link endpoints: public view, password verification and join.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.security import get_current_user, get_optional_user
from courtshare.db.session import get_db
from courtshare.models.user import User
from courtshare.schemas.access import JoinRequest, ShortLinkView, VerifyPasswordRequest, VerifyPasswordResponse
from courtshare.schemas.reservation import ReservationResponse
from courtshare.services.access_service import get_reservation_by_short_url, join_reservation, verify_password
from courtshare.services.read_model import project_reservation, project_short_link

router = APIRouter(prefix="/reservations", tags=["Short links"])


@router.get("/short/{short_url}", response_model=ShortLinkView)
async def resolve_short_link_endpoint(
    short_url: str,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Public read-only view. No participant list; password only for the owner."""
    reservation = await get_reservation_by_short_url(db, short_url)
    return project_short_link(reservation, user)


@router.post("/short/{short_url}/verify-password", response_model=VerifyPasswordResponse)
async def verify_password_endpoint(
    short_url: str,
    data: VerifyPasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    success = await verify_password(db, short_url, data.password, user)
    return VerifyPasswordResponse(success=success)


@router.post("/{reservation_id}/join", response_model=ReservationResponse)
async def join_reservation_endpoint(
    reservation_id: int,
    data: JoinRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reservation = await join_reservation(
        db,
        reservation_id,
        user,
        is_going=data.is_going,
        has_paid=data.has_paid,
        password=data.password,
    )
    return project_reservation(reservation, user.id)

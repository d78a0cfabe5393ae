"""
Invite endpoints: issue, resolve and accept single-use invite tokens.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.security import get_current_user
from courtshare.db.session import get_db
from courtshare.models.user import User
from courtshare.schemas.access import (
    InviteAcceptResponse,
    InviteCreate,
    InviteCreatedResponse,
    InviteSummary,
)
from courtshare.services.access_service import accept_invite, create_invite, resolve_invite
from courtshare.services.read_model import invite_link_for, project_invite

router = APIRouter(tags=["Invites"])


@router.post(
    "/reservations/{reservation_id}/invite",
    response_model=InviteCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invite_endpoint(
    reservation_id: int,
    data: InviteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Owner issues a 7-day invite link for one e-mail. Nothing is sent from here."""
    invite = await create_invite(db, reservation_id, user, data.email)
    return InviteCreatedResponse(
        invite_link=invite_link_for(invite),
        token=invite.token,
        expires_at=invite.expires_at,
    )


@router.get("/invites/{token}", response_model=InviteSummary)
async def resolve_invite_endpoint(token: str, db: AsyncSession = Depends(get_db)):
    """Reservation summary for an invite; 410 once expired."""
    invite = await resolve_invite(db, token)
    return project_invite(invite)


@router.post("/invites/{token}/accept", response_model=InviteAcceptResponse)
async def accept_invite_endpoint(
    token: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reservation_id = await accept_invite(db, token, user)
    return InviteAcceptResponse(
        message="Successfully joined the reservation",
        reservation_id=reservation_id,
    )

"""
Pydantic schemas for invites and short-link access.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr

from courtshare.schemas.base import CamelModel
from courtshare.schemas.court import CourtSummary
from courtshare.schemas.reservation import PersonSummary


class InviteCreate(CamelModel):
    email: EmailStr


class InviteCreatedResponse(CamelModel):
    success: bool = True
    invite_link: str
    token: str
    expires_at: datetime


class InviteSummary(CamelModel):
    id: int
    name: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    invited_email: str
    expires_at: datetime
    court: CourtSummary
    owner: PersonSummary


class InviteAcceptResponse(CamelModel):
    success: bool = True
    message: str
    reservation_id: int


class ShortLinkView(CamelModel):
    id: int
    name: str
    court_name: str
    court: CourtSummary
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    payment_required: bool
    payment_info: Optional[str] = None
    password_required: bool
    owner: PersonSummary
    is_owner: bool = False
    is_participant: bool = False
    # Only populated for the owner
    password: Optional[str] = None


class VerifyPasswordRequest(CamelModel):
    password: Optional[str] = None


class VerifyPasswordResponse(CamelModel):
    success: bool


class JoinRequest(CamelModel):
    is_going: bool = True
    has_paid: bool = False
    password: Optional[str] = None

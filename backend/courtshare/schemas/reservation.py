"""
Pydantic schemas for reservation requests and the canonical read model.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from courtshare.schemas.base import CamelModel
from courtshare.schemas.court import CourtSummary


class ReservationCreate(CamelModel):
    # Required fields are optional here so a missing one surfaces as a 400
    court_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=2000)
    participant_emails: list[EmailStr] = Field(default_factory=list, alias="participantIds")
    payment_required: bool = False
    payment_info: Optional[str] = Field(None, max_length=2000)
    password: Optional[str] = Field(None, max_length=255)
    password_required: bool = False
    slot_minutes: int = 30


class ReservationUpdate(CamelModel):
    description: Optional[str] = Field(None, max_length=2000)
    payment_info: Optional[str] = Field(None, max_length=2000)


class ReservationReschedule(CamelModel):
    start_time: datetime
    end_time: datetime


class PersonSummary(CamelModel):
    id: int
    name: Optional[str] = None
    email: str
    image: Optional[str] = None


class ParticipantView(CamelModel):
    id: int
    user_id: int
    name: Optional[str] = None
    email: str
    image: Optional[str] = None
    has_paid: bool
    is_going: bool


class ReservationResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    short_url: str
    short_link: str
    payment_required: bool
    payment_info: Optional[str] = None
    password_required: bool
    created_at: datetime
    updated_at: datetime
    court: CourtSummary
    owner: PersonSummary
    participants: list[ParticipantView]
    going_count: int
    not_going_count: int
    is_owner: bool


class ReservationListResponse(CamelModel):
    owned: list[ReservationResponse]
    participating: list[ReservationResponse]


class ReservationDeleteResponse(CamelModel):
    success: bool = True
    reservation_id: int

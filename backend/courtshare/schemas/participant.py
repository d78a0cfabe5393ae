"""
Pydantic schemas for participant status changes and rosters.
"""

from typing import Literal, Optional

from pydantic import EmailStr

from courtshare.schemas.base import CamelModel


class ParticipantStatusUpdate(CamelModel):
    user_id: int
    type: Literal["payment", "attendance"]
    value: bool


class ParticipantAdd(CamelModel):
    email: EmailStr


class PaymentRosterEntry(CamelModel):
    user_id: int
    name: Optional[str] = None
    email: str
    has_paid: bool
    is_going: bool

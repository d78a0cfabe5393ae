"""
Pydantic schemas for reservation messages.
"""

from datetime import datetime

from pydantic import Field

from courtshare.schemas.base import CamelModel
from courtshare.schemas.reservation import PersonSummary


class MessageCreate(CamelModel):
    content: str = Field(..., max_length=4000)


class MessageResponse(CamelModel):
    id: int
    reservation_id: int
    content: str
    created_at: datetime
    user: PersonSummary

"""
Pydantic schemas for time slots.
"""

from datetime import datetime

from courtshare.schemas.base import CamelModel


class TimeSlotResponse(CamelModel):
    start_time: datetime
    end_time: datetime
    is_available: bool
    max_extension_slots: int = 0
    is_current: bool = False

"""
Pydantic schemas for courts.
"""

from typing import Optional

from courtshare.schemas.base import CamelModel


class CourtResponse(CamelModel):
    id: int
    name: str
    description: str
    address: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None


class CourtSummary(CamelModel):
    id: int
    name: str
    description: str
    image_url: Optional[str] = None

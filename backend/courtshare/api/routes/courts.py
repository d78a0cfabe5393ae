"""
Court endpoints and the time-slot grid, cached in Redis per court/date/width.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.db.session import get_db
from courtshare.schemas.court import CourtResponse
from courtshare.schemas.slot import TimeSlotResponse
from courtshare.services.cache_service import get_cached_slots, set_cached_slots, slots_cache_key
from courtshare.services.court_service import get_court, list_courts
from courtshare.services.slot_service import get_time_slots

router = APIRouter(prefix="/courts", tags=["Courts"])


@router.get("/", response_model=list[CourtResponse])
async def list_courts_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_courts(db)


@router.get("/{court_id}", response_model=CourtResponse)
async def get_court_endpoint(court_id: int, db: AsyncSession = Depends(get_db)):
    return await get_court(db, court_id)


@router.get("/{court_id}/time-slots", response_model=list[TimeSlotResponse])
async def time_slots_endpoint(
    court_id: int,
    day: date = Query(..., alias="date", description="Facility-local calendar date, YYYY-MM-DD"),
    interval: int = Query(30, description="Slot width in minutes (30 or 60)"),
    exclude_reservation_id: Optional[int] = Query(None, alias="excludeReservationId"),
    db: AsyncSession = Depends(get_db),
):
    """
    Bookable slots for one court and date, each flagged available or not.

    Pass excludeReservationId when editing: that reservation's own span is
    left out of the conflict set and its slots come back with isCurrent=true.
    """
    # Resolved before computing so a write landing mid-computation orphans this entry
    cache_key = None
    if exclude_reservation_id is None:
        cache_key = await slots_cache_key(court_id, day, interval)
    if cache_key:
        cached = await get_cached_slots(cache_key)
        if cached is not None:
            return [TimeSlotResponse.model_validate(slot) for slot in cached]

    slots = await get_time_slots(
        db,
        court_id,
        day,
        width_minutes=interval,
        exclude_reservation_id=exclude_reservation_id,
    )
    response = [
        TimeSlotResponse(
            start_time=slot.start,
            end_time=slot.end,
            is_available=slot.is_available,
            max_extension_slots=slot.max_extension_slots,
            is_current=slot.is_current,
        )
        for slot in slots
    ]

    if cache_key:
        await set_cached_slots(
            cache_key,
            [slot.model_dump(mode="json") for slot in response],
        )
    return response

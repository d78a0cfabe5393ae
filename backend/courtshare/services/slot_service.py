"""
Slot generation and availability.

SLOT GRID
=========

A court is bookable inside a fixed facility-local operating window
(08:00-18:00 by default). The window is cut into fixed-width slots:

  - 30 or 60 minute slots in the booking flow, at most 3 hours per reservation
    (6 half-hour slots or 3 one-hour slots)
  - 60 minute slots in the edit flow, at most 6 slots

Every slot boundary is converted from wall-clock time to UTC on its own, using
the offset in force on that date. A day on which the offset changes keeps
slots of the nominal wall-clock width instead of shifting the whole window by
one offset.

Wall-clock times that do not exist (the spring-forward gap) resolve with the
pre-transition offset, which lands them on or after the first real boundary
past the gap. Those boundaries are dropped, so the grid stays contiguous and
strictly increasing and loses gap / width slots: a 00:00-06:00 window of
30 minute slots on 2024-03-10 in Los Angeles yields 10 slots, not 12. On a
fall-back day the repeated hour is absorbed by the slot that spans it, which
is then longer than the nominal width.

AVAILABILITY
============

Slots and reservations are half-open intervals. Slot [a, b) conflicts with
reservation [c, d) iff a < d and b > c, so a reservation ending exactly at a
slot's start does not block it.

Availability computed here is advisory. Writes re-run the overlap check under
a court row lock (see reservation_service.assert_court_free).
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.clock import ensure_utc, local_date_of, wall_clock_to_utc
from courtshare.core.config import get_settings
from courtshare.core.errors import NotFoundError, ValidationError
from courtshare.models.court import Court
from courtshare.models.reservation import Reservation

settings = get_settings()

# slot width in minutes -> maximum contiguous slots per reservation
BOOKING_MAX_SLOTS = {30: 6, 60: 3}
EDIT_SLOT_MINUTES = 60
EDIT_MAX_SLOTS = 6


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SlotAvailability:
    start: datetime
    end: datetime
    is_available: bool
    max_extension_slots: int = 0
    is_current: bool = False


def operating_window() -> tuple[time, time]:
    return time(settings.OPEN_HOUR), time(settings.CLOSE_HOUR)


def max_slots_for(width_minutes: int, editing: bool = False) -> int:
    if editing:
        return EDIT_MAX_SLOTS
    if width_minutes not in BOOKING_MAX_SLOTS:
        raise ValidationError(
            f"Slot interval must be one of {sorted(BOOKING_MAX_SLOTS)} minutes"
        )
    return BOOKING_MAX_SLOTS[width_minutes]


def generate_slots(
    day: date,
    window_start: time,
    window_end: time,
    width_minutes: int,
    zone: Optional[ZoneInfo] = None,
) -> list[Slot]:
    """
    Cut the operating window of `day` into contiguous slots, as UTC pairs.

    The slot count is (window_end - window_start) / width in wall-clock terms,
    less the slots whose start falls inside a spring-forward gap.
    """
    if width_minutes <= 0:
        raise ValidationError("Slot width must be positive")

    start_local = datetime.combine(day, window_start)
    end_local = datetime.combine(day, window_end)
    if end_local <= start_local:
        raise ValidationError("Operating window must end after it starts")

    width = timedelta(minutes=width_minutes)
    span = end_local - start_local
    if span % width:
        raise ValidationError("Slot width must evenly divide the operating window")

    window_end_utc = wall_clock_to_utc(end_local, zone)
    boundaries = []
    for i in range(span // width):
        instant = wall_clock_to_utc(start_local + i * width, zone)
        # Gap boundaries resolve at or past the next real one; keep the grid increasing
        if instant >= window_end_utc or (boundaries and instant <= boundaries[-1]):
            continue
        boundaries.append(instant)
    boundaries.append(window_end_utc)
    return [Slot(start=boundaries[i], end=boundaries[i + 1]) for i in range(len(boundaries) - 1)]


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def mark_availability(
    slots: Sequence[Slot],
    busy_spans: Iterable[tuple[datetime, datetime]],
    max_slots: int,
    current_span: Optional[tuple[datetime, datetime]] = None,
) -> list[SlotAvailability]:
    """
    Flag every slot free/occupied against `busy_spans`.

    `current_span` is the span of a reservation being edited. It must already
    be absent from `busy_spans`; its slots are flagged is_current so the client
    keeps them selected.
    """
    busy = [(ensure_utc(s), ensure_utc(e)) for s, e in busy_spans]
    free = [not any(overlaps(slot.start, slot.end, s, e) for s, e in busy) for slot in slots]

    marked = []
    for index, slot in enumerate(slots):
        extension = 0
        if free[index]:
            # How many directly following slots could extend this one
            nxt = index + 1
            while extension < max_slots - 1 and nxt < len(slots) and free[nxt]:
                extension += 1
                nxt += 1

        is_current = (
            current_span is not None
            and slot.start >= ensure_utc(current_span[0])
            and slot.end <= ensure_utc(current_span[1])
        )
        marked.append(
            SlotAvailability(
                start=slot.start,
                end=slot.end,
                is_available=free[index],
                max_extension_slots=extension,
                is_current=is_current,
            )
        )
    return marked


def match_span(slots: Sequence[Slot], start: datetime, end: datetime, max_slots: int) -> list[Slot]:
    """
    Return the contiguous run of slots exactly covering [start, end).

    Raises ValidationError when the span is off-grid, outside the window, or
    longer than `max_slots`.
    """
    start, end = ensure_utc(start), ensure_utc(end)
    if end <= start:
        raise ValidationError("End time must be after start time")

    first = next((i for i, slot in enumerate(slots) if slot.start == start), None)
    if first is None:
        raise ValidationError("Start time does not fall on an available slot boundary")

    for last in range(first, len(slots)):
        if slots[last].end == end:
            selected = list(slots[first:last + 1])
            if len(selected) > max_slots:
                raise ValidationError(f"A reservation may cover at most {max_slots} slots")
            return selected
        if slots[last].end > end:
            break

    raise ValidationError("End time does not fall on a slot boundary inside the operating window")


def validate_span(start: datetime, end: datetime, width_minutes: int, max_slots: int) -> list[Slot]:
    """Check [start, end) against the slot grid of start's facility-local date."""
    window_start, window_end = operating_window()
    day = local_date_of(ensure_utc(start))
    slots = generate_slots(day, window_start, window_end, width_minutes)
    return match_span(slots, start, end, max_slots)


async def fetch_busy_spans(
    db: AsyncSession,
    court_id: int,
    window_start: datetime,
    window_end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> list[tuple[datetime, datetime]]:
    """Reservations on the court overlapping [window_start, window_end)."""
    query = select(Reservation.start_time, Reservation.end_time).where(
        Reservation.court_id == court_id,
        Reservation.start_time < window_end,
        Reservation.end_time > window_start,
    )
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)

    result = await db.execute(query.order_by(Reservation.start_time))
    return [(row.start_time, row.end_time) for row in result.all()]


async def get_time_slots(
    db: AsyncSession,
    court_id: int,
    day: date,
    width_minutes: int = 30,
    exclude_reservation_id: Optional[int] = None,
) -> list[SlotAvailability]:
    court = await db.get(Court, court_id)
    if court is None:
        raise NotFoundError(f"Court {court_id} not found")

    editing = exclude_reservation_id is not None
    max_slots = max_slots_for(width_minutes, editing=editing)

    current_span = None
    if editing:
        current = await db.get(Reservation, exclude_reservation_id)
        if current is None:
            raise NotFoundError(f"Reservation {exclude_reservation_id} not found")
        if current.court_id != court_id:
            raise ValidationError("Excluded reservation belongs to a different court")
        current_span = (current.start_time, current.end_time)

    window_start, window_end = operating_window()
    slots = generate_slots(day, window_start, window_end, width_minutes)
    if not slots:
        return []
    busy = await fetch_busy_spans(
        db,
        court_id,
        slots[0].start,
        slots[-1].end,
        exclude_reservation_id=exclude_reservation_id,
    )
    return mark_availability(slots, busy, max_slots, current_span=current_span)

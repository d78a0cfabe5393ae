"""
Facility clock: converts between facility wall-clock time and UTC instants.

All persisted instants are UTC. Wall-clock conversion always uses the offset in
force on the specific date being converted, so daylight-saving transitions are
respected per boundary rather than per window.

Non-existent wall-clock times (inside a spring-forward gap) resolve with
fold=0, i.e. using the offset in force before the transition. Ambiguous
fall-back times resolve to their first occurrence.
"""

from datetime import date, datetime, time, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from courtshare.core.config import get_settings


@lru_cache()
def facility_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().FACILITY_TIMEZONE)


def utcnow() -> datetime:
    """Single source of 'now' for expiry math."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    # Naive values coming back from storage are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_to_utc(day: date, wall_time: time, zone: ZoneInfo | None = None) -> datetime:
    zone = zone or facility_zone()
    local = datetime.combine(day, wall_time).replace(tzinfo=zone)
    return local.astimezone(timezone.utc)


def wall_clock_to_utc(local_naive: datetime, zone: ZoneInfo | None = None) -> datetime:
    zone = zone or facility_zone()
    return local_naive.replace(tzinfo=zone).astimezone(timezone.utc)


def utc_to_local(instant: datetime, zone: ZoneInfo | None = None) -> datetime:
    zone = zone or facility_zone()
    return ensure_utc(instant).astimezone(zone)


def local_date_of(instant: datetime, zone: ZoneInfo | None = None) -> date:
    return utc_to_local(instant, zone).date()

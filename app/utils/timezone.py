"""
Clinic-local time helpers.

Appointments are stored as naive UTC instants; everything the engine
compares (working hours, blocks, slots) is expressed in the clinic's
local calendar day. These helpers are the only place the two meet.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings


def clinic_zone(timezone_str: Optional[str]) -> ZoneInfo:
    return ZoneInfo(timezone_str or settings.DEFAULT_TIMEZONE)


def utc_now() -> datetime:
    """Current instant as naive UTC, the storage convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clinic_time_to_utc(day: date, at: time, timezone_str: Optional[str]) -> datetime:
    """Resolve a clinic-local date and wall time to a naive UTC instant."""
    local = datetime.combine(day, at).replace(tzinfo=clinic_zone(timezone_str))
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def utc_to_clinic_time(utc_dt: datetime, timezone_str: Optional[str]) -> datetime:
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    return utc_dt.astimezone(clinic_zone(timezone_str))


def clinic_now(timezone_str: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Clinic-local wall clock; ``now`` (naive UTC or aware) overrides the real clock."""
    return utc_to_clinic_time(now or utc_now(), timezone_str)


def clinic_day_bounds_utc(day: date, timezone_str: Optional[str]) -> tuple[datetime, datetime]:
    """[start, end) of a clinic-local calendar day as naive UTC instants."""
    start = clinic_time_to_utc(day, time.min, timezone_str)
    end = clinic_time_to_utc(day + timedelta(days=1), time.min, timezone_str)
    return start, end


def weekday_index(day: date) -> int:
    """Sunday=0 .. Saturday=6."""
    return day.isoweekday() % 7

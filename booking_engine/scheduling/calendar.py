"""
Time and calendar primitives in the tenant's timezone.

Times of day are handled as integer minutes since local midnight so interval
arithmetic stays exact; they are only turned into ``HH:MM`` strings at the
edges. Malformed input is rejected, never rounded.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from booking_engine.config import MINUTES_PER_DAY
from booking_engine.errors import ValidationError
from booking_engine.schemas.booking_schema import DATE_PATTERN
from booking_engine.schemas.settings_schema import END_OF_DAY, TIME_PATTERN, BookingSettings

logger = logging.getLogger(__name__)

WEEKDAY_CODES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def parse_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
        raise ValidationError(f"Date must be YYYY-MM-DD, got {value!r}")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Not a calendar date: {value!r}") from None


def parse_time_of_day(value: str, allow_end_of_day: bool = False) -> int:
    """Parse a strict ``HH:MM`` time into minutes since midnight.

    ``24:00`` is only accepted when ``allow_end_of_day`` is set, for
    closing times.
    """
    if not isinstance(value, str):
        raise ValidationError(f"Time must be HH:MM, got {value!r}")
    value = value.strip()
    if allow_end_of_day and value == END_OF_DAY:
        return MINUTES_PER_DAY
    if not TIME_PATTERN.match(value):
        raise ValidationError(f"Time must be HH:MM, got {value!r}")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_time_of_day(minutes: int) -> str:
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_code(day: date) -> str:
    return WEEKDAY_CODES[day.weekday()]


def business_window(day: date, settings: BookingSettings) -> Optional[tuple[int, int]]:
    """Return ``(open, close)`` in minutes for the date, or None when closed.

    Weekdays without a business hours entry are closed.
    """
    entry = settings.hours_for(weekday_code(day))
    if entry is None or entry.closed:
        return None
    opens = parse_time_of_day(entry.open)
    closes = parse_time_of_day(entry.close, allow_end_of_day=True)
    if opens >= closes:
        return None
    return opens, closes


def tenant_zone(settings: BookingSettings) -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def ensure_utc(now: datetime) -> datetime:
    """Reject naive datetimes; convert aware ones to UTC."""
    if now.tzinfo is None:
        raise ValueError("Current instant must be timezone-aware")
    return now.astimezone(timezone.utc)


def local_now(now_utc: datetime, settings: BookingSettings) -> datetime:
    return ensure_utc(now_utc).astimezone(tenant_zone(settings))


def local_today(now_utc: datetime, settings: BookingSettings) -> date:
    return local_now(now_utc, settings).date()


def to_utc(day: date, minutes: int, settings: BookingSettings) -> datetime:
    """UTC instant of a tenant-local wall-clock time on a date."""
    local = datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)
    return local.replace(tzinfo=tenant_zone(settings)).astimezone(timezone.utc)


def iter_dates(start: date, end: date):
    """Yield every date from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)

"""
Candidate slot generation for a single service and date.

Start times step forward from opening time by ``min(duration, stride)``.
A start is only emitted if the appointment plus the trailing buffer fits
before closing time.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings, ServiceType
from booking_engine.scheduling.calendar import (
    business_window,
    ensure_utc,
    format_time_of_day,
    local_today,
    to_utc,
)

logger = logging.getLogger(__name__)

DEFAULT_STRIDE_MINUTES = 30

# Service types fulfilled through the same-day rush path
RUSH_SERVICE_TYPES = frozenset({ServiceType.PICKUP_DELIVERY})


def slot_step(duration_minutes: int, stride_minutes: int) -> int:
    if stride_minutes < 1:
        raise ValueError(f"Slot stride must be positive, got {stride_minutes}")
    return min(duration_minutes, stride_minutes)


def generate_candidate_minutes(
    day: date,
    service: BookingService,
    settings: BookingSettings,
    stride_minutes: int = DEFAULT_STRIDE_MINUTES,
    now_utc: Optional[datetime] = None,
    duration_minutes: Optional[int] = None,
) -> list[int]:
    """Candidate start times as minutes since local midnight, ascending.

    ``duration_minutes`` sizes the appointment instead of the service's
    current duration, for moving a booking that keeps its original length.
    """
    if not service.active:
        return []
    window = business_window(day, settings)
    if window is None:
        return []
    opens, closes = window

    duration = duration_minutes or service.duration_minutes
    step = slot_step(duration, stride_minutes)
    occupied = duration + settings.buffer_minutes
    starts = range(opens, closes - occupied + 1, step)

    if now_utc is not None and _uses_rush_path(service, day, settings, now_utc):
        rush_cutoff = ensure_utc(now_utc) + timedelta(hours=settings.rush_lead_hours)
        starts = [m for m in starts if to_utc(day, m, settings) >= rush_cutoff]

    return sorted(set(starts))


def generate_candidate_slots(
    day: date,
    service: BookingService,
    settings: BookingSettings,
    stride_minutes: int = DEFAULT_STRIDE_MINUTES,
    now_utc: Optional[datetime] = None,
) -> list[str]:
    """Candidate start times for the date as ``HH:MM`` strings.

    Every returned start ``s`` satisfies
    ``s + duration_minutes + buffer_minutes <= close``.
    """
    minutes = generate_candidate_minutes(day, service, settings, stride_minutes, now_utc)
    logger.debug(
        "Generated %d candidate slots for %s on %s", len(minutes), service.id, day.isoformat()
    )
    return [format_time_of_day(m) for m in minutes]


def _uses_rush_path(
    service: BookingService, day: date, settings: BookingSettings, now_utc: datetime
) -> bool:
    return (
        service.service_type in RUSH_SERVICE_TYPES
        and day == local_today(now_utc, settings)
    )

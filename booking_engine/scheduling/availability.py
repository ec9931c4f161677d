"""
Availability pipeline: eligibility gate, candidate generation, notice filter,
capacity filter.

This is the only path that produces bookable slots, both for listing and for
confirmation, so a slot shown to a customer and a slot accepted at booking
time are decided by the same rules.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, TypedDict

from booking_engine.schemas.booking_schema import BookingRecord
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings
from booking_engine.scheduling.calendar import (
    format_time_of_day,
    iter_dates,
    local_today,
    weekday_code,
)
from booking_engine.scheduling.capacity import filter_available
from booking_engine.scheduling.constraints import is_date_eligible, is_slot_within_notice
from booking_engine.scheduling.slot_generator import (
    DEFAULT_STRIDE_MINUTES,
    generate_candidate_minutes,
)

logger = logging.getLogger(__name__)


class DateAvailability(TypedDict):
    """Summary of availability for a single date."""

    date: str
    day_name: str
    slot_count: int
    first_slot: str


def compute_available_slots(
    day: date,
    service: BookingService,
    settings: BookingSettings,
    bookings: Iterable[BookingRecord],
    now_utc: datetime,
    stride_minutes: int = DEFAULT_STRIDE_MINUTES,
    exclude_booking_id: Optional[str] = None,
    duration_minutes: Optional[int] = None,
) -> list[str]:
    """Bookable ``HH:MM`` start times for the service on the date.

    Pass the booking's own id and duration snapshot when moving it.
    """
    if not service.active or not is_date_eligible(day, service, settings, now_utc):
        return []
    candidates = [
        format_time_of_day(m)
        for m in generate_candidate_minutes(
            day, service, settings, stride_minutes, now_utc, duration_minutes
        )
        if is_slot_within_notice(day, m, service, settings, now_utc)
    ]
    return filter_available(
        day.isoformat(), candidates, service, settings, bookings, exclude_booking_id,
        duration_minutes=duration_minutes,
    )


def find_available_dates(
    start: date,
    service: BookingService,
    settings: BookingSettings,
    bookings: Iterable[BookingRecord],
    now_utc: datetime,
    stride_minutes: int = DEFAULT_STRIDE_MINUTES,
    limit: int = 5,
) -> list[DateAvailability]:
    """The next dates from ``start`` (within the booking horizon) with open slots."""
    bookings = list(bookings)
    horizon = local_today(now_utc, settings) + timedelta(days=settings.max_days_ahead)
    results: list[DateAvailability] = []
    for day in iter_dates(start, horizon):
        slots = compute_available_slots(day, service, settings, bookings, now_utc, stride_minutes)
        if slots:
            results.append(
                {
                    "date": day.isoformat(),
                    "day_name": weekday_code(day),
                    "slot_count": len(slots),
                    "first_slot": slots[0],
                }
            )
        if len(results) >= limit:
            break
    return results

"""
Capacity and conflict filtering against existing bookings.

Each booking occupies the half-open interval ``[start, start + duration +
buffer)``. A candidate slot survives while the number of confirmed bookings
of the same service overlapping its own interval stays strictly below the
per-slot capacity. Availability is always recomputed from the booking set
passed in; nothing is cached between calls.
"""

import logging
from typing import Iterable, Optional

from booking_engine.schemas.booking_schema import BookingRecord
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings
from booking_engine.scheduling.calendar import parse_time_of_day

logger = logging.getLogger(__name__)


def intervals_overlap(a_start: int, a_length: int, b_start: int, b_length: int) -> bool:
    """Half-open interval overlap: ``[a, a+d1)`` and ``[b, b+d2)``.

    Intervals that only touch (one ends exactly where the other starts)
    do not overlap.
    """
    return a_start < b_start + b_length and b_start < a_start + a_length


def occupied_minutes(duration_minutes: int, settings: BookingSettings) -> int:
    return duration_minutes + settings.buffer_minutes


def _blocking_bookings(
    date: str,
    service: BookingService,
    bookings: Iterable[BookingRecord],
    exclude_booking_id: Optional[str],
) -> list[BookingRecord]:
    return [
        b
        for b in bookings
        if b.is_active
        and b.service_id == service.id
        and b.date == date
        and b.id != exclude_booking_id
    ]


def count_overlapping(
    date: str,
    start_minutes: int,
    service: BookingService,
    settings: BookingSettings,
    bookings: Iterable[BookingRecord],
    exclude_booking_id: Optional[str] = None,
    duration_minutes: Optional[int] = None,
) -> int:
    """Confirmed bookings of the service whose occupancy overlaps the candidate's."""
    length = occupied_minutes(duration_minutes or service.duration_minutes, settings)
    count = 0
    for booking in _blocking_bookings(date, service, bookings, exclude_booking_id):
        booked_start = parse_time_of_day(booking.time)
        booked_length = occupied_minutes(booking.duration_minutes, settings)
        if intervals_overlap(start_minutes, length, booked_start, booked_length):
            count += 1
    return count


def filter_available(
    date: str,
    candidates: list[str],
    service: BookingService,
    settings: BookingSettings,
    bookings: Iterable[BookingRecord],
    exclude_booking_id: Optional[str] = None,
    duration_minutes: Optional[int] = None,
) -> list[str]:
    """Drop candidates whose overlapping confirmed bookings reach capacity.

    ``exclude_booking_id`` removes one booking's own occupancy and
    ``duration_minutes`` sizes the candidate by that booking's snapshot,
    both used when rescheduling it.
    """
    capacity = service.effective_capacity(settings.max_orders_per_slot)
    relevant = _blocking_bookings(date, service, bookings, exclude_booking_id)
    available = []
    for slot in candidates:
        taken = count_overlapping(
            date, parse_time_of_day(slot), service, settings, relevant,
            duration_minutes=duration_minutes,
        )
        if taken < capacity:
            available.append(slot)
        else:
            logger.debug("Slot %s %s full (%d/%d)", date, slot, taken, capacity)
    return available

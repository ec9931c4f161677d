"""
Booking constraint evaluation, independent of existing bookings.

Decides whether a date (and a start time on it) can be booked at all for a
service: minimum notice, booking horizon, blocked dates and blackout windows,
business hours, and the service-area ZIP allowlist. All checks are pure and
must be re-run at confirmation time because the clock moves between listing
and submission.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from booking_engine.errors import DateOutOfRange, OutsideServiceArea, ValidationError
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings, ServiceType
from booking_engine.scheduling.calendar import (
    business_window,
    ensure_utc,
    local_today,
    tenant_zone,
    to_utc,
    weekday_code,
)
from booking_engine.utils import normalize_zip

logger = logging.getLogger(__name__)

# Service types that send a driver to the customer's address
ADDRESS_SERVICE_TYPES = frozenset({ServiceType.PICKUP_DELIVERY, ServiceType.COMMERCIAL})


def required_notice(service: BookingService, settings: BookingSettings) -> timedelta:
    """The stricter of the tenant minimum notice and the service lead time."""
    return timedelta(hours=max(settings.min_notice_hours, service.lead_time_hours))


def earliest_start(
    service: BookingService, settings: BookingSettings, now_utc: datetime
) -> datetime:
    """Earliest bookable instant (UTC) for the service."""
    return ensure_utc(now_utc) + required_notice(service, settings)


def check_date_eligible(
    day: date, service: BookingService, settings: BookingSettings, now_utc: datetime
) -> None:
    """Raise DateOutOfRange if no slot on ``day`` could ever be booked.

    The reason code is one of ``notice``, ``horizon``, ``blocked``,
    ``blackout`` or ``closed``.
    """
    earliest = earliest_start(service, settings, now_utc)
    earliest_day = earliest.astimezone(tenant_zone(settings)).date()
    if day < earliest_day:
        raise DateOutOfRange(
            f"{day.isoformat()} is inside the minimum notice period", reason="notice"
        )

    last_day = local_today(now_utc, settings) + timedelta(days=settings.max_days_ahead)
    if day > last_day:
        raise DateOutOfRange(
            f"{day.isoformat()} is more than {settings.max_days_ahead} days ahead",
            reason="horizon",
        )

    if day in settings.blocked_dates:
        raise DateOutOfRange(f"{day.isoformat()} is a blocked date", reason="blocked")

    for window in settings.blackout_windows:
        if window.contains(day):
            raise DateOutOfRange(
                f"{day.isoformat()} falls in a blackout window "
                f"({window.start.isoformat()} to {window.end.isoformat()})",
                reason="blackout",
            )

    if business_window(day, settings) is None:
        raise DateOutOfRange(
            f"Closed on {weekday_code(day)} ({day.isoformat()})", reason="closed"
        )


def is_date_eligible(
    day: date, service: BookingService, settings: BookingSettings, now_utc: datetime
) -> bool:
    try:
        check_date_eligible(day, service, settings, now_utc)
    except DateOutOfRange as exc:
        logger.debug("Date %s rejected (%s): %s", day, exc.reason, exc.message)
        return False
    return True


def is_slot_within_notice(
    day: date,
    start_minutes: int,
    service: BookingService,
    settings: BookingSettings,
    now_utc: datetime,
) -> bool:
    """True when the slot starts no earlier than now plus the required notice.

    The comparison is exact: 11.5 hours of notice against a 12 hour minimum
    fails.
    """
    return to_utc(day, start_minutes, settings) >= earliest_start(service, settings, now_utc)


def check_service_area(
    zip_code: Optional[str], service_type: str, settings: BookingSettings
) -> None:
    """Enforce the ZIP allowlist for service types that visit the customer."""
    if service_type not in ADDRESS_SERVICE_TYPES or not settings.service_area_zips:
        return
    if not zip_code or not zip_code.strip():
        raise ValidationError("A ZIP code is required for this service type")
    if normalize_zip(zip_code) not in settings.service_area_zips:
        raise OutsideServiceArea(f"Service is not available in ZIP code {zip_code.strip()} yet")

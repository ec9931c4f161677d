"""
Booking lifecycle controller.

Orchestrates slot listing, booking creation, rescheduling, cancellation and
customer lookup for one store. Tenant settings and services are loaded from
the store on every call and passed down explicitly; nothing tenant-specific
is cached between requests.

Create and reschedule re-run the full availability pipeline while holding the
store's write lock for the affected ``(service, date)`` keys, so two requests
racing for the last place in a slot cannot both succeed.
"""

import re
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union

import pydantic

from booking_engine.config import app_config
from booking_engine.errors import (
    DateOutOfRange,
    Forbidden,
    InvalidTransition,
    NotFound,
    ServiceInactiveOrUnknown,
    SettingsNotConfigured,
    SlotUnavailable,
    ValidationError,
)
from booking_engine.logging_context import get_request_logger
from booking_engine.notifications import NotificationDispatcher, Notifier
from booking_engine.schemas.booking_schema import (
    BookingRecord,
    BookingStatus,
    CreateBookingRequest,
    DropoffDetails,
    RequestType,
    SelfServiceDetails,
)
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings, ServiceType
from booking_engine.scheduling.availability import (
    DateAvailability,
    compute_available_slots,
    find_available_dates,
)
from booking_engine.scheduling.calendar import (
    format_time_of_day,
    local_today,
    parse_date,
    parse_time_of_day,
)
from booking_engine.scheduling.constraints import (
    check_date_eligible,
    check_service_area,
    is_slot_within_notice,
)
from booking_engine.scheduling.lifecycle import BookingLifecycle, StatusTrigger
from booking_engine.store.base import BookingStore
from booking_engine.utils import normalize_email, normalize_phone

logger = get_request_logger(__name__)

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Fulfillment variants with no required fields, usable when a request omits them
_DEFAULT_FULFILLMENT = {
    ServiceType.DROPOFF: DropoffDetails,
    ServiceType.SELF_SERVICE: SelfServiceDetails,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_pydantic_error(exc: pydantic.ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "request"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def _check_slot_notice(
    day: date,
    start_minutes: int,
    service: BookingService,
    settings: BookingSettings,
    now: datetime,
) -> None:
    if not is_slot_within_notice(day, start_minutes, service, settings, now):
        raise DateOutOfRange(
            f"{day.isoformat()} {format_time_of_day(start_minutes)} is inside the "
            "minimum notice period",
            reason="notice",
        )


def _ensure_movable(booking: BookingRecord) -> None:
    if BookingLifecycle(booking.status).is_terminal():
        raise InvalidTransition(f"Cannot reschedule a {booking.status.value} booking")


class BookingEngine:
    """Availability and booking operations over a ``BookingStore``."""

    def __init__(
        self,
        store: BookingStore,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        stride_minutes: Optional[int] = None,
        id_prefix: Optional[str] = None,
    ) -> None:
        self.store = store
        if isinstance(notifier, NotificationDispatcher):
            self.notifier = notifier
        else:
            self.notifier = NotificationDispatcher([notifier] if notifier else None)
        self._clock = clock or _utc_now
        self.stride_minutes = stride_minutes or app_config.scheduling.slot_stride_minutes
        self.id_prefix = id_prefix or app_config.storage.booking_id_prefix

    # --- Loading ---

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            raise ValueError("Engine clock must return timezone-aware datetimes")
        return now.astimezone(timezone.utc)

    def _load_settings(self, site_id: str) -> BookingSettings:
        settings = self.store.get_settings(site_id)
        if settings is None:
            raise SettingsNotConfigured(f"Booking settings not configured for site '{site_id}'")
        return settings

    def _load_active_service(self, site_id: str, service_id: str) -> BookingService:
        service = self.store.get_service(site_id, service_id)
        if service is None or not service.active:
            raise ServiceInactiveOrUnknown(f"Service '{service_id}' is not available")
        return service

    def _slots_for(
        self,
        site_id: str,
        day_str: str,
        service: BookingService,
        settings: BookingSettings,
        now: datetime,
        exclude_booking_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> list[str]:
        bookings = self.store.list_bookings(site_id, day_str, day_str)
        return compute_available_slots(
            parse_date(day_str),
            service,
            settings,
            bookings,
            now,
            self.stride_minutes,
            exclude_booking_id=exclude_booking_id,
            duration_minutes=duration_minutes,
        )

    # --- Read operations ---

    def list_slots(self, site_id: str, service_id: str, date: str) -> list[str]:
        """Bookable start times for a service on a date; empty if the date is ineligible."""
        day = parse_date(date)
        settings = self._load_settings(site_id)
        service = self._load_active_service(site_id, service_id)
        slots = self._slots_for(site_id, day.isoformat(), service, settings, self._now())
        logger.info("Listed %d slots for %s/%s on %s", len(slots), site_id, service_id, date)
        return slots

    def next_available(
        self,
        site_id: str,
        service_id: str,
        from_date: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[DateAvailability]:
        """The next dates with open slots, starting today or at ``from_date``."""
        settings = self._load_settings(site_id)
        service = self._load_active_service(site_id, service_id)
        now = self._now()
        start = parse_date(from_date) if from_date else local_today(now, settings)
        horizon = local_today(now, settings) + timedelta(days=settings.max_days_ahead)
        bookings = self.store.list_bookings(site_id, start.isoformat(), horizon.isoformat())
        return find_available_dates(
            start,
            service,
            settings,
            bookings,
            now,
            self.stride_minutes,
            limit=limit or app_config.scheduling.next_available_limit,
        )

    def list_for_customer(self, site_id: str, email: str, phone: str) -> list[BookingRecord]:
        """All bookings whose e-mail AND phone both match exactly after normalization."""
        if not email or not email.strip() or not phone or not phone.strip():
            raise ValidationError("Both email and phone are required to look up bookings")
        wanted_email = normalize_email(email)
        wanted_phone = normalize_phone(phone)
        matches = [
            b
            for b in self.store.all_bookings(site_id)
            if normalize_email(b.email) == wanted_email
            and normalize_phone(b.phone) == wanted_phone
        ]
        return sorted(matches, key=lambda b: (b.date, b.time, b.created_at))

    def list_bookings(self, site_id: str, start_date: str, end_date: str) -> list[BookingRecord]:
        """Admin listing of every booking in a date range, any status."""
        start = parse_date(start_date)
        end = parse_date(end_date)
        if end < start:
            raise ValidationError(f"Range end {end_date} is before start {start_date}")
        bookings = self.store.list_bookings(site_id, start.isoformat(), end.isoformat())
        return sorted(bookings, key=lambda b: (b.date, b.time, b.created_at))

    # --- Create ---

    def create(
        self,
        site_id: str,
        request: Union[CreateBookingRequest, dict[str, Any]],
        source: str = "public_booking_form",
    ) -> BookingRecord:
        """
        Validate and persist a new confirmed booking.

        Raises:
            ValidationError: Malformed or incomplete request.
            SettingsNotConfigured: Tenant has no booking settings.
            ServiceInactiveOrUnknown: Service missing or inactive.
            DateOutOfRange: Date or start time fails eligibility (notice, horizon,
                closures) at confirmation time. Retrying cannot help.
            SlotUnavailable: Time is full or no longer offered; refresh and retry.
        """
        if not isinstance(request, CreateBookingRequest):
            try:
                request = CreateBookingRequest.model_validate(request)
            except pydantic.ValidationError as exc:
                raise ValidationError(_format_pydantic_error(exc)) from None

        self._validate_contact(request.name, request.phone, request.email)
        day = parse_date(request.date)
        start_minutes = parse_time_of_day(request.time)

        settings = self._load_settings(site_id)
        service = self._load_active_service(site_id, request.service_id)
        fulfillment = self._resolve_fulfillment(request, service, settings)
        self._validate_extras(request, service, settings)

        with self.store.write_lock(site_id, [(service.id, request.date)]):
            now = self._now()
            check_date_eligible(day, service, settings, now)
            _check_slot_notice(day, start_minutes, service, settings, now)
            slots = self._slots_for(site_id, request.date, service, settings, now)
            if request.time not in slots:
                logger.info(
                    "Slot %s %s for %s/%s unavailable at confirmation",
                    request.date, request.time, site_id, service.id,
                )
                raise SlotUnavailable(
                    f"Time slot {request.date} {request.time} is no longer available"
                )

            booking = BookingRecord(
                id=f"{self.id_prefix}{uuid.uuid4().hex}",
                site_id=site_id,
                service_id=service.id,
                date=request.date,
                time=request.time,
                duration_minutes=service.duration_minutes,
                name=request.name.strip(),
                phone=normalize_phone(request.phone),
                email=request.email.strip(),
                note=request.note,
                fulfillment=fulfillment,
                add_on_ids=list(request.add_on_ids),
                request_type=request.request_type,
                recurring_rule=request.recurring_rule,
                status=BookingStatus.CONFIRMED,
                created_at=now,
                updated_at=now,
                details={
                    "source": source,
                    "serviceCategory": service.category,
                    "pricingModel": service.pricing_model.value,
                },
            )
            self.store.save_booking(booking)

        logger.info(
            "Booking created: %s for %s/%s on %s at %s",
            booking.id, site_id, service.id, booking.date, booking.time,
        )
        self.notifier.booking_confirmed(booking, service, settings)
        return booking

    def _validate_contact(self, name: str, phone: str, email: str) -> None:
        missing = [
            field_name
            for field_name, value in [("name", name), ("phone", phone), ("email", email)]
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        digits = re.sub(r"[^\d]", "", phone)
        if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            raise ValidationError(f"Phone number '{phone}' doesn't look right")
        if not EMAIL_PATTERN.match(email.strip()):
            raise ValidationError(f"Email address '{email}' doesn't look right")

    def _resolve_fulfillment(
        self,
        request: CreateBookingRequest,
        service: BookingService,
        settings: BookingSettings,
    ):
        fulfillment = request.fulfillment
        if fulfillment is None:
            default = _DEFAULT_FULFILLMENT.get(service.service_type)
            if default is None:
                raise ValidationError(
                    "Pickup address and zip code are required for this service type"
                )
            fulfillment = default()

        requested_type = ServiceType(fulfillment.service_type)
        if requested_type != service.service_type and not (
            requested_type == ServiceType.COMMERCIAL and service.commercial_eligible
        ):
            raise ValidationError(
                f"Service '{service.id}' does not offer {requested_type.value} fulfillment"
            )

        if service.requires_address and not getattr(fulfillment, "pickup_address", None):
            raise ValidationError(f"Service '{service.id}' requires an address")
        if service.requires_zip_code and not getattr(fulfillment, "zip_code", None):
            raise ValidationError(f"Service '{service.id}' requires a ZIP code")
        if service.requires_load_metrics and not fulfillment.has_load_metrics():
            raise ValidationError(
                f"Service '{service.id}' requires a bag count or estimated weight"
            )

        check_service_area(getattr(fulfillment, "zip_code", None), requested_type, settings)
        return fulfillment

    def _validate_extras(
        self,
        request: CreateBookingRequest,
        service: BookingService,
        settings: BookingSettings,
    ) -> None:
        unknown = sorted(set(request.add_on_ids) - service.add_on_ids())
        if unknown:
            raise ValidationError(f"Unknown add-ons for '{service.id}': {', '.join(unknown)}")

        if request.request_type == RequestType.RECURRING:
            if not settings.recurring_enabled:
                raise ValidationError("Recurring bookings are not enabled")
            if not service.recurring_eligible:
                raise ValidationError(f"Service '{service.id}' cannot be booked as recurring")
            until = request.recurring_rule.until if request.recurring_rule else None
            if until is not None and until < parse_date(request.date):
                raise ValidationError("Recurring rule ends before the first booking")

    # --- Reschedule / cancel ---

    def _load_owned_booking(self, site_id: str, booking_id: str, identity: str) -> BookingRecord:
        booking = self.store.get_booking(site_id, booking_id)
        if booking is None:
            raise NotFound(f"Booking {booking_id} not found")
        if not identity or normalize_email(identity) != normalize_email(booking.email):
            logger.warning("Identity mismatch for booking %s", booking_id)
            raise Forbidden(f"Booking {booking_id} does not belong to this customer")
        return booking

    def reschedule(
        self,
        site_id: str,
        booking_id: str,
        identity: str,
        new_date: str,
        new_time: str,
    ) -> BookingRecord:
        """
        Move a confirmed booking to a new slot, keeping its id and history.

        The booking's own occupancy is excluded from the capacity count, so
        moving within or back onto its current slot is allowed. The new slot is
        sized by the booking's duration snapshot, not the service's current
        duration.
        """
        day = parse_date(new_date)
        start_minutes = parse_time_of_day(new_time)
        settings = self._load_settings(site_id)
        booking = self._load_owned_booking(site_id, booking_id, identity)
        _ensure_movable(booking)
        service = self._load_active_service(site_id, booking.service_id)

        keys = [(service.id, booking.date), (service.id, day.isoformat())]
        with self.store.write_lock(site_id, keys):
            current = self.store.get_booking(site_id, booking_id)
            if current is None:
                raise NotFound(f"Booking {booking_id} not found")
            _ensure_movable(current)

            now = self._now()
            check_date_eligible(day, service, settings, now)
            _check_slot_notice(day, start_minutes, service, settings, now)
            slots = self._slots_for(
                site_id,
                day.isoformat(),
                service,
                settings,
                now,
                exclude_booking_id=booking_id,
                duration_minutes=current.duration_minutes,
            )
            if new_time not in slots:
                raise SlotUnavailable(f"Time slot {new_date} {new_time} is not available")

            previous = (current.date, current.time)
            updated = current.model_copy(
                update={"date": day.isoformat(), "time": new_time, "updated_at": now}
            )
            self.store.save_booking(updated)

        logger.info(
            "Booking rescheduled: %s from %s %s to %s %s",
            booking_id, previous[0], previous[1], updated.date, updated.time,
        )
        return updated

    def cancel(self, site_id: str, booking_id: str, identity: str) -> BookingRecord:
        """Cancel a booking. Cancelling an already-cancelled booking is a no-op."""
        booking = self._load_owned_booking(site_id, booking_id, identity)
        if booking.status == BookingStatus.CANCELLED:
            logger.info("Booking %s already cancelled", booking_id)
            return booking

        with self.store.write_lock(site_id, [(booking.service_id, booking.date)]):
            current = self.store.get_booking(site_id, booking_id)
            if current is None:
                raise NotFound(f"Booking {booking_id} not found")
            if current.status == BookingStatus.CANCELLED:
                return current

            lifecycle = BookingLifecycle(current.status)
            new_status = lifecycle.transition(StatusTrigger.CANCEL)
            updated = current.model_copy(
                update={"status": new_status, "updated_at": self._now()}
            )
            self.store.save_booking(updated)

        logger.info("Booking cancelled: %s", booking_id)
        return updated

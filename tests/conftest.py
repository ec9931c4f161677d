"""Shared test fixtures and helpers."""

from datetime import datetime, timezone
from typing import Optional

import pytest

from booking_engine.engine import BookingEngine
from booking_engine.notifications import Notifier
from booking_engine.schemas.booking_schema import BookingRecord, BookingStatus
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings, BusinessHours
from booking_engine.store.memory import InMemoryBookingStore

# Friday 2025-03-14 12:00 UTC
FIXED_NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)
MONDAY = "2025-03-17"
TUESDAY = "2025-03-18"
SITE = "demo"


def make_settings(**overrides) -> BookingSettings:
    """Weekdays 09:00-17:00, Saturday 10:00-14:00, Sunday closed, UTC."""
    values = dict(
        timezone="UTC",
        buffer_minutes=15,
        min_notice_hours=12,
        max_days_ahead=30,
        max_orders_per_slot=1,
        rush_lead_hours=0,
        business_hours=[
            BusinessHours(day="Mon", open="09:00", close="17:00"),
            BusinessHours(day="Tue", open="09:00", close="17:00"),
            BusinessHours(day="Wed", open="09:00", close="17:00"),
            BusinessHours(day="Thu", open="09:00", close="17:00"),
            BusinessHours(day="Fri", open="09:00", close="17:00"),
            BusinessHours(day="Sat", open="10:00", close="14:00"),
            BusinessHours(day="Sun", open="00:00", close="00:00", closed=True),
        ],
    )
    values.update(overrides)
    return BookingSettings(**values)


def make_service(**overrides) -> BookingService:
    values = dict(
        id="wash-fold",
        name="Wash & Fold",
        service_type="dropoff",
        duration_minutes=60,
        lead_time_hours=0,
    )
    values.update(overrides)
    return BookingService(**values)


def make_booking(
    time: str,
    date: str = MONDAY,
    service_id: str = "wash-fold",
    duration_minutes: int = 60,
    status: BookingStatus = BookingStatus.CONFIRMED,
    booking_id: Optional[str] = None,
    site_id: str = SITE,
    email: str = "ada@example.com",
    phone: str = "5551234567",
) -> BookingRecord:
    return BookingRecord(
        id=booking_id or f"bk_{date}_{time}_{service_id}",
        site_id=site_id,
        service_id=service_id,
        date=date,
        time=time,
        duration_minutes=duration_minutes,
        name="Ada Lovelace",
        phone=phone,
        email=email,
        status=status,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


def booking_request(time: str = "09:00", date: str = MONDAY, **overrides) -> dict:
    """A camelCase request payload as an API layer would receive it."""
    payload = {
        "serviceId": "wash-fold",
        "date": date,
        "time": time,
        "name": "Ada Lovelace",
        "phone": "(555) 123-4567",
        "email": "ada@example.com",
    }
    payload.update(overrides)
    return payload


class RecordingNotifier(Notifier):
    name = "recording"

    def __init__(self) -> None:
        self.sent: list[str] = []

    def booking_confirmed(self, booking, service, settings) -> None:
        self.sent.append(booking.id)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def service():
    return make_service()


@pytest.fixture
def store(settings, service):
    store = InMemoryBookingStore()
    store.save_settings(SITE, settings)
    store.save_services(SITE, [service])
    return store


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine(store, notifier):
    return BookingEngine(store, notifier=notifier, clock=lambda: FIXED_NOW, stride_minutes=30)

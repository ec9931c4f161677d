"""In-process store, used by tests and single-process deployments."""

import logging
import threading
from typing import Optional

from booking_engine.schemas.booking_schema import BookingRecord
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings
from booking_engine.store.base import BookingStore

logger = logging.getLogger(__name__)


class InMemoryBookingStore(BookingStore):
    """Dict-backed store. Returns copies so callers must save to persist changes."""

    def __init__(self) -> None:
        super().__init__()
        self._data_lock = threading.RLock()
        self._settings: dict[str, BookingSettings] = {}
        self._services: dict[str, list[BookingService]] = {}
        self._bookings: dict[str, dict[str, BookingRecord]] = {}

    def get_settings(self, site_id: str) -> Optional[BookingSettings]:
        with self._data_lock:
            settings = self._settings.get(site_id)
            return settings.model_copy(deep=True) if settings else None

    def save_settings(self, site_id: str, settings: BookingSettings) -> None:
        with self._data_lock:
            self._settings[site_id] = settings.model_copy(deep=True)

    def get_services(self, site_id: str) -> list[BookingService]:
        with self._data_lock:
            return [s.model_copy(deep=True) for s in self._services.get(site_id, [])]

    def save_services(self, site_id: str, services: list[BookingService]) -> None:
        with self._data_lock:
            self._services[site_id] = [s.model_copy(deep=True) for s in services]

    def get_booking(self, site_id: str, booking_id: str) -> Optional[BookingRecord]:
        with self._data_lock:
            booking = self._bookings.get(site_id, {}).get(booking_id)
            return booking.model_copy(deep=True) if booking else None

    def save_booking(self, booking: BookingRecord) -> None:
        with self._data_lock:
            self._bookings.setdefault(booking.site_id, {})[booking.id] = booking.model_copy(
                deep=True
            )
        logger.debug("Saved booking %s (%s)", booking.id, booking.status.value)

    def list_bookings(self, site_id: str, start_date: str, end_date: str) -> list[BookingRecord]:
        with self._data_lock:
            return [
                b.model_copy(deep=True)
                for b in self._bookings.get(site_id, {}).values()
                if start_date <= b.date <= end_date
            ]

    def all_bookings(self, site_id: str) -> list[BookingRecord]:
        with self._data_lock:
            return [b.model_copy(deep=True) for b in self._bookings.get(site_id, {}).values()]

    def reset(self) -> None:
        """Clear all data. Used by test fixtures for isolation."""
        with self._data_lock:
            self._settings.clear()
            self._services.clear()
            self._bookings.clear()

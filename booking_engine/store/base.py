"""
Persistence boundary for tenant booking data.

Stores are partitioned by ``site_id``; no method reads across tenants.

Write contract: callers that validate a slot and then persist a booking must
hold ``write_lock`` for every ``(service_id, date)`` key they touch for the
whole check-then-write sequence. Stores serialise writers per
``(site_id, service_id, date)`` key; reads never take the write lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from booking_engine.schemas.booking_schema import BookingRecord
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings

logger = logging.getLogger(__name__)

LockKey = tuple[str, str, str]


class KeyedLocks:
    """One lock per (site, service, date) key, dropped once no caller holds or waits on it."""

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        # key -> [lock, number of callers holding or waiting]
        self._locks: dict[LockKey, list] = {}

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)

    def _checkout(self, key: LockKey) -> threading.Lock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: LockKey) -> None:
        with self._registry_lock:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, keys: Iterable[LockKey]) -> Iterator[None]:
        """Acquire all keys in sorted order so two writers never deadlock."""
        ordered = sorted(set(keys))
        acquired: list[tuple[LockKey, threading.Lock]] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)


class BookingStore(ABC):
    """Abstract tenant-partitioned store for settings, services and bookings."""

    def __init__(self) -> None:
        self._keyed_locks = KeyedLocks()

    @contextmanager
    def write_lock(self, site_id: str, keys: Iterable[tuple[str, str]]) -> Iterator[None]:
        """Serialise writers for the given ``(service_id, date)`` keys of one tenant."""
        with self._keyed_locks.hold((site_id, service_id, day) for service_id, day in keys):
            yield

    @abstractmethod
    def get_settings(self, site_id: str) -> Optional[BookingSettings]:
        ...

    @abstractmethod
    def save_settings(self, site_id: str, settings: BookingSettings) -> None:
        ...

    @abstractmethod
    def get_services(self, site_id: str) -> list[BookingService]:
        ...

    @abstractmethod
    def save_services(self, site_id: str, services: list[BookingService]) -> None:
        ...

    @abstractmethod
    def get_booking(self, site_id: str, booking_id: str) -> Optional[BookingRecord]:
        ...

    @abstractmethod
    def save_booking(self, booking: BookingRecord) -> None:
        """Insert or replace a booking by id."""

    @abstractmethod
    def list_bookings(self, site_id: str, start_date: str, end_date: str) -> list[BookingRecord]:
        """Bookings dated from start_date to end_date inclusive, any status."""

    @abstractmethod
    def all_bookings(self, site_id: str) -> list[BookingRecord]:
        ...

    def get_service(self, site_id: str, service_id: str) -> Optional[BookingService]:
        for service in self.get_services(site_id):
            if service.id == service_id:
                return service
        return None

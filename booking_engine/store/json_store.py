"""
File-backed store over a content directory.

Layout per tenant::

    <content_dir>/<site_id>/booking/settings.json
    <content_dir>/<site_id>/booking/services.json
    <content_dir>/<site_id>/booking/bookings/<YYYY-MM-DD>.json

Files are JSON with camelCase keys. Writes go to a temporary file that is
then renamed over the target, so readers never see a half-written file.
Write serialisation is in-process only: run one writer process per content
directory.
"""

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from booking_engine.schemas.booking_schema import BookingRecord
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings
from booking_engine.store.base import BookingStore

logger = logging.getLogger(__name__)

SITE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class JsonFileBookingStore(BookingStore):
    """Store tenant booking data as JSON files under ``content_dir``."""

    def __init__(self, content_dir: Path) -> None:
        super().__init__()
        self.content_dir = Path(content_dir)
        self._file_lock = threading.RLock()

    def _booking_root(self, site_id: str) -> Path:
        if not SITE_ID_PATTERN.match(site_id):
            raise ValueError(f"Invalid site id: {site_id!r}")
        return self.content_dir / site_id / "booking"

    def _bookings_dir(self, site_id: str) -> Path:
        return self._booking_root(site_id) / "bookings"

    def _read_json(self, path: Path, fallback: Any) -> Any:
        if not path.exists():
            return fallback
        with path.open(encoding="utf-8") as f:
            return json.load(f)

    def _write_json(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_settings(self, site_id: str) -> Optional[BookingSettings]:
        data = self._read_json(self._booking_root(site_id) / "settings.json", None)
        return BookingSettings.model_validate(data) if data is not None else None

    def save_settings(self, site_id: str, settings: BookingSettings) -> None:
        with self._file_lock:
            self._write_json(
                self._booking_root(site_id) / "settings.json",
                settings.model_dump(mode="json", by_alias=True),
            )

    def get_services(self, site_id: str) -> list[BookingService]:
        data = self._read_json(self._booking_root(site_id) / "services.json", [])
        return [BookingService.model_validate(item) for item in data]

    def save_services(self, site_id: str, services: list[BookingService]) -> None:
        with self._file_lock:
            self._write_json(
                self._booking_root(site_id) / "services.json",
                [s.model_dump(mode="json", by_alias=True) for s in services],
            )

    def _read_day(self, site_id: str, day: str) -> list[BookingRecord]:
        data = self._read_json(self._bookings_dir(site_id) / f"{day}.json", [])
        return [BookingRecord.model_validate(item) for item in data]

    def _write_day(self, site_id: str, day: str, bookings: list[BookingRecord]) -> None:
        self._write_json(
            self._bookings_dir(site_id) / f"{day}.json",
            [b.model_dump(mode="json", by_alias=True) for b in bookings],
        )

    def _day_files(self, site_id: str) -> list[Path]:
        directory = self._bookings_dir(site_id)
        if not directory.exists():
            return []
        return sorted(directory.glob("*.json"))

    def _read_days(self, site_id: str, days: list[str]) -> list[BookingRecord]:
        """Bookings from the given day files, one per id.

        A move interrupted between its two file writes leaves a booking in
        both day files; the copy with the newest ``updated_at`` wins.
        """
        latest: dict[str, BookingRecord] = {}
        for day in days:
            for booking in self._read_day(site_id, day):
                seen = latest.get(booking.id)
                if seen is None or booking.updated_at >= seen.updated_at:
                    latest[booking.id] = booking
        return sorted(latest.values(), key=lambda b: (b.date, b.time, b.created_at))

    def get_booking(self, site_id: str, booking_id: str) -> Optional[BookingRecord]:
        for booking in self.all_bookings(site_id):
            if booking.id == booking_id:
                return booking
        return None

    def save_booking(self, booking: BookingRecord) -> None:
        """Upsert by id; a booking whose date changed moves to the new day file.

        The new day file is written before the old one is cleaned up, so a
        failed move never drops the booking.
        """
        with self._file_lock:
            previous = self.get_booking(booking.site_id, booking.id)

            day = [b for b in self._read_day(booking.site_id, booking.date) if b.id != booking.id]
            day.append(booking)
            day.sort(key=lambda b: (b.time, b.created_at))
            self._write_day(booking.site_id, booking.date, day)

            if previous is not None and previous.date != booking.date:
                remaining = [
                    b for b in self._read_day(booking.site_id, previous.date) if b.id != booking.id
                ]
                self._write_day(booking.site_id, previous.date, remaining)
        logger.debug("Saved booking %s to %s.json", booking.id, booking.date)

    def list_bookings(self, site_id: str, start_date: str, end_date: str) -> list[BookingRecord]:
        return [b for b in self.all_bookings(site_id) if start_date <= b.date <= end_date]

    def all_bookings(self, site_id: str) -> list[BookingRecord]:
        return self._read_days(site_id, [path.stem for path in self._day_files(site_id)])

"""Copy one tenant's booking data from one store into another."""

import logging
from dataclasses import dataclass

from booking_engine.store.base import BookingStore

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    services_imported: int = 0
    settings_imported: int = 0
    bookings_imported: int = 0
    bookings_skipped: int = 0


def import_site(source: BookingStore, target: BookingStore, site_id: str) -> ImportSummary:
    """
    Import settings, services and bookings for ``site_id``.

    Existing records in the target are replaced by id. Bookings whose
    ``site_id`` does not match the tenant being imported are skipped.
    """
    summary = ImportSummary()

    services = source.get_services(site_id)
    if services:
        target.save_services(site_id, services)
        summary.services_imported = len(services)

    settings = source.get_settings(site_id)
    if settings is not None:
        target.save_settings(site_id, settings)
        summary.settings_imported = 1

    for booking in source.all_bookings(site_id):
        if not booking.id or booking.site_id != site_id:
            summary.bookings_skipped += 1
            continue
        with target.write_lock(site_id, [(booking.service_id, booking.date)]):
            target.save_booking(booking)
        summary.bookings_imported += 1

    logger.info(
        "Imported site %s: %d services, %d settings, %d bookings (%d skipped)",
        site_id,
        summary.services_imported,
        summary.settings_imported,
        summary.bookings_imported,
        summary.bookings_skipped,
    )
    return summary

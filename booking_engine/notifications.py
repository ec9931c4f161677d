"""
Notification hand-off after a booking is confirmed.

Delivery (e-mail, SMS) belongs to external collaborators implementing
``Notifier``. The dispatcher isolates the engine from their failures: a
notifier that raises is logged and skipped, and the booking stays confirmed.
"""

import logging
from typing import Iterable, Optional

from booking_engine.schemas.booking_schema import BookingRecord
from booking_engine.schemas.service_schema import BookingService
from booking_engine.schemas.settings_schema import BookingSettings

logger = logging.getLogger(__name__)


def format_confirmation(booking: BookingRecord, service: BookingService) -> str:
    """One-line confirmation text shared by all channels."""
    return (
        f"Your booking is confirmed. {service.name} on {booking.date} at {booking.time}. "
        f"Reference: {booking.id}."
    )


class Notifier:
    """Collaborator interface for delivering booking notifications."""

    name = "notifier"

    def booking_confirmed(
        self, booking: BookingRecord, service: BookingService, settings: BookingSettings
    ) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Writes the notification to the log instead of delivering it."""

    name = "log"

    def booking_confirmed(
        self, booking: BookingRecord, service: BookingService, settings: BookingSettings
    ) -> None:
        logger.info(
            "Notify %s (admins: %d e-mail, %d phone): %s",
            booking.email,
            len(settings.notification_emails),
            len(settings.notification_phones),
            format_confirmation(booking, service),
        )


class NotificationDispatcher(Notifier):
    """Fans a notification out to every configured notifier."""

    name = "dispatcher"

    def __init__(self, notifiers: Optional[Iterable[Notifier]] = None) -> None:
        self.notifiers: list[Notifier] = list(notifiers) if notifiers is not None else [
            LoggingNotifier()
        ]

    def booking_confirmed(
        self, booking: BookingRecord, service: BookingService, settings: BookingSettings
    ) -> list[str]:
        """Notify everyone; return the names of notifiers that failed."""
        failed: list[str] = []
        for notifier in self.notifiers:
            try:
                notifier.booking_confirmed(booking, service, settings)
            except Exception:
                failed.append(notifier.name)
                logger.exception(
                    "Notifier '%s' failed for booking %s; booking stays confirmed",
                    notifier.name,
                    booking.id,
                )
        return failed

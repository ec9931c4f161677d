"""
Error kinds surfaced by the booking engine.

Every error is recoverable by the caller. ``status_code`` is the HTTP status
an API layer should answer with; ``retryable`` marks conditions that may clear
if the caller refreshes its slot list and tries again.
"""


class BookingError(Exception):
    """Base class for all booking engine errors."""

    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed or incomplete input."""


class OutsideServiceArea(ValidationError):
    """ZIP code is not in the tenant's service area allowlist."""


class SettingsNotConfigured(BookingError):
    """The tenant has no booking settings."""


class ServiceInactiveOrUnknown(BookingError):
    """Service id does not exist for the tenant or is inactive."""


class DateOutOfRange(BookingError):
    """Date or slot fails eligibility (notice, horizon, blackout, closed day)."""

    def __init__(self, message: str, reason: str = "") -> None:
        super().__init__(message)
        self.reason = reason


class Forbidden(BookingError):
    """Caller identity does not match the booking's contact identity."""

    status_code = 403


class NotFound(BookingError):
    """Booking id cannot be resolved within the tenant."""

    status_code = 404


class SlotUnavailable(BookingError):
    """Slot passed eligibility but is full or no longer generated."""

    status_code = 409
    retryable = True


class InvalidTransition(BookingError):
    """Requested status change is not allowed from the booking's current status."""

    status_code = 409

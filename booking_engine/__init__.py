from booking_engine.engine import BookingEngine
from booking_engine.errors import (
    BookingError,
    DateOutOfRange,
    Forbidden,
    InvalidTransition,
    NotFound,
    OutsideServiceArea,
    ServiceInactiveOrUnknown,
    SettingsNotConfigured,
    SlotUnavailable,
    ValidationError,
)

__all__ = [
    "BookingEngine",
    "BookingError",
    "DateOutOfRange",
    "Forbidden",
    "InvalidTransition",
    "NotFound",
    "OutsideServiceArea",
    "ServiceInactiveOrUnknown",
    "SettingsNotConfigured",
    "SlotUnavailable",
    "ValidationError",
]

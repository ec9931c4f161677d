"""
Finite state machine for booking status.

A booking starts ``confirmed`` and can move once, to ``cancelled`` or
``completed``. Both are terminal. Every allowed move is listed explicitly;
anything else is rejected with the triggers that would have been valid.

Usage:
    lifecycle = BookingLifecycle(BookingStatus.CONFIRMED)
    lifecycle.transition(StatusTrigger.CANCEL)
    assert lifecycle.current_status == BookingStatus.CANCELLED
"""

import logging
from dataclasses import dataclass
from enum import Enum

from booking_engine.errors import InvalidTransition
from booking_engine.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class StatusTrigger(str, Enum):
    """Events that change a booking's status."""
    CANCEL = "cancel"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: StatusTrigger


TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


class BookingLifecycle:
    """Deterministic status machine for one booking."""

    TRANSITIONS: list[Transition] = [
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, StatusTrigger.CANCEL),
        Transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED, StatusTrigger.COMPLETE),
    ]

    def __init__(self, status: BookingStatus = BookingStatus.CONFIRMED) -> None:
        self._current_status = BookingStatus(status)

    @property
    def current_status(self) -> BookingStatus:
        return self._current_status

    def transition(self, trigger: StatusTrigger) -> BookingStatus:
        """
        Apply a trigger to the current status.

        Returns:
            The new status.

        Raises:
            InvalidTransition: If no transition exists from the current status.
        """
        for t in self.TRANSITIONS:
            if t.from_status == self._current_status and t.trigger == trigger:
                old_status = self._current_status
                self._current_status = t.to_status
                logger.debug(
                    "Booking status: %s -> %s (trigger: %s)",
                    old_status.value, self._current_status.value, trigger.value,
                )
                return self._current_status

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransition(
            f"Cannot {trigger.value} a booking that is '{self._current_status.value}'. "
            f"Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[StatusTrigger]:
        """Return all triggers valid from the current status."""
        return [t.trigger for t in self.TRANSITIONS if t.from_status == self._current_status]

    def is_terminal(self) -> bool:
        return self._current_status in TERMINAL_STATUSES

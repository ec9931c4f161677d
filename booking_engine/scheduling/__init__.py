from booking_engine.scheduling.availability import (
    compute_available_slots,
    find_available_dates,
)
from booking_engine.scheduling.capacity import (
    count_overlapping,
    filter_available,
    intervals_overlap,
)
from booking_engine.scheduling.constraints import check_date_eligible, is_date_eligible
from booking_engine.scheduling.lifecycle import BookingLifecycle, StatusTrigger
from booking_engine.scheduling.slot_generator import generate_candidate_slots

__all__ = [
    "compute_available_slots",
    "find_available_dates",
    "count_overlapping",
    "filter_available",
    "intervals_overlap",
    "check_date_eligible",
    "is_date_eligible",
    "BookingLifecycle",
    "StatusTrigger",
    "generate_candidate_slots",
]

"""Booking records and booking requests."""

import re
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AfterValidator, Field, model_validator

from booking_engine.schemas.settings_schema import TIME_PATTERN, CamelModel

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _check_date_string(value: str) -> str:
    if not DATE_PATTERN.match(value):
        raise ValueError(f"date must be YYYY-MM-DD, got {value!r}")
    date.fromisoformat(value)
    return value


def _check_time_string(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError(f"time must be HH:MM, got {value!r}")
    return value


DateString = Annotated[str, AfterValidator(_check_date_string)]
TimeString = Annotated[str, AfterValidator(_check_time_string)]


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class RequestType(str, Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class RecurrenceFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class RecurringRule(CamelModel):
    frequency: RecurrenceFrequency
    until: Optional[date] = None


class _LoadMetrics(CamelModel):
    bags: Optional[int] = Field(default=None, ge=0)
    estimated_weight_lb: Optional[float] = Field(default=None, ge=0)

    def has_load_metrics(self) -> bool:
        return self.bags is not None or self.estimated_weight_lb is not None


class PickupDeliveryDetails(_LoadMetrics):
    """Driver collects and returns; needs a pickup address inside the service area."""

    service_type: Literal["pickup_delivery"] = "pickup_delivery"
    pickup_address: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    delivery_address: Optional[str] = None
    unit_or_apt: Optional[str] = None


class CommercialDetails(_LoadMetrics):
    """Business account pickup."""

    service_type: Literal["commercial"] = "commercial"
    business_name: str = Field(min_length=1)
    pickup_address: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    delivery_address: Optional[str] = None
    unit_or_apt: Optional[str] = None


class DropoffDetails(_LoadMetrics):
    """Customer brings the load to the store."""

    service_type: Literal["dropoff"] = "dropoff"


class SelfServiceDetails(CamelModel):
    """Customer uses the machines on site."""

    service_type: Literal["self_service"] = "self_service"

    def has_load_metrics(self) -> bool:
        return False


Fulfillment = Annotated[
    Union[PickupDeliveryDetails, CommercialDetails, DropoffDetails, SelfServiceDetails],
    Field(discriminator="service_type"),
]


class CreateBookingRequest(CamelModel):
    """Customer-submitted booking request, validated again at confirmation time."""

    service_id: str
    date: DateString
    time: TimeString
    name: str
    phone: str
    email: str
    note: Optional[str] = None
    fulfillment: Optional[Fulfillment] = None
    add_on_ids: list[str] = Field(default_factory=list)
    request_type: RequestType = RequestType.ONE_TIME
    recurring_rule: Optional[RecurringRule] = None

    @model_validator(mode="after")
    def _check_recurrence(self) -> "CreateBookingRequest":
        if self.request_type == RequestType.RECURRING and self.recurring_rule is None:
            raise ValueError("recurring bookings need a recurring rule")
        if self.request_type == RequestType.ONE_TIME and self.recurring_rule is not None:
            raise ValueError("one-time bookings cannot carry a recurring rule")
        return self


class BookingRecord(CamelModel):
    """A persisted booking. Never deleted; cancellation only flips the status."""

    id: str
    site_id: str
    service_id: str
    date: DateString
    time: TimeString
    duration_minutes: int = Field(gt=0)
    name: str
    phone: str
    email: str
    note: Optional[str] = None
    fulfillment: Optional[Fulfillment] = None
    add_on_ids: list[str] = Field(default_factory=list)
    request_type: RequestType = RequestType.ONE_TIME
    recurring_rule: Optional[RecurringRule] = None
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: datetime
    updated_at: datetime
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

"""Tenant-wide scheduling rules."""

import re
from datetime import date
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from booking_engine.config import app_config

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
END_OF_DAY = "24:00"


class Weekday(str, Enum):
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"


class ServiceType(str, Enum):
    PICKUP_DELIVERY = "pickup_delivery"
    DROPOFF = "dropoff"
    SELF_SERVICE = "self_service"
    COMMERCIAL = "commercial"


class CamelModel(BaseModel):
    """Base model reading and writing camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class BusinessHours(CamelModel):
    """Opening window for one weekday, in tenant-local time."""

    day: Weekday
    open: str = "09:00"
    close: str = "17:00"
    closed: bool = False

    @field_validator("open")
    @classmethod
    def _check_open(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError(f"open must be HH:MM, got {value!r}")
        return value

    @field_validator("close")
    @classmethod
    def _check_close(cls, value: str) -> str:
        if value != END_OF_DAY and not TIME_PATTERN.match(value):
            raise ValueError(f"close must be HH:MM, got {value!r}")
        return value

    @model_validator(mode="after")
    def _check_window(self) -> "BusinessHours":
        if not self.closed and _minutes(self.open) >= _minutes(self.close):
            raise ValueError(
                f"{self.day.value}: open ({self.open}) must be before close ({self.close})"
            )
        return self


class BlackoutWindow(CamelModel):
    """Inclusive date range during which no bookings are taken."""

    start: date
    end: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self) -> "BlackoutWindow":
        if self.end < self.start:
            raise ValueError(f"blackout window ends ({self.end}) before it starts ({self.start})")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class BookingSettings(CamelModel):
    """Scheduling rules shared by every service of one tenant."""

    timezone: str = Field(default_factory=lambda: app_config.scheduling.default_timezone)
    buffer_minutes: int = Field(default=0, ge=0)
    min_notice_hours: float = Field(default=0, ge=0)
    max_days_ahead: int = Field(default=60, ge=0)
    default_service_type: ServiceType = ServiceType.PICKUP_DELIVERY
    service_area_zips: list[str] = Field(default_factory=list)
    blackout_windows: list[BlackoutWindow] = Field(default_factory=list)
    rush_lead_hours: float = Field(default=0, ge=0)
    max_orders_per_slot: int = Field(default=1, ge=1)
    recurring_enabled: bool = True
    business_hours: list[BusinessHours] = Field(default_factory=list)
    blocked_dates: list[date] = Field(default_factory=list)
    notification_emails: list[str] = Field(default_factory=list)
    notification_phones: list[str] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone {value!r}") from None
        return value

    @field_validator("service_area_zips")
    @classmethod
    def _strip_zips(cls, value: list[str]) -> list[str]:
        return [z.strip().upper() for z in value if z and z.strip()]

    @field_validator("business_hours")
    @classmethod
    def _unique_days(cls, value: list[BusinessHours]) -> list[BusinessHours]:
        seen: set[Weekday] = set()
        for entry in value:
            if entry.day in seen:
                raise ValueError(f"business hours listed twice for {entry.day.value}")
            seen.add(entry.day)
        return value

    def hours_for(self, weekday: str) -> Optional[BusinessHours]:
        """Return the business hours entry for a weekday code, if listed."""
        for entry in self.business_hours:
            if entry.day.value == weekday:
                return entry
        return None

"""Bookable service definitions."""

from enum import Enum
from typing import Optional

from pydantic import Field

from booking_engine.schemas.settings_schema import CamelModel, ServiceType


class PricingModel(str, Enum):
    FLAT = "flat"
    PER_BAG = "per_bag"
    PER_POUND = "per_pound"
    HOURLY = "hourly"
    QUOTE = "quote"


class AddOn(CamelModel):
    """Optional extra a customer can attach to a booking."""

    id: str
    name: str
    price: float = Field(default=0, ge=0)


class BookingService(CamelModel):
    """A service a tenant offers for booking."""

    id: str
    name: str
    service_type: ServiceType = ServiceType.PICKUP_DELIVERY
    pricing_model: PricingModel = PricingModel.FLAT
    category: Optional[str] = None
    duration_minutes: int = Field(gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    unit_label: Optional[str] = None
    lead_time_hours: float = Field(default=0, ge=0)
    capacity_per_slot: Optional[int] = Field(default=None, ge=1)
    recurring_eligible: bool = True
    commercial_eligible: bool = False
    active: bool = True
    requires_address: bool = False
    requires_zip_code: bool = False
    requires_load_metrics: bool = False
    add_ons: list[AddOn] = Field(default_factory=list)

    def effective_capacity(self, default: int) -> int:
        """Per-slot capacity: the service override, else the tenant default."""
        return self.capacity_per_slot if self.capacity_per_slot is not None else default

    def add_on_ids(self) -> set[str]:
        return {add_on.id for add_on in self.add_ons}

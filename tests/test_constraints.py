"""Tests for date eligibility, per-slot notice and the service area check."""

from datetime import date, datetime, timedelta, timezone

import pytest

from booking_engine.errors import DateOutOfRange, OutsideServiceArea, ValidationError
from booking_engine.scheduling.constraints import (
    check_date_eligible,
    check_service_area,
    is_date_eligible,
    is_slot_within_notice,
    required_notice,
)
from tests.conftest import FIXED_NOW, make_service, make_settings

FRIDAY = date(2025, 3, 14)
SATURDAY = date(2025, 3, 15)
SUNDAY = date(2025, 3, 16)
MONDAY = date(2025, 3, 17)


def _reason(day, service=None, settings=None, now=FIXED_NOW):
    with pytest.raises(DateOutOfRange) as exc_info:
        check_date_eligible(day, service or make_service(), settings or make_settings(), now)
    return exc_info.value.reason


class TestMinimumNotice:
    def test_today_inside_notice(self):
        assert _reason(FRIDAY) == "notice"

    def test_first_day_after_notice_is_eligible(self):
        # now + 12h = Saturday 00:00
        assert is_date_eligible(SATURDAY, make_service(), make_settings(), FIXED_NOW)

    def test_service_lead_time_wins_when_stricter(self):
        service = make_service(lead_time_hours=48)
        assert _reason(SATURDAY, service=service) == "notice"
        assert is_date_eligible(MONDAY, service, make_settings(), FIXED_NOW)

    def test_required_notice_is_the_maximum(self):
        assert required_notice(make_service(lead_time_hours=4), make_settings()) == timedelta(
            hours=12
        )
        assert required_notice(make_service(lead_time_hours=30), make_settings()) == timedelta(
            hours=30
        )

    def test_notice_uses_tenant_local_date(self):
        settings = make_settings(timezone="America/New_York", min_notice_hours=0)
        # 01:00 UTC Saturday is still Friday evening in New York
        now = datetime(2025, 3, 15, 1, 0, tzinfo=timezone.utc)
        assert is_date_eligible(FRIDAY, make_service(), settings, now)


class TestHorizon:
    def test_last_day_of_horizon_is_eligible(self):
        settings = make_settings(max_days_ahead=31)
        # 2025-04-14 is a Monday
        assert is_date_eligible(date(2025, 4, 14), make_service(), settings, FIXED_NOW)

    def test_day_after_horizon(self):
        settings = make_settings(max_days_ahead=31)
        assert _reason(date(2025, 4, 15), settings=settings) == "horizon"


class TestBlockedDates:
    def test_blocked_date(self):
        settings = make_settings(blocked_dates=["2025-03-17"])
        assert _reason(MONDAY, settings=settings) == "blocked"

    def test_blackout_window_is_inclusive(self):
        settings = make_settings(
            blackout_windows=[{"start": "2025-03-17", "end": "2025-03-19", "reason": "Holiday"}]
        )
        assert _reason(MONDAY, settings=settings) == "blackout"
        assert _reason(date(2025, 3, 19), settings=settings) == "blackout"
        assert is_date_eligible(date(2025, 3, 20), make_service(), settings, FIXED_NOW)

    def test_closed_weekday(self):
        assert _reason(SUNDAY) == "closed"

    def test_missing_weekday_is_closed(self):
        settings = make_settings(business_hours=[{"day": "Tue", "open": "09:00", "close": "17:00"}])
        assert _reason(MONDAY, settings=settings) == "closed"


class TestSlotNotice:
    def test_eleven_and_a_half_hours_is_rejected(self):
        # Friday 23:30 is 11.5h after the fixed clock
        assert not is_slot_within_notice(
            FRIDAY, 23 * 60 + 30, make_service(), make_settings(), FIXED_NOW
        )

    def test_exactly_twelve_hours_is_accepted(self):
        assert is_slot_within_notice(SATURDAY, 0, make_service(), make_settings(), FIXED_NOW)

    def test_lead_time_applies_per_slot(self):
        service = make_service(lead_time_hours=22)
        # now + 22h = Saturday 10:00
        assert not is_slot_within_notice(SATURDAY, 9 * 60 + 59, service, make_settings(),
                                         FIXED_NOW)
        assert is_slot_within_notice(SATURDAY, 10 * 60, service, make_settings(), FIXED_NOW)


class TestServiceArea:
    def test_empty_allowlist_allows_everything(self):
        check_service_area("99999", "pickup_delivery", make_settings())

    def test_zip_inside_area(self):
        settings = make_settings(service_area_zips=["10001", " 10002 "])
        check_service_area("10002", "pickup_delivery", settings)

    def test_zip_outside_area(self):
        settings = make_settings(service_area_zips=["10001"])
        with pytest.raises(OutsideServiceArea):
            check_service_area("94105", "pickup_delivery", settings)

    def test_outside_area_is_a_validation_error(self):
        settings = make_settings(service_area_zips=["10001"])
        with pytest.raises(ValidationError):
            check_service_area("94105", "commercial", settings)

    def test_missing_zip_for_address_service(self):
        settings = make_settings(service_area_zips=["10001"])
        with pytest.raises(ValidationError, match="ZIP code is required"):
            check_service_area(None, "pickup_delivery", settings)

    def test_dropoff_ignores_allowlist(self):
        settings = make_settings(service_area_zips=["10001"])
        check_service_area("94105", "dropoff", settings)

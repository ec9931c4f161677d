"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestPackageImports:
    def test_top_level_exports(self):
        from booking_engine import BookingEngine, BookingError, SlotUnavailable
        assert issubclass(SlotUnavailable, BookingError)
        assert callable(BookingEngine)

    def test_scheduling_exports(self):
        from booking_engine.scheduling import (
            BookingLifecycle, compute_available_slots, filter_available,
            generate_candidate_slots, intervals_overlap,
        )
        assert BookingLifecycle().current_status.value == "confirmed"
        assert callable(compute_available_slots)

    def test_store_exports(self):
        from booking_engine.store import (
            BookingStore, InMemoryBookingStore, JsonFileBookingStore, import_site,
        )
        assert issubclass(InMemoryBookingStore, BookingStore)
        assert issubclass(JsonFileBookingStore, BookingStore)


class TestSchemaImports:
    def test_import_settings_schema(self):
        from booking_engine.schemas.settings_schema import BookingSettings, ServiceType
        assert ServiceType.PICKUP_DELIVERY == "pickup_delivery"
        assert BookingSettings().max_orders_per_slot == 1

    def test_default_timezone_from_config(self):
        from booking_engine.config import app_config
        from booking_engine.schemas.settings_schema import BookingSettings
        assert BookingSettings().timezone == app_config.scheduling.default_timezone

    def test_import_booking_schema(self):
        from booking_engine.schemas.booking_schema import BookingRecord, CreateBookingRequest
        assert "serviceId" in {f.alias for f in CreateBookingRequest.model_fields.values()}
        assert BookingRecord is not None

    def test_import_service_schema(self):
        from booking_engine.schemas.service_schema import BookingService
        service = BookingService(id="x", name="X", duration_minutes=30)
        assert service.effective_capacity(4) == 4


class TestErrorTable:
    def test_status_codes(self):
        from booking_engine import errors
        assert errors.ValidationError("x").status_code == 400
        assert errors.Forbidden("x").status_code == 403
        assert errors.NotFound("x").status_code == 404
        assert errors.SlotUnavailable("x").status_code == 409
        assert errors.InvalidTransition("x").status_code == 409

    def test_only_slot_unavailable_is_retryable(self):
        from booking_engine import errors
        retryable = [
            cls.__name__
            for cls in vars(errors).values()
            if isinstance(cls, type) and issubclass(cls, errors.BookingError) and cls.retryable
        ]
        assert retryable == ["SlotUnavailable"]

    def test_outside_service_area_is_validation_error(self):
        from booking_engine.errors import OutsideServiceArea, ValidationError
        assert issubclass(OutsideServiceArea, ValidationError)


class TestCliImport:
    def test_main_importable(self):
        from main import main
        assert callable(main)

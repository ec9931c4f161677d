"""Tests for request correlation ids on log records."""

import logging

from booking_engine.logging_context import (
    RequestIdFilter,
    get_request_id,
    get_request_logger,
    set_request_id,
)


class TestRequestId:
    def test_set_explicit_id(self):
        assert set_request_id("REQ-test") == "REQ-test"
        assert get_request_id() == "REQ-test"

    def test_generated_id(self):
        request_id = set_request_id()
        assert request_id.startswith("REQ-")
        assert len(request_id) == len("REQ-") + 8

    def test_filter_attaches_id(self):
        set_request_id("REQ-filter")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(record)
        assert record.request_id == "REQ-filter"

    def test_filter_added_once(self):
        logger = get_request_logger("booking_engine.test_once")
        get_request_logger("booking_engine.test_once")
        assert sum(isinstance(f, RequestIdFilter) for f in logger.filters) == 1

"""Tests for request-scoped logging helpers."""

from __future__ import annotations

import logging

from liftapi.observability import (
    RequestIdFilter,
    get_request_id,
    new_request_id,
    request_log_fields,
    reset_request_id,
    set_request_id,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=logging.INFO, pathname="test.py", lineno=1, msg="m", args=(), exc_info=None
    )


def test_request_id_roundtrip():
    assert get_request_id() is None
    token = set_request_id("abc123")
    try:
        assert get_request_id() == "abc123"
    finally:
        reset_request_id(token)
    assert get_request_id() is None


def test_new_request_id_is_unique_hex():
    first, second = new_request_id(), new_request_id()
    assert first != second
    assert len(first) == 32
    int(first, 16)


def test_filter_stamps_active_request_id():
    record = _record()
    token = set_request_id("req-1")
    try:
        assert RequestIdFilter().filter(record) is True
    finally:
        reset_request_id(token)
    assert record.ctx_request_id == "req-1"


def test_filter_leaves_record_alone_outside_request():
    record = _record()
    assert RequestIdFilter().filter(record) is True
    assert not hasattr(record, "ctx_request_id")


def test_request_log_fields():
    fields = request_log_fields(method="GET", path="/api/v1/health", status_code=200, duration_ms=1.23456, client_ip=None)
    assert fields == {
        "ctx_method": "GET",
        "ctx_path": "/api/v1/health",
        "ctx_status_code": 200,
        "ctx_duration_ms": 1.23,
        "ctx_client_ip": "",
    }

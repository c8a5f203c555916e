"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
import sys

from core.logging_config import JSONFormatter, get_logger, new_request_id, reset_request_id, set_request_id


def _record(msg="hello %s", args=("world",), exc_info=None, **extra):
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="test.py", lineno=1, msg=msg, args=args, exc_info=exc_info
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_outputs_valid_json():
    parsed = json.loads(JSONFormatter().format(_record()))
    assert parsed["message"] == "hello world"
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test"
    assert "timestamp" in parsed


def test_json_formatter_includes_exception():
    try:
        raise ValueError("test error")
    except ValueError:
        exc_info = sys.exc_info()
    parsed = json.loads(JSONFormatter().format(_record(msg="fail", args=(), exc_info=exc_info)))
    assert parsed["exception"]["type"] == "ValueError"
    assert parsed["exception"]["message"] == "test error"


def test_json_formatter_emits_extra_fields():
    parsed = json.loads(JSONFormatter().format(_record(msg="week_copied", args=(), target_week_id=4, skipped_weekdays=[2])))
    assert parsed["target_week_id"] == 4
    assert parsed["skipped_weekdays"] == [2]


def test_json_formatter_includes_request_id():
    token = set_request_id("req-42")
    try:
        parsed = json.loads(JSONFormatter().format(_record()))
    finally:
        reset_request_id(token)
    assert parsed["request_id"] == "req-42"
    assert "request_id" not in json.loads(JSONFormatter().format(_record()))


def test_new_request_id_is_hex():
    value = new_request_id()
    assert len(value) == 32
    int(value, 16)


def test_get_logger_returns_named_logger():
    assert get_logger("core.services.structure").name == "core.services.structure"

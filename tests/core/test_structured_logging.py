"""Tests for structured JSON logging."""

from __future__ import annotations

import io
import json

import pytest

from quotecollector.core.logging import configure_logging, current_trace_id, get_logger, log_context


@pytest.fixture
def stream():
    buffer = io.StringIO()
    configure_logging(level="DEBUG", console_stream=buffer)
    yield buffer
    configure_logging()


def lines(buffer: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


def test_emits_json_payload(stream):
    get_logger("quotecollector.tests").bind(collector="eastmoney").warning("rate limited")

    payload = lines(stream)[-1]
    assert payload["level"] == "WARNING"
    assert payload["message"] == "rate limited"
    assert payload["collector"] == "eastmoney"
    assert payload["error_code"] is None
    assert payload["context"]["logger_name"] == "quotecollector.tests"
    assert payload["trace_id"]


def test_level_filters(stream):
    configure_logging(level="ERROR", console_stream=stream)

    get_logger().info("hidden")
    get_logger().error("shown")

    assert [payload["message"] for payload in lines(stream)] == ["shown"]


def test_log_context_propagates_trace_and_extra(stream):
    with log_context(trace_id="trace-1", collector="tonghuashun", page=3) as trace_id:
        get_logger().info("fetched page")
        assert current_trace_id() == "trace-1"

    payload = lines(stream)[-1]
    assert trace_id == "trace-1"
    assert payload["trace_id"] == "trace-1"
    assert payload["collector"] == "tonghuashun"
    assert payload["context"]["page"] == 3


def test_log_context_restores_previous_trace(stream):
    with log_context(trace_id="outer"):
        with log_context(trace_id="inner"):
            pass
        assert current_trace_id() == "outer"


def test_nested_scope_keeps_enclosing_trace(stream):
    with log_context(command="kline") as outer:
        with log_context(collector="eastmoney") as inner:
            get_logger().info("inside")

    payload = lines(stream)[-1]
    assert inner == outer
    assert payload["trace_id"] == outer
    assert payload["collector"] == "eastmoney"
    assert payload["context"]["command"] == "kline"


def test_sibling_scopes_get_distinct_traces():
    with log_context() as first:
        pass
    with log_context() as second:
        pass

    assert first != second

"""Tests for console, JSON-line and OTel record formatting."""

import json

from opentelemetry import trace
from opentelemetry._logs import SeverityNumber

from shared.formatters import (
    format_console,
    format_json_line,
    otel_attributes,
    to_otel_log_record,
    trace_context_binding,
)
from shared.records import EnrichedRecord
from shared.trace_context import TraceContext

TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
SPAN_ID = "00f067aa0ba902b7"


def test_console_moves_trace_id_to_suffix_and_hides_service():
    record = EnrichedRecord(
        timestamp="T1",
        level="info",
        message="Order created",
        fields={"service": "demo", "orderId": "o1"},
        trace=TraceContext("abc123"),
    )
    assert format_console(record) == 'T1 [info]: Order created [traceId=abc123] {"orderId":"o1"}'


def test_console_omits_empty_metadata_blob():
    record = EnrichedRecord("T2", "warn", "low disk", {"service": "demo"})
    assert format_console(record) == "T2 [warn]: low disk"


def test_console_includes_span_suffix():
    record = EnrichedRecord("T3", "debug", "step", {"service": "demo"}, TraceContext("abc", "def"))
    assert format_console(record) == "T3 [debug]: step [traceId=abc] [spanId=def]"


def test_console_renders_trace_flags_in_blob():
    record = EnrichedRecord("T4", "info", "m", {}, TraceContext("abc", "def", 1))
    assert format_console(record) == 'T4 [info]: m [traceId=abc] [spanId=def] {"traceFlags":1}'


def test_console_renders_exceptions_as_error_details():
    record = EnrichedRecord("T5", "error", "failed", {"error": ValueError("bad input")})
    line = format_console(record)
    blob = json.loads(line.split("failed ", 1)[1])
    assert blob["error"]["type"] == "ValueError"
    assert blob["error"]["message"] == "bad input"


def test_json_line_contains_required_keys():
    record = EnrichedRecord(
        "2024-05-01T12:00:00.000Z", "info", "hello",
        {"service": "demo", "userId": "u1"},
        TraceContext(TRACE_ID, SPAN_ID, 1),
    )
    line = format_json_line(record)

    assert "\n" not in line
    assert json.loads(line) == {
        "timestamp": "2024-05-01T12:00:00.000Z",
        "level": "info",
        "message": "hello",
        "service": "demo",
        "userId": "u1",
        "traceId": TRACE_ID,
        "spanId": SPAN_ID,
        "traceFlags": 1,
    }


def test_otel_attributes_flatten_nested_and_exceptions():
    attributes = otel_attributes({
        "service": "demo",
        "count": 3,
        "order": {"id": "o1", "total": 9.5},
        "tags": ["a", "b"],
        "items": [{"price": 1}],
        "failure": RuntimeError("boom"),
        "missing": None,
    })

    assert attributes["service"] == "demo"
    assert attributes["count"] == 3
    assert attributes["order.id"] == "o1"
    assert attributes["order.total"] == 9.5
    assert attributes["tags"] == ["a", "b"]
    assert attributes["items"] == '[{"price":1}]'
    assert attributes["failure.type"] == "RuntimeError"
    assert attributes["failure.message"] == "boom"
    assert "RuntimeError: boom" in attributes["failure.stacktrace"]
    assert "missing" not in attributes


def test_otel_record_carries_severity_body_and_attributes():
    record = EnrichedRecord("2024-05-01T12:00:00.000Z", "warn", "low disk", {"service": "demo"})
    otel_record = to_otel_log_record(record)

    assert otel_record.severity_number is SeverityNumber.WARN
    assert otel_record.severity_text == "warn"
    assert otel_record.body == "low disk"
    assert dict(otel_record.attributes) == {"service": "demo"}
    assert otel_record.timestamp == 1714564800000000000


def test_trace_binding_reproduces_span_identity():
    record = EnrichedRecord("T1", "info", "m", {}, TraceContext(TRACE_ID, SPAN_ID, 1))
    span_context = trace.get_current_span(trace_context_binding(record)).get_span_context()

    assert span_context.trace_id == int(TRACE_ID, 16)
    assert span_context.span_id == int(SPAN_ID, 16)
    assert span_context.trace_flags.sampled


def test_trace_binding_absent_or_malformed():
    assert trace_context_binding(EnrichedRecord("T1", "info", "m")) is None
    bad = EnrichedRecord("T1", "info", "m", {}, TraceContext("not-hex", "zz"))
    assert trace_context_binding(bad) is None


def test_unparseable_timestamp_falls_back_to_now():
    otel_record = to_otel_log_record(EnrichedRecord("T1", "info", "m"))
    assert otel_record.timestamp > 0


def test_otel_attributes_keep_each_exception_under_its_own_key():
    attributes = otel_attributes({"error": ValueError("first"), "cause": KeyError("second")})

    assert attributes["error.type"] == "ValueError"
    assert attributes["error.message"] == "first"
    assert attributes["cause.type"] == "KeyError"
    assert attributes["cause.message"] == "'second'"
    assert not any(key.startswith("exception.") for key in attributes)

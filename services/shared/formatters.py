"""Per-sink record formatters.

Console output is meant for humans reading a terminal, the file sink gets
one JSON object per line, and the remote sink gets an OpenTelemetry
LogRecord with the trace context bound to it.
"""

import json
import time
import traceback
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from opentelemetry import trace
from opentelemetry._logs import LogRecord
from opentelemetry.context import Context
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

from shared.records import EnrichedRecord
from shared.severity import map_severity
from shared.trace_context import SPAN_ID_KEY, TRACE_ID_KEY

# Fields never shown in the console metadata blob
CONSOLE_HIDDEN_FIELDS = frozenset({"service", TRACE_ID_KEY, SPAN_ID_KEY})


def error_details(exc: BaseException) -> Dict[str, str]:
    """Serialize an exception the way the JSON logs carry errors."""
    return {
        "type": type(exc).__name__,
        "message": str(exc),
        "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseException):
        return error_details(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def to_json(data: Mapping[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def format_console(record: EnrichedRecord) -> str:
    """Render ``<timestamp> [<level>]: <message>`` plus correlation and metadata."""
    line = f"{record.timestamp} [{record.level}]: {record.message}"
    if record.trace is not None:
        line += f" [traceId={record.trace.trace_id}]"
        if record.trace.span_id is not None:
            line += f" [spanId={record.trace.span_id}]"

    metadata = {
        key: value
        for key, value in record.as_dict().items()
        if key not in ("timestamp", "level", "message") and key not in CONSOLE_HIDDEN_FIELDS
    }
    if metadata:
        line += f" {to_json(metadata)}"
    return line


def format_json_line(record: EnrichedRecord) -> str:
    """One compact JSON object, no trailing newline."""
    return to_json(record.as_dict())


def _timestamp_ns(timestamp: str) -> int:
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return time.time_ns()
    if parsed.tzinfo is None:
        return time.time_ns()
    return int(parsed.timestamp() * 1_000_000) * 1_000


def _flatten(prefix: str, value: Any, out: Dict[str, Any]):
    if value is None:
        return
    if isinstance(value, BaseException):
        details = error_details(value)
        out[f"{prefix}.type"] = details["type"]
        out[f"{prefix}.message"] = details["message"]
        out[f"{prefix}.stacktrace"] = details["stack"]
    elif isinstance(value, Mapping):
        for key, nested in value.items():
            _flatten(f"{prefix}.{key}", nested, out)
    elif isinstance(value, (str, bool, int, float)):
        out[prefix] = value
    elif isinstance(value, (list, tuple)) and all(
        isinstance(item, (str, bool, int, float)) for item in value
    ):
        out[prefix] = list(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        out[prefix] = to_json(value)
    else:
        out[prefix] = str(value)


def otel_attributes(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten record fields into OTel-legal attribute values.

    Nested mappings become dotted keys; an exception under ``key`` becomes
    ``key.type``/``key.message``/``key.stacktrace``.
    """
    attributes: Dict[str, Any] = {}
    for key, value in fields.items():
        _flatten(str(key), value, attributes)
    return attributes


def trace_context_binding(record: EnrichedRecord) -> Optional[Context]:
    """Build an OTel Context carrying the record's span identity."""
    if record.trace is None:
        return None
    try:
        span_context = SpanContext(
            trace_id=int(record.trace.trace_id, 16),
            span_id=int(record.trace.span_id or "0", 16),
            is_remote=False,
            trace_flags=TraceFlags(record.trace.trace_flags or 0),
        )
    except ValueError:
        return None
    if not span_context.is_valid:
        return None
    return trace.set_span_in_context(NonRecordingSpan(span_context))


def to_otel_log_record(record: EnrichedRecord) -> LogRecord:
    return LogRecord(
        timestamp=_timestamp_ns(record.timestamp),
        context=trace_context_binding(record),
        severity_text=record.level,
        severity_number=map_severity(record.level),
        body=record.message,
        attributes=otel_attributes(record.fields),
    )

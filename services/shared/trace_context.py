"""Read-only access to the active trace context.

OpenTelemetry keeps the current span in a contextvars-backed Context, so
the snapshot taken here is scoped to the running thread or asyncio task.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from opentelemetry import trace
from opentelemetry.context import Context

TRACE_ID_KEY = "traceId"
SPAN_ID_KEY = "spanId"
TRACE_FLAGS_KEY = "traceFlags"

TRACE_KEYS = frozenset({TRACE_ID_KEY, SPAN_ID_KEY, TRACE_FLAGS_KEY})


@dataclass(frozen=True)
class TraceContext:
    """Point-in-time snapshot of the active span identity."""
    trace_id: str
    span_id: Optional[str] = None
    trace_flags: Optional[int] = None

    @property
    def sampled(self) -> bool:
        return bool((self.trace_flags or 0) & trace.TraceFlags.SAMPLED)

    def as_fields(self) -> Dict[str, Any]:
        """Render as log record fields, skipping absent values."""
        fields: Dict[str, Any] = {TRACE_ID_KEY: self.trace_id}
        if self.span_id is not None:
            fields[SPAN_ID_KEY] = self.span_id
        if self.trace_flags is not None:
            fields[TRACE_FLAGS_KEY] = self.trace_flags
        return fields


def current_trace_context(context: Optional[Context] = None) -> Optional[TraceContext]:
    """Return the active trace context, or None when no span is active.

    An explicit ``context`` may be passed instead of reading the ambient one.
    """
    span_context = trace.get_current_span(context).get_span_context()
    if not span_context.is_valid:
        return None
    return TraceContext(
        trace_id=format(span_context.trace_id, "032x"),
        span_id=format(span_context.span_id, "016x"),
        trace_flags=int(span_context.trace_flags),
    )

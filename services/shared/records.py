"""Log events and trace-enriched records."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from shared.severity import normalize_level
from shared.trace_context import TRACE_KEYS, TraceContext

RESERVED_KEYS = frozenset({"timestamp", "level", "message"})


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LogEvent:
    """A log call as made by the application."""
    level: str
    message: Any
    fields: Mapping[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class EnrichedRecord:
    """A log event merged with default metadata and trace correlation."""
    timestamp: str
    level: str
    message: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    trace: Optional[TraceContext] = None

    def as_dict(self) -> Dict[str, Any]:
        """Flat view used by the JSON sinks; trace fields are written last."""
        data: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": self.level,
            "message": self.message,
        }
        data.update(self.fields)
        if self.trace is not None:
            data.update(self.trace.as_fields())
        return data


def enrich(
    event: LogEvent,
    ctx: Optional[TraceContext],
    defaults: Optional[Mapping[str, Any]] = None,
) -> EnrichedRecord:
    """Merge an event with defaults and the active trace context.

    Event fields override defaults. Trace fields only ever come from ``ctx``:
    same-named caller fields are dropped, as are fields that would shadow
    the record's own timestamp/level/message. A None value removes the key
    rather than rendering as null. The event is left untouched.
    """
    merged: Dict[str, Any] = {}
    for source in (defaults or {}, event.fields or {}):
        for key, value in source.items():
            if key in TRACE_KEYS or key in RESERVED_KEYS:
                continue
            if value is None:
                merged.pop(key, None)
                continue
            merged[key] = value

    message = event.message
    if message is None:
        message = ""
    elif not isinstance(message, str):
        message = str(message)

    return EnrichedRecord(
        timestamp=event.timestamp or utc_timestamp(),
        level=normalize_level(event.level),
        message=message,
        fields=merged,
        trace=ctx,
    )

"""Application-facing logger handle and stdlib logging bridge."""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from shared.formatters import error_details
from shared.records import LogEvent, enrich
from shared.severity import DEFAULT_LEVEL, is_admitted, level_from_stdlib, normalize_level
from shared.sinks import INTERNAL_LOGGERS, Sink, diagnostics, dispatch
from shared.trace_context import TraceContext, current_trace_context


class ServiceLogger:
    """Structured logger that enriches each call and fans it out to sinks.

    Construct one at startup and pass it to whatever needs to log. Calls are
    fire-and-forget: nothing raised inside the pipeline reaches the caller.

    Example:
        logger.info("Order created", orderId=order_id)
        logger.error("Order creation failed", error=exc)
    """

    def __init__(
        self,
        sinks: Sequence[Sink],
        defaults: Optional[Mapping[str, Any]] = None,
        level: str = DEFAULT_LEVEL,
        context_provider: Callable[[], Optional[TraceContext]] = current_trace_context,
    ):
        self.sinks = tuple(sinks)
        self.defaults = dict(defaults or {})
        self.level = normalize_level(level)
        self._context_provider = context_provider
        self._close_callbacks: List[Callable[[], None]] = []
        self.closed = False

    def log(self, level: str, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        try:
            if self.closed or not is_admitted(level, self.level):
                return
            merged: Dict[str, Any] = dict(fields or {})
            merged.update(extra)
            if isinstance(message, BaseException):
                merged.setdefault("stack", error_details(message)["stack"])
            event = LogEvent(level=level, message=message, fields=merged)
            record = enrich(event, self._context_provider(), self.defaults)
            dispatch(record, self.sinks)
        except Exception:
            diagnostics.warning("Dropped log record %r", message, exc_info=True)

    def error(self, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        self.log("error", message, fields, **extra)

    def warn(self, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        self.log("warn", message, fields, **extra)

    warning = warn

    def info(self, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        self.log("info", message, fields, **extra)

    def http(self, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        self.log("http", message, fields, **extra)

    def verbose(self, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        self.log("verbose", message, fields, **extra)

    def debug(self, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        self.log("debug", message, fields, **extra)

    def silly(self, message: Any, fields: Optional[Mapping[str, Any]] = None, **extra: Any) -> None:
        self.log("silly", message, fields, **extra)

    def child(self, **defaults: Any) -> "ServiceLogger":
        """Logger sharing these sinks with extra default metadata."""
        return ServiceLogger(
            self.sinks,
            defaults={**self.defaults, **defaults},
            level=self.level,
            context_provider=self._context_provider,
        )

    def on_close(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` when the logger is closed, before the sinks are."""
        self._close_callbacks.append(callback)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for callback in self._close_callbacks:
            try:
                callback()
            except Exception:
                diagnostics.warning("Log close callback failed", exc_info=True)
        for sink in self.sinks:
            try:
                sink.close()
            except Exception:
                diagnostics.warning("Failed to close %s sink", sink.config.kind.value, exc_info=True)


# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "color_message",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


class StructuredLogHandler(logging.Handler):
    """Routes stdlib ``logging`` records through a ServiceLogger.

    Lets uvicorn, FastAPI and library loggers share the same enrichment and
    sinks as the application's own log calls.
    """

    def __init__(self, service_logger: ServiceLogger, level: int = logging.NOTSET):
        super().__init__(level)
        self.service_logger = service_logger

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith(INTERNAL_LOGGERS):
            return
        try:
            fields: Dict[str, Any] = {"logger": record.name}
            for key, value in record.__dict__.items():
                if key not in _STANDARD_LOGRECORD_ATTRS and not key.startswith("_"):
                    fields[key] = value

            if record.exc_info and record.exc_info[1] is not None:
                fields["error"] = record.exc_info[1]

            self.service_logger.log(level_from_stdlib(record.levelno), record.getMessage(), fields)
        except Exception:
            self.handleError(record)

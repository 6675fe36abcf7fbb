"""Structured logging configuration with OTel trace correlation.

Builds the service logger with three sinks: a human-readable console line,
a JSON-lines file and, when an OTel logger is supplied, the remote log
pipeline. Every record carries traceId/spanId from the active span so logs
and traces can be joined in the backend.
"""

import logging
from typing import Optional, TextIO

from opentelemetry._logs import Logger as OTelLogger

from shared.service_logger import ServiceLogger, StructuredLogHandler
from shared.severity import LEVELS, is_admitted, normalize_level, stdlib_level
from shared.sinks import INTERNAL_LOGGERS, ConsoleSink, FileSink, RemoteSink


def configure_logging(
    service_name: str,
    level: str = "info",
    log_file: Optional[str] = "app.log",
    otel_logger: Optional[OTelLogger] = None,
    stream: Optional[TextIO] = None,
    bridge_stdlib: bool = True,
) -> ServiceLogger:
    """Configure the service logger and route stdlib logging through it."""
    level = normalize_level(level)

    sinks = [ConsoleSink(min_level=level, stream=stream)]
    if log_file:
        sinks.append(FileSink(log_file, min_level=level))
    if otel_logger is not None:
        sinks.append(RemoteSink(otel_logger, min_level=level))

    service_logger = ServiceLogger(sinks, defaults={"service": service_name}, level=level)

    if bridge_stdlib:
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        handler = StructuredLogHandler(service_logger)
        root.setLevel(min(stdlib_level(name) for name in LEVELS if is_admitted(name, level)))
        root.handlers = [handler]

        def restore_root():
            # Only undo our own install; someone else may have reconfigured since
            if root.handlers == [handler]:
                root.handlers = previous_handlers
                root.setLevel(previous_level)
            elif handler in root.handlers:
                root.removeHandler(handler)

        service_logger.on_close(restore_root)
        # Exporter errors go to stderr rather than back into the remote sink
        for name in INTERNAL_LOGGERS:
            logging.getLogger(name).propagate = False

    return service_logger

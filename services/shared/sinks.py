"""Log sinks and the fan-out dispatcher.

The set of sink kinds is closed: console, file and remote. Each sink owns
its resource exclusively and serializes its own writes, so records reach a
given sink in the order ``dispatch`` was called. A failing sink is reported
on the diagnostics logger and never affects the other sinks or the caller.
"""

import abc
import enum
import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, TextIO, Union

from opentelemetry._logs import Logger as OTelLogger

from shared.formatters import format_console, format_json_line, to_otel_log_record
from shared.records import EnrichedRecord
from shared.severity import DEFAULT_LEVEL, is_admitted

DIAGNOSTICS_LOGGER = "shared.sinks.diagnostics"

# Loggers whose records must never be fed back into the sinks
INTERNAL_LOGGERS = (DIAGNOSTICS_LOGGER, "opentelemetry")

# Kept out of the root handlers so a failing sink cannot feed back into itself.
# With no handlers attached, stdlib's last-resort handler writes to stderr.
diagnostics = logging.getLogger(DIAGNOSTICS_LOGGER)
diagnostics.propagate = False
diagnostics.setLevel(logging.WARNING)


class SinkKind(enum.Enum):
    CONSOLE = "console"
    FILE = "file"
    REMOTE = "remote"


@dataclass(frozen=True)
class SinkConfig:
    """Immutable per-sink policy: severity threshold and formatter."""
    kind: SinkKind
    min_level: str = DEFAULT_LEVEL
    formatter: Optional[Callable[[EnrichedRecord], Any]] = None

    def admits(self, level: str) -> bool:
        return is_admitted(level, self.min_level)


class Sink(abc.ABC):
    """Base for the three sink kinds: formats a record and emits it."""

    kind: SinkKind

    def __init__(self, config: SinkConfig):
        if config.kind is not self.kind:
            raise ValueError(f"{type(self).__name__} requires a {self.kind.value} config")
        self.config = config
        self._lock = threading.Lock()

    def format(self, record: EnrichedRecord) -> Any:
        return self.config.formatter(record)

    @abc.abstractmethod
    def emit(self, payload: Any) -> None:
        """Write one formatted payload to the sink's destination."""

    def deliver(self, record: EnrichedRecord) -> None:
        """Format then emit under the sink's lock to keep call order."""
        with self._lock:
            self.emit(self.format(record))

    def close(self) -> None:
        pass


class ConsoleSink(Sink):
    """Human-readable lines on stdout (or any text stream)."""

    kind = SinkKind.CONSOLE

    def __init__(self, min_level: str = DEFAULT_LEVEL, stream: Optional[TextIO] = None,
                 formatter: Callable[[EnrichedRecord], str] = format_console):
        super().__init__(SinkConfig(SinkKind.CONSOLE, min_level, formatter))
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capture and stream swaps are honoured
        return self._stream if self._stream is not None else sys.stdout

    def emit(self, payload: str) -> None:
        self.stream.write(payload + "\n")
        self.stream.flush()


class FileSink(Sink):
    """Appends one JSON object per line to a local file."""

    kind = SinkKind.FILE

    def __init__(self, path: Union[str, Path], min_level: str = DEFAULT_LEVEL,
                 formatter: Callable[[EnrichedRecord], str] = format_json_line):
        super().__init__(SinkConfig(SinkKind.FILE, min_level, formatter))
        self.path = Path(path)
        self._file: Optional[TextIO] = None
        self._closed = False

    def _open(self) -> TextIO:
        if self._closed:
            raise ValueError(f"file sink for {self.path} is closed")
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "a", encoding="utf-8")
        return self._file

    def emit(self, payload: str) -> None:
        handle = self._open()
        handle.write(payload + "\n")
        handle.flush()

    def close(self) -> None:
        with self._lock:
            self._closed = True
            if self._file is not None:
                self._file.close()
                self._file = None


class RemoteSink(Sink):
    """Hands records to an OpenTelemetry logger.

    The logger's provider owns batching and export; ``emit`` only enqueues,
    so the caller never waits on the network.
    """

    kind = SinkKind.REMOTE

    def __init__(self, otel_logger: OTelLogger, min_level: str = DEFAULT_LEVEL,
                 formatter: Callable[[EnrichedRecord], Any] = to_otel_log_record):
        super().__init__(SinkConfig(SinkKind.REMOTE, min_level, formatter))
        self.otel_logger = otel_logger

    def emit(self, payload: Any) -> None:
        self.otel_logger.emit(payload)


def dispatch(record: EnrichedRecord, sinks: Sequence[Sink]) -> None:
    """Deliver ``record`` to every sink whose threshold admits it. Never raises."""
    for sink in sinks:
        try:
            if not sink.config.admits(record.level):
                continue
            sink.deliver(record)
        except Exception:
            diagnostics.warning(
                "Log sink %s failed to emit record", sink.config.kind.value, exc_info=True
            )

"""Shared test fixtures."""

import io
import logging
import sys
from pathlib import Path

import pytest

# Add services/ and the demo service to sys.path so imports work like they do in Docker
SERVICES_DIR = Path(__file__).resolve().parent.parent
for path in (SERVICES_DIR, SERVICES_DIR / "demo-api"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from opentelemetry.sdk.metrics.export import InMemoryMetricReader  # noqa: E402
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter  # noqa: E402

from shared.settings import Settings  # noqa: E402


class RecordingLogExporter:
    """Log exporter double that keeps every exported batch in memory."""

    def __init__(self):
        self.records = []
        self.is_shutdown = False

    def export(self, batch):
        self.records.extend(batch)

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True

    def shutdown(self):
        self.is_shutdown = True

    @property
    def log_records(self):
        return [item.log_record for item in self.records]


class FailingSink:
    """Sink double whose emit always raises."""

    def __init__(self, kind, min_level="silly"):
        from shared.sinks import SinkConfig

        self.config = SinkConfig(kind, min_level, lambda record: record)
        self.calls = 0

    def deliver(self, record):
        self.calls += 1
        raise OSError("disk full")

    def close(self):
        raise OSError("already gone")


@pytest.fixture(autouse=True)
def restore_root_logging():
    """configure_logging swaps the root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def console_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        service_name="demo",
        ingestion_key="test-key",
        log_file=str(tmp_path / "app.log"),
        log_level="debug",
    )


@pytest.fixture
def exporters():
    """In-memory exporters for all three signals."""
    return {
        "span_exporter": InMemorySpanExporter(),
        "metric_reader": InMemoryMetricReader(),
        "log_exporter": RecordingLogExporter(),
    }

"""OpenTelemetry instrumentation for the demo service.

Sets up tracing, metrics and logs against an OTLP backend (SigNoz Cloud by
default) and builds the structured service logger on top of the log
pipeline.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, TextIO

from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.trace import Status, StatusCode

from shared.logging_config import configure_logging
from shared.service_logger import ServiceLogger
from shared.settings import Settings

diagnostics = logging.getLogger("shared.sinks.diagnostics.telemetry")


def _create_resource(settings: Settings) -> Resource:
    """Build the OTel Resource shared by all three signals."""
    return Resource.create({
        SERVICE_NAME: settings.service_name,
        SERVICE_VERSION: settings.service_version,
        "deployment.environment": settings.environment,
    })


def _insecure(endpoint: str) -> bool:
    return endpoint.startswith("http://")


@dataclass
class Telemetry:
    """Handles for the configured signal pipelines."""
    tracer: trace.Tracer
    meter: metrics.Meter
    logger: ServiceLogger
    tracer_provider: TracerProvider
    meter_provider: MeterProvider
    logger_provider: LoggerProvider
    _shut_down: bool = field(default=False, repr=False)

    def force_flush(self) -> None:
        self.tracer_provider.force_flush()
        self.logger_provider.force_flush()

    def shutdown(self) -> None:
        """Flush and stop every pipeline; a failing one does not stop the rest."""
        if self._shut_down:
            return
        self._shut_down = True
        self.logger.close()
        for name, provider in (
            ("traces", self.tracer_provider),
            ("metrics", self.meter_provider),
            ("logs", self.logger_provider),
        ):
            try:
                provider.shutdown()
            except Exception:
                diagnostics.warning("Error terminating OpenTelemetry %s pipeline", name, exc_info=True)


def setup_telemetry(
    settings: Settings,
    app=None,
    span_exporter: Optional[SpanExporter] = None,
    metric_reader: Optional[MetricReader] = None,
    log_exporter=None,
    install_global: bool = True,
    stream: Optional[TextIO] = None,
) -> Telemetry:
    """Initialize OpenTelemetry and the service logger.

    Exporters default to OTLP/gRPC authenticated with the SigNoz access
    token; tests pass in-memory exporters instead.
    """
    resource = _create_resource(settings)
    headers = settings.access_headers

    # Setup tracing
    if span_exporter is None:
        endpoint = settings.endpoint_for("traces")
        span_exporter = OTLPSpanExporter(endpoint=endpoint, headers=headers, insecure=_insecure(endpoint))
    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))

    # Setup metrics
    if metric_reader is None:
        endpoint = settings.endpoint_for("metrics")
        metric_reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=endpoint, headers=headers, insecure=_insecure(endpoint)),
            export_interval_millis=settings.metric_export_interval_ms,
        )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])

    # Setup logs
    if log_exporter is None:
        endpoint = settings.endpoint_for("logs")
        log_exporter = OTLPLogExporter(endpoint=endpoint, headers=headers, insecure=_insecure(endpoint))
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))

    if install_global:
        trace.set_tracer_provider(tracer_provider)
        metrics.set_meter_provider(meter_provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=tracer_provider, meter_provider=meter_provider
        )

    service_logger = configure_logging(
        settings.service_name,
        level=settings.log_level,
        log_file=settings.log_file,
        otel_logger=logger_provider.get_logger(settings.service_name, settings.service_version),
        stream=stream,
    )

    return Telemetry(
        tracer=tracer_provider.get_tracer(settings.service_name, settings.service_version),
        meter=meter_provider.get_meter(settings.service_name, settings.service_version),
        logger=service_logger,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
        logger_provider=logger_provider,
    )


@contextmanager
def create_span(tracer, name: str, attributes: dict = None):
    """Create a custom span with attributes."""
    with tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        yield span


def mark_span_error(span: trace.Span, exc: BaseException, message: str = None):
    """Record an exception on the span and flag it as failed."""
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, message or str(exc)))

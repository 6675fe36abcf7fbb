"""Environment-driven settings, read once at startup."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_OTLP_ENDPOINT = "https://ingest.signoz.cloud:443"


class ConfigurationError(RuntimeError):
    """Raised when the service cannot start with the given environment."""


class Settings(BaseModel):
    """Immutable process-wide configuration."""
    model_config = ConfigDict(frozen=True)

    service_name: str = "signoz-logging-demo"
    service_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "info"
    log_file: str = "app.log"
    ingestion_key: str
    otlp_endpoint: str = DEFAULT_OTLP_ENDPOINT
    traces_endpoint: Optional[str] = None
    metrics_endpoint: Optional[str] = None
    logs_endpoint: Optional[str] = None
    metric_export_interval_ms: int = 60000
    port: int = 3000
    dashboard_url: Optional[str] = None

    @field_validator("ingestion_key")
    @classmethod
    def _require_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("ingestion key must not be blank")
        return value

    @property
    def access_headers(self) -> dict:
        return {"signoz-access-token": self.ingestion_key}

    def endpoint_for(self, signal: str) -> str:
        """Per-signal endpoint override, falling back to the shared one."""
        return getattr(self, f"{signal}_endpoint") or self.otlp_endpoint


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Raises:
        ConfigurationError: the ingestion key is missing or a value is invalid.
    """
    env = os.environ if environ is None else environ

    ingestion_key = env.get("SIGNOZ_INGESTION_KEY", "")
    if not ingestion_key.strip():
        raise ConfigurationError("SIGNOZ_INGESTION_KEY is required for SigNoz Cloud")

    values = {
        "service_name": env.get("OTEL_SERVICE_NAME"),
        "service_version": env.get("SERVICE_VERSION"),
        "environment": env.get("ENVIRONMENT"),
        "log_level": env.get("LOG_LEVEL"),
        "log_file": env.get("LOG_FILE"),
        "otlp_endpoint": env.get("OTEL_EXPORTER_OTLP_ENDPOINT"),
        "traces_endpoint": env.get("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT"),
        "metrics_endpoint": env.get("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT"),
        "logs_endpoint": env.get("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT"),
        "metric_export_interval_ms": env.get("OTEL_METRIC_EXPORT_INTERVAL"),
        "port": env.get("PORT"),
        "dashboard_url": env.get("SIGNOZ_DASHBOARD_URL"),
    }
    try:
        return Settings(
            ingestion_key=ingestion_key,
            **{key: value for key, value in values.items() if value},
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

"""
Runtime configuration for the MELT generator.

Settings come from the environment so that the CLI and tests can override
them without touching files:

- MELTGEN_ENDPOINT: ingestion base URL (falls back to OTEL_EXPORTER_OTLP_ENDPOINT)
- MELTGEN_TOKEN: bearer token sent with every request
- MELTGEN_TIMEOUT: request timeout in seconds (falls back to
  OTEL_EXPORTER_OTLP_TIMEOUT, which is expressed in milliseconds)

Values are read when Settings.from_env() is called, not at import time.
"""

import os
from dataclasses import dataclass

from opentelemetry.sdk.environment_variables import (
    OTEL_EXPORTER_OTLP_ENDPOINT,
    OTEL_EXPORTER_OTLP_TIMEOUT,
)

ENV_ENDPOINT = "MELTGEN_ENDPOINT"
ENV_TOKEN = "MELTGEN_TOKEN"
ENV_TIMEOUT = "MELTGEN_TIMEOUT"

DEFAULT_ENDPOINT = "http://localhost:4318"


class MeltError(Exception):
    """Base class for errors raised by meltgen."""


class ConfigurationError(MeltError):
    """Raised when options or settings are inconsistent; nothing has been processed yet."""


def _parse_timeout(raw: str, scale: float, name: str) -> float:
    try:
        value = float(raw) * scale
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _get_endpoint() -> str:
    """Ingestion endpoint: MELTGEN_ENDPOINT, then OTEL_EXPORTER_OTLP_ENDPOINT, then default."""
    for name in (ENV_ENDPOINT, OTEL_EXPORTER_OTLP_ENDPOINT):
        value = os.environ.get(name, "").strip()
        if value:
            return value.rstrip("/")
    return DEFAULT_ENDPOINT


def _get_timeout() -> float | None:
    """Timeout in seconds, or None to wait indefinitely."""
    raw = os.environ.get(ENV_TIMEOUT, "").strip()
    if raw:
        return _parse_timeout(raw, 1.0, ENV_TIMEOUT)
    raw = os.environ.get(OTEL_EXPORTER_OTLP_TIMEOUT, "").strip()
    if raw:
        return _parse_timeout(raw, 0.001, OTEL_EXPORTER_OTLP_TIMEOUT)
    return None


@dataclass
class Settings:
    """Connection settings for the ingestion API."""

    endpoint: str = DEFAULT_ENDPOINT
    token: str = ""
    timeout: float | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            endpoint=_get_endpoint(),
            token=os.environ.get(ENV_TOKEN, "").strip(),
            timeout=_get_timeout(),
        )

    def with_overrides(
        self,
        endpoint: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> "Settings":
        """Return a copy with the given non-None values applied (CLI flags win over env)."""
        return Settings(
            endpoint=endpoint.rstrip("/") if endpoint else self.endpoint,
            token=token if token is not None else self.token,
            timeout=timeout if timeout is not None else self.timeout,
        )

"""
Centralized configuration for buildtrace.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (BUILDTRACE_*)
3. .env file
4. Default values

Example:
    from buildtrace.config import get_config

    config = get_config()
    print(config.reporter_url)  # From BUILDTRACE_REPORTER_URL or default

    # Override at runtime
    config = get_config(reporter_url="collector:4317")
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildtrace.constants import DEFAULT_REPORTER_URL


class BuildTraceConfig(BaseSettings):
    """
    Central configuration for buildtrace.

    All settings can be overridden via environment variables
    prefixed with BUILDTRACE_.

    Example:
        export BUILDTRACE_REPORTER_URL=collector:4317
        export BUILDTRACE_LOG_SPANS=true
    """

    model_config = SettingsConfigDict(
        env_prefix="BUILDTRACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service identification
    service_namespace: str = Field(
        default="buildtrace",
        description="Service namespace for telemetry attribution",
    )

    # Collector
    reporter_url: str = Field(
        default=DEFAULT_REPORTER_URL,
        description="Collector endpoint used when a build feature sets none",
    )
    otlp_insecure: bool = Field(
        default=True,
        description="Use insecure connection to the collector",
    )
    log_spans: bool = Field(
        default=False,
        description="Also print every emitted span to the console",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for buildtrace",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Build event log format (json for log shippers, text for console)",
    )

    @field_validator("reporter_url")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Strip the protocol prefix; exporters add their own."""
        if v.startswith("http://"):
            v = v[7:]
        elif v.startswith("https://"):
            v = v[8:]
        return v or DEFAULT_REPORTER_URL


# Global singleton
_config: Optional[BuildTraceConfig] = None


def get_config(**overrides) -> BuildTraceConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = BuildTraceConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def get_reporter_url() -> str:
    """Get the configured default collector endpoint."""
    return get_config().reporter_url

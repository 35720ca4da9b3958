"""
Process-wide tracer registry.

Builds can report to different collectors, so one TracerProvider is kept per
collector endpoint. A provider is created the first time an endpoint is seen
and reused for the rest of the process lifetime.

Example:
    from buildtrace.registry import get_registry

    handle = get_registry().get_tracer("collector:4317", "MyProject_Build")
    with handle.tracer.start_as_current_span("build"):
        ...
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from buildtrace import __version__
from buildtrace.config import BuildTraceConfig, get_config
from buildtrace.constants import OTEL_FLUSH_TIMEOUT_MS
from buildtrace.exporter_factory import create_span_exporter

logger = logging.getLogger(__name__)

ExporterFactory = Callable[[str, bool], SpanExporter]

INSTRUMENTATION_NAME = "buildtrace.server"


@dataclass(frozen=True)
class TracerHandle:
    """A tracer bound to one collector endpoint."""

    endpoint: str
    provider: TracerProvider
    tracer: trace.Tracer


class TracerRegistry:
    """
    Cache of tracer handles keyed by collector endpoint.

    Lookups are lock-free. Two threads missing on the same new endpoint may
    both build a provider; only the first one published is kept and the
    other is shut down. Entries are never replaced or evicted.
    """

    def __init__(
        self,
        exporter_factory: Optional[ExporterFactory] = None,
        config: Optional[BuildTraceConfig] = None,
    ):
        """
        Args:
            exporter_factory: Builds the span exporter for an endpoint
                (defaults to an OTLP exporter)
            config: Configuration (defaults to the global config)
        """
        self._exporter_factory = exporter_factory or create_span_exporter
        self._config = config
        self._handles: Dict[str, TracerHandle] = {}

    @property
    def config(self) -> BuildTraceConfig:
        return self._config or get_config()

    def resolve_endpoint(self, endpoint: Optional[str]) -> str:
        """Return the endpoint, or the configured default when unset."""
        return endpoint or self.config.reporter_url

    def get_tracer(self, endpoint: Optional[str], name: str) -> TracerHandle:
        """
        Get or create the tracer for a collector endpoint.

        Args:
            endpoint: Collector address (host:port); None uses the default
            name: Service name used if the tracer has to be created

        Returns:
            TracerHandle bound to the endpoint
        """
        endpoint = self.resolve_endpoint(endpoint)
        handle = self._handles.get(endpoint)
        if handle is not None:
            return handle

        created = self._create(endpoint, name)
        handle = self._handles.setdefault(endpoint, created)
        if handle is not created:
            logger.debug(f"Tracer for {endpoint} created concurrently, discarding duplicate")
            created.provider.shutdown()
        return handle

    def _create(self, endpoint: str, name: str) -> TracerHandle:
        config = self.config
        resource = Resource.create({
            "service.name": name,
            "service.namespace": config.service_namespace,
            "service.version": __version__,
            "host.name": socket.gethostname(),
        })
        provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
        provider.add_span_processor(
            BatchSpanProcessor(self._exporter_factory(endpoint, config.otlp_insecure))
        )
        if config.log_spans:
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

        logger.info(f"Initialized tracer '{name}' for collector {endpoint}")
        return TracerHandle(
            endpoint=endpoint,
            provider=provider,
            tracer=provider.get_tracer(INSTRUMENTATION_NAME, __version__),
        )

    def endpoints(self) -> List[str]:
        """Endpoints with a cached tracer."""
        return list(self._handles)

    def force_flush(self, timeout_millis: int = OTEL_FLUSH_TIMEOUT_MS) -> bool:
        """Flush pending spans of every cached provider."""
        flushed = True
        for handle in list(self._handles.values()):
            flushed = handle.provider.force_flush(timeout_millis=timeout_millis) and flushed
        return flushed

    def shutdown(self) -> None:
        """
        Flush and shut down all providers.

        The registry is meant to live as long as the process; this exists for
        short-lived callers such as the CLI.
        """
        for handle in list(self._handles.values()):
            try:
                handle.provider.force_flush(timeout_millis=OTEL_FLUSH_TIMEOUT_MS)
                handle.provider.shutdown()
            except Exception as e:
                logger.warning(f"Error shutting down tracer for {handle.endpoint}: {e}")


# Global singleton
_registry: Optional[TracerRegistry] = None


def get_registry(**kwargs: Any) -> TracerRegistry:
    """
    Get the process-wide registry.

    Creates it on first call; keyword arguments are only used then.
    """
    global _registry

    if _registry is None:
        _registry = TracerRegistry(**kwargs)

    return _registry


def reset_registry() -> None:
    """Drop the process-wide registry (for testing)."""
    global _registry
    _registry = None

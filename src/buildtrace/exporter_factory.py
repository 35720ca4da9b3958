"""
OTLP span exporter factory.

Selects the exporter protocol from the standard OTel environment variables:
- OTEL_EXPORTER_OTLP_PROTOCOL (general)
- OTEL_EXPORTER_OTLP_TRACES_PROTOCOL (signal-specific override)

Default protocol is 'grpc'. The collector endpoint always comes from the
caller, since each build feature may point at its own collector.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

_VALID_PROTOCOLS = ("grpc", "http/protobuf")


def get_protocol() -> str:
    """
    Determine the OTLP traces protocol from environment variables.

    Returns:
        Protocol string: "grpc" or "http/protobuf"
    """
    for env_key in ("OTEL_EXPORTER_OTLP_TRACES_PROTOCOL", "OTEL_EXPORTER_OTLP_PROTOCOL"):
        value = os.environ.get(env_key, "").strip()
        if not value:
            continue
        if value in _VALID_PROTOCOLS:
            return value
        logger.warning(
            f"Invalid {env_key}={value!r}, expected one of {_VALID_PROTOCOLS}. "
            f"Ignoring it."
        )

    return "grpc"


def create_span_exporter(endpoint: str, insecure: bool = True):
    """
    Create an OTLP span exporter for a collector endpoint.

    Args:
        endpoint: Collector address, host:port or URL
        insecure: Use insecure (non-TLS) connection.

    Returns:
        An OTLPSpanExporter instance (gRPC or HTTP).

    Raises:
        ImportError: If the required exporter package is not installed.
    """
    protocol = get_protocol()

    if protocol == "http/protobuf":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )
        # HTTP exporter expects a full URL
        if not endpoint.startswith(("http://", "https://")):
            scheme = "http" if insecure else "https"
            endpoint = f"{scheme}://{endpoint}"
        logger.info(f"Creating HTTP/protobuf span exporter to {endpoint}")
        return OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces")
    else:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        logger.info(f"Creating gRPC span exporter to {endpoint}")
        return OTLPSpanExporter(endpoint=endpoint, insecure=insecure)

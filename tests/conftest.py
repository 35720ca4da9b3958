"""
Pytest configuration and fixtures for buildtrace tests.
"""

from __future__ import annotations

import logging
import os
from io import StringIO
from typing import Any, Dict, Generator

import pytest
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from buildtrace.config import BuildTraceConfig, reset_config
from buildtrace.models import BuildFinishedEvent
from buildtrace.registry import TracerRegistry, reset_registry


class CollectingExporter(SpanExporter):
    """Collects spans in memory for testing."""

    def __init__(self):
        self.spans = []
        self.endpoints = []

    def export(self, spans):
        self.spans.extend(spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        pass

    def force_flush(self, timeout_millis=30000):
        return True

    def by_name(self, name: str):
        return [s for s in self.spans if s.name == name]


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_globals(monkeypatch) -> Generator[None, None, None]:
    """Reset global config/registry and BUILDTRACE_* variables for each test."""
    for key in list(os.environ):
        if key.startswith("BUILDTRACE_") or key.startswith("OTEL_EXPORTER_OTLP"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    reset_registry()

    yield

    reset_config()
    reset_registry()


# ============================================================================
# OTel Fixtures
# ============================================================================


@pytest.fixture
def exporter() -> CollectingExporter:
    return CollectingExporter()


@pytest.fixture
def config() -> BuildTraceConfig:
    return BuildTraceConfig(_env_file=None)


@pytest.fixture
def registry(exporter, config) -> TracerRegistry:
    """Registry whose tracers export into the collecting exporter."""

    def factory(endpoint: str, insecure: bool) -> SpanExporter:
        exporter.endpoints.append(endpoint)
        return exporter

    return TracerRegistry(exporter_factory=factory, config=config)


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture
def captured_build_logs() -> Generator[StringIO, None, None]:
    """Redirect the structured build logger into a buffer."""
    output = StringIO()
    build_logger = logging.getLogger("buildtrace.builds")
    original = list(build_logger.handlers)
    build_logger.handlers.clear()
    handler = logging.StreamHandler(output)
    handler.setFormatter(logging.Formatter("%(message)s"))
    build_logger.addHandler(handler)

    yield output

    build_logger.handlers.clear()
    build_logger.handlers.extend(original)


# ============================================================================
# Event Fixtures
# ============================================================================


@pytest.fixture
def event_payload() -> Dict[str, Any]:
    """Build-finished payload of an eligible build, as sent by the CI server."""
    return {
        "buildId": 1234,
        "buildTypeId": "bt42",
        "projectId": "project7",
        "startTime": 1000,
        "finishTime": 9000,
        "branch": {"name": "main", "isDefault": True},
        "isPersonal": False,
        "buildType": {
            "id": "bt42",
            "externalId": "Commerce_Checkout_Build",
            "runners": [
                {"id": "RUNNER_1", "name": "Compile", "runType": "Gradle"},
                {"id": "RUNNER_2", "name": "", "runType": "Command Line"},
                {"id": "RUNNER_3", "name": "Publish", "runType": "Docker"},
            ],
        },
        "features": [
            {"type": "BuildTracing", "parameters": {"reporterUrl": "collector:4317"}},
        ],
        "statistics": {
            "buildStageDuration:sourcesUpdate": 500,
            "buildStageDuration:dependenciesResolving": 250,
            "buildStageDuration:firstStepPreparation": 250,
            "buildStageDuration:buildStepRUNNER_2": 1500,
            "buildStageDuration:buildStepRUNNER_1": 3000,
            "buildStageDuration:artifactsPublishing": 400,
            "buildStageDuration:buildFinishing": 100,
            "BuildDuration": 8000,
        },
    }


@pytest.fixture
def event(event_payload) -> BuildFinishedEvent:
    return BuildFinishedEvent.model_validate(event_payload)

"""
Tests for BuildTracingListener - end-to-end build tracing.
"""

import json
from unittest.mock import MagicMock

import pytest

from buildtrace.constants import UNCLASSIFIED_STAGE_NAME
from buildtrace.listener import BuildTracingListener
from buildtrace.logger import BuildLogger
from buildtrace.models import BuildFinishedEvent


@pytest.fixture
def listener(registry):
    return BuildTracingListener(registry=registry)


def flush(registry):
    registry.force_flush()


def log_lines(captured):
    captured.seek(0)
    return [json.loads(line) for line in captured.read().splitlines() if line]


class TestTracedBuild:

    def test_emits_root_and_children(self, listener, registry, exporter, event):
        assert listener.build_finished(event) is True
        flush(registry)

        names = [s.name for s in exporter.spans]
        assert names == [
            "Build Checkout Time",
            "Artifact Dependencies Resolving Time",
            "Build Preparation",
            "Compile",
            "Command Line",
            "Build Artifacts Publishing Time",
            "Build Finishing",
            UNCLASSIFIED_STAGE_NAME,
            "build",
        ]

    def test_root_span_attributes_and_bounds(self, listener, registry, exporter, event):
        listener.build_finished(event)
        flush(registry)

        root = exporter.by_name("build")[0]
        assert root.parent is None
        assert root.attributes["buildId"] == 1234
        assert root.attributes["buildTypeId"] == "bt42"
        assert root.attributes["projectId"] == "project7"
        assert root.start_time == 1000 * 1_000_000
        assert root.end_time == 9000 * 1_000_000

    def test_children_tile_root(self, listener, registry, exporter, event):
        listener.build_finished(event)
        flush(registry)

        root = exporter.by_name("build")[0]
        children = [s for s in exporter.spans if s.name != "build"]
        assert children[0].start_time == root.start_time
        assert children[-1].end_time == root.end_time
        for previous, current in zip(children, children[1:]):
            assert current.start_time == previous.end_time

    def test_uses_feature_endpoint_and_build_type_name(self, listener, registry, event):
        listener.build_finished(event)

        handle = registry.get_tracer("collector:4317", "ignored")
        assert registry.endpoints() == ["collector:4317"]
        assert handle.provider.resource.attributes["service.name"] == "Commerce_Checkout_Build"

    def test_endpoint_override(self, registry, event):
        listener = BuildTracingListener(registry=registry, endpoint="override:4317")

        listener.build_finished(event)

        assert registry.endpoints() == ["override:4317"]

    def test_default_endpoint_when_feature_has_none(self, listener, registry, event_payload):
        event_payload["features"] = [{"type": "BuildTracing"}]

        listener.build_finished(BuildFinishedEvent.model_validate(event_payload))

        assert registry.endpoints() == ["localhost:5778"]

    def test_logs_traced_event(self, listener, event, captured_build_logs):
        listener.build_finished(event)

        entry = log_lines(captured_build_logs)[-1]
        assert entry["event"] == "build.traced"
        assert entry["build_id"] == 1234
        assert entry["endpoint"] == "collector:4317"
        assert entry["span_count"] == 9


class TestSkippedBuild:

    def test_personal_build_not_traced(self, listener, registry, exporter, event_payload, captured_build_logs):
        event_payload["isPersonal"] = True

        assert listener.build_finished(BuildFinishedEvent.model_validate(event_payload)) is False
        flush(registry)

        assert exporter.spans == []
        assert registry.endpoints() == []
        entry = log_lines(captured_build_logs)[-1]
        assert entry["event"] == "build.skipped"
        assert entry["reason"] == "personal_build"

    def test_branch_build_not_traced(self, listener, registry, event_payload):
        event_payload["branch"] = {"name": "feature/x", "isDefault": False}

        assert listener.build_finished(BuildFinishedEvent.model_validate(event_payload)) is False
        assert registry.endpoints() == []


class TestErrorBoundary:

    def test_failure_does_not_propagate(self, registry, exporter, event, captured_build_logs):
        emitter = MagicMock()
        emitter.emit.side_effect = RuntimeError("collector exploded")
        listener = BuildTracingListener(registry=registry, emitter=emitter)

        assert listener.build_finished(event) is False

        entry = log_lines(captured_build_logs)[-1]
        assert entry["event"] == "build.trace_failed"
        assert entry["level"] == "error"
        assert entry["error_type"] == "RuntimeError"

    def test_root_span_closed_on_failure(self, registry, exporter, event):
        emitter = MagicMock()
        emitter.emit.side_effect = RuntimeError("boom")
        listener = BuildTracingListener(registry=registry, emitter=emitter)

        listener.build_finished(event)
        flush(registry)

        roots = exporter.by_name("build")
        assert len(roots) == 1
        assert roots[0].end_time == 9000 * 1_000_000

    def test_missing_build_type_opens_no_span(self, listener, registry, exporter, event, monkeypatch):
        # Eligibility already rejects builds without a build type; bypass it
        # to exercise the timeline precondition directly.
        monkeypatch.setattr("buildtrace.listener.ineligibility_reason", lambda e: None)
        event = event.model_copy(update={"build_type": None})

        assert listener.build_finished(event) is False
        flush(registry)

        assert exporter.spans == []
        assert registry.endpoints() == []

    def test_later_builds_still_traced(self, registry, exporter, event):
        emitter = MagicMock()
        emitter.emit.side_effect = [RuntimeError("boom"), 8]
        listener = BuildTracingListener(registry=registry, emitter=emitter)

        assert listener.build_finished(event) is False
        assert listener.build_finished(event) is True


class TestFinishTime:

    def test_explicit_finish_time(self, listener, registry, exporter, event):
        listener.build_finished(event, finish_time=10000)
        flush(registry)

        assert exporter.by_name("build")[0].end_time == 10000 * 1_000_000
        assert exporter.by_name(UNCLASSIFIED_STAGE_NAME)[0].end_time == 10000 * 1_000_000

    def test_text_log_format(self, registry, event, captured_build_logs):
        listener = BuildTracingListener(
            registry=registry, build_logger=BuildLogger(log_format="text")
        )

        listener.build_finished(event)

        captured_build_logs.seek(0)
        assert captured_build_logs.read().startswith("build.traced ")

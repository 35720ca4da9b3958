"""
Build-finished handling.

BuildTracingListener is what the CI server's event dispatcher calls when a
build finishes. For each eligible build it opens a root span covering the
whole build, reconstructs the timeline from the build statistics, emits one
child span per interval and closes the root span at the build's finish.

Example:
    from buildtrace.listener import BuildTracingListener
    from buildtrace.models import BuildFinishedEvent

    listener = BuildTracingListener()
    listener.build_finished(BuildFinishedEvent.model_validate(payload))

Notifications for different builds may be delivered on different threads;
each one is handled synchronously and independently. No exception escapes
build_finished, so one bad build never stops later ones from being traced.
"""

from __future__ import annotations

import logging
from typing import Optional

from opentelemetry.context import Context
from opentelemetry.trace import SpanKind

from buildtrace.config import get_config
from buildtrace.constants import BUILD_ID, BUILD_TYPE_ID, PROJECT_ID, ROOT_SPAN_NAME
from buildtrace.eligibility import get_reporter_url, ineligibility_reason
from buildtrace.emitter import SpanEmitter, to_nanos
from buildtrace.logger import BuildLogger
from buildtrace.models import BuildFinishedEvent
from buildtrace.registry import TracerRegistry, get_registry
from buildtrace.snapshot import BuildTimingSnapshot
from buildtrace.timeline import build_timeline

logger = logging.getLogger(__name__)


class BuildTracingListener:
    """Turns build-finished notifications into traces."""

    def __init__(
        self,
        registry: Optional[TracerRegistry] = None,
        emitter: Optional[SpanEmitter] = None,
        build_logger: Optional[BuildLogger] = None,
        endpoint: Optional[str] = None,
    ):
        """
        Args:
            registry: Tracer registry (defaults to the process-wide one)
            emitter: Child span emitter
            build_logger: Structured outcome logger
            endpoint: Collector endpoint overriding the one configured on
                the build feature
        """
        self._registry = registry
        self._emitter = emitter or SpanEmitter()
        self._build_logger = build_logger or BuildLogger(log_format=get_config().log_format)
        self._endpoint = endpoint

    @property
    def registry(self) -> TracerRegistry:
        return self._registry or get_registry()

    def build_finished(
        self,
        event: BuildFinishedEvent,
        finish_time: Optional[int] = None,
    ) -> bool:
        """
        Handle a build-finished notification.

        Args:
            event: The finished build
            finish_time: Override for the finish time (epoch ms)

        Returns:
            True if a trace was emitted for the build
        """
        try:
            return self._handle(event, finish_time)
        except Exception as e:
            logger.exception(f"Failed to trace build {event.build_id}: {e}")
            self._build_logger.log_failed(
                build_id=event.build_id,
                error=e,
                build_type_id=event.build_type_id,
                project_id=event.project_id,
            )
            return False

    def _handle(self, event: BuildFinishedEvent, finish_time: Optional[int]) -> bool:
        reason = ineligibility_reason(event)
        if reason is not None:
            logger.debug(f"Build {event.build_id} not traced: {reason}")
            self._build_logger.log_skipped(
                build_id=event.build_id,
                reason=reason,
                build_type_id=event.build_type_id,
                project_id=event.project_id,
            )
            return False

        # Raises before any span is opened when the build type is missing
        snapshot = BuildTimingSnapshot.from_event(event, finish_time=finish_time)

        handle = self.registry.get_tracer(
            self._endpoint or get_reporter_url(event),
            event.build_type.external_id,
        )

        root_span = handle.tracer.start_span(
            name=ROOT_SPAN_NAME,
            context=Context(),
            kind=SpanKind.INTERNAL,
            start_time=to_nanos(snapshot.start_time),
            attributes={
                BUILD_ID: event.build_id,
                BUILD_TYPE_ID: event.build_type_id,
                PROJECT_ID: event.project_id,
            },
        )
        try:
            intervals = build_timeline(snapshot)
            span_count = self._emitter.emit(handle, root_span, intervals)
        finally:
            root_span.end(end_time=to_nanos(snapshot.finish_time))

        self._build_logger.log_traced(
            build_id=event.build_id,
            build_type_id=event.build_type_id,
            project_id=event.project_id,
            endpoint=handle.endpoint,
            span_count=span_count + 1,
        )
        return True

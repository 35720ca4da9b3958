"""
Span emission for reconstructed build timelines.

Each interval becomes a child span of the build's root span, started and
ended at the interval's boundaries. Intervals are in epoch milliseconds;
the CI server boundary works in microseconds and the OTel SDK in
nanoseconds, so values are truncated to whole microseconds first.
"""

from __future__ import annotations

import logging
from decimal import ROUND_FLOOR, Decimal
from typing import Iterable

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind

from buildtrace.constants import STAGE_DURATION_MS, STAGE_KIND
from buildtrace.registry import TracerHandle
from buildtrace.timeline import Interval

logger = logging.getLogger(__name__)


def to_micros(millis) -> int:
    """Convert epoch milliseconds to whole epoch microseconds."""
    return int((Decimal(millis) * 1000).to_integral_value(rounding=ROUND_FLOOR))


def to_nanos(millis) -> int:
    """Convert epoch milliseconds to OTel nanoseconds at microsecond resolution."""
    return to_micros(millis) * 1000


class SpanEmitter:
    """Materializes timeline intervals as child spans of a root span."""

    def emit(
        self,
        handle: TracerHandle,
        root_span: Span,
        intervals: Iterable[Interval],
    ) -> int:
        """
        Emit one child span per interval, in order.

        Emission stops as soon as the root span is no longer recording
        (already ended, or not sampled).

        Args:
            handle: Tracer to create spans with
            root_span: Parent of every emitted span
            intervals: Timeline to emit

        Returns:
            Number of spans emitted
        """
        parent_context = trace.set_span_in_context(root_span)
        emitted = 0

        for interval in intervals:
            if not root_span.is_recording():
                logger.debug(
                    f"Root span no longer active, skipping remaining intervals "
                    f"from {interval.name!r}"
                )
                break

            span = handle.tracer.start_span(
                name=interval.name,
                context=parent_context,
                kind=SpanKind.INTERNAL,
                start_time=to_nanos(interval.start),
                attributes={
                    STAGE_KIND: interval.kind,
                    STAGE_DURATION_MS: float(interval.duration),
                },
            )
            span.end(end_time=to_nanos(interval.finish))
            emitted += 1

        return emitted

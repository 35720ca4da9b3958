"""
buildtrace - Reconstruct CI builds as distributed traces.

When a build finishes, the CI server only knows how long each phase
(checkout, dependency resolution, preparation, artifact publishing,
finishing) and each build step took. buildtrace lays those durations out on
the build's wall-clock timeline and emits them as OpenTelemetry spans: one
root span per build, one child span per phase or step.

Example usage:
    from buildtrace import BuildTracingListener, BuildFinishedEvent

    listener = BuildTracingListener()
    listener.build_finished(BuildFinishedEvent.model_validate(payload))
"""

__version__ = "0.1.0"
__all__ = [
    "BuildFinishedEvent",
    "BuildTimingSnapshot",
    "BuildTracingListener",
    "Interval",
    "TracerRegistry",
    "build_timeline",
    "is_eligible",
    "__version__",
]


# Lazy imports to avoid loading heavy dependencies at import time
def __getattr__(name: str):
    if name == "BuildFinishedEvent":
        from buildtrace.models import BuildFinishedEvent
        return BuildFinishedEvent
    if name == "BuildTimingSnapshot":
        from buildtrace.snapshot import BuildTimingSnapshot
        return BuildTimingSnapshot
    if name == "BuildTracingListener":
        from buildtrace.listener import BuildTracingListener
        return BuildTracingListener
    if name in ("Interval", "build_timeline"):
        from buildtrace import timeline
        return getattr(timeline, name)
    if name == "TracerRegistry":
        from buildtrace.registry import TracerRegistry
        return TracerRegistry
    if name == "is_eligible":
        from buildtrace.eligibility import is_eligible
        return is_eligible
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""Exceptions raised by buildtrace."""


class BuildTraceError(Exception):
    """Base class for build tracing errors."""


class MissingBuildTypeError(BuildTraceError):
    """A build reached timeline reconstruction without a build type."""

    def __init__(self, build_id):
        self.build_id = build_id
        super().__init__(f"Unknown build type for build {build_id}")

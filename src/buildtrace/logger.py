"""
Structured logging for build tracing outcomes.

Outputs one JSON object per line for log shipper ingestion. Every processed
build-finished notification produces exactly one entry.

Logged events:
- build.traced
- build.skipped
- build.trace_failed

Usage:
    from buildtrace.logger import BuildLogger

    logger = BuildLogger()
    logger.log_traced(build_id=42, build_type_id="bt1", project_id="p1",
                      endpoint="localhost:5778", span_count=4)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

# Configure structured logger for build events
_build_logger = logging.getLogger("buildtrace.builds")
_build_logger.setLevel(logging.INFO)

# Default handler outputs JSON to stdout (for container log pickup)
if not _build_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _build_logger.addHandler(handler)


class BuildLogger:
    """
    Structured logger for build tracing events.

    Each entry includes build_id, build_type_id and project_id for
    filtering, plus event-specific fields.
    """

    def __init__(self, service_name: str = "buildtrace", log_format: str = "json"):
        """
        Args:
            service_name: Service name for log attribution
            log_format: "json" for one JSON object per line, "text" for
                key=value console output
        """
        self.service_name = service_name
        self.log_format = log_format
        self._logger = _build_logger

    def _emit(
        self,
        event: str,
        build_id: Any,
        level: str = "info",
        build_type_id: Optional[str] = None,
        project_id: Optional[str] = None,
        **extra_fields: Any,
    ) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "build_id": build_id,
        }

        if build_type_id:
            entry["build_type_id"] = build_type_id
        if project_id:
            entry["project_id"] = project_id

        entry.update({k: v for k, v in extra_fields.items() if v is not None})

        if self.log_format == "text":
            fields = " ".join(
                f"{k}={v}" for k, v in entry.items() if k not in ("timestamp", "level", "event")
            )
            log_line = f"{event} {fields}"
        else:
            log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_traced(
        self,
        build_id: Any,
        build_type_id: str,
        project_id: str,
        endpoint: str,
        span_count: int,
    ) -> None:
        """Log a build whose trace was emitted."""
        self._emit(
            event="build.traced",
            build_id=build_id,
            build_type_id=build_type_id,
            project_id=project_id,
            endpoint=endpoint,
            span_count=span_count,
        )

    def log_skipped(
        self,
        build_id: Any,
        reason: str,
        build_type_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> None:
        """Log a build that is not traced."""
        self._emit(
            event="build.skipped",
            build_id=build_id,
            build_type_id=build_type_id,
            project_id=project_id,
            reason=reason,
        )

    def log_failed(
        self,
        build_id: Any,
        error: BaseException,
        build_type_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> None:
        """Log a build whose trace could not be produced."""
        self._emit(
            event="build.trace_failed",
            build_id=build_id,
            build_type_id=build_type_id,
            project_id=project_id,
            level="error",
            error_type=type(error).__name__,
            error_message=str(error),
        )

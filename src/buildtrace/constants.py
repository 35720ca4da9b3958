"""
Well-known keys and defaults for build tracing.

Centralizes statistic keys, feature identifiers and timeout values so the
timeline, eligibility and registry code agree on them.
"""

from __future__ import annotations

# =============================================================================
# Build feature
# =============================================================================

# Type of the build feature that switches tracing on for a configuration
BUILD_FEATURE_TYPE = "BuildTracing"

# Feature parameter holding the collector endpoint
REPORTER_URL = "reporterUrl"

# Collector endpoint used when the feature does not configure one
DEFAULT_REPORTER_URL = "localhost:5778"

# =============================================================================
# Build statistics
# =============================================================================

# Prefix of per-step duration statistics; the runner id follows it
BUILD_STEP_PREFIX = "buildStageDuration:buildStep"

# =============================================================================
# Span naming
# =============================================================================

ROOT_SPAN_NAME = "build"

# Trailing interval reconciling time not attributed to a phase or step
UNCLASSIFIED_STAGE_NAME = "Not Calculated Yet Finish Stages"

# Root span attribute names
BUILD_ID = "buildId"
BUILD_TYPE_ID = "buildTypeId"
PROJECT_ID = "projectId"

# Child span attribute names
STAGE_KIND = "build.stage.kind"
STAGE_DURATION_MS = "build.stage.duration_ms"

# =============================================================================
# OTel provider timeouts
# =============================================================================

# Timeout for force_flush operations on TracerProvider
OTEL_FLUSH_TIMEOUT_MS = 5000

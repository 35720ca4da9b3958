"""
Decides which builds get traced.

Only builds of the default branch (or of configurations without branches)
that are not personal builds, and whose configuration has the tracing
feature attached, are traced.
"""

from __future__ import annotations

from typing import Optional

from buildtrace.constants import BUILD_FEATURE_TYPE, REPORTER_URL
from buildtrace.models import BuildFinishedEvent


def ineligibility_reason(event: BuildFinishedEvent) -> Optional[str]:
    """Return why a build is not traced, or None if it is."""
    if event.branch is not None and not event.branch.is_default:
        return "non_default_branch"
    if event.is_personal:
        return "personal_build"
    if event.build_type is None:
        return "no_build_type"
    if not event.features_of_type(BUILD_FEATURE_TYPE):
        return "feature_not_attached"
    return None


def is_eligible(event: BuildFinishedEvent) -> bool:
    return ineligibility_reason(event) is None


def get_reporter_url(event: BuildFinishedEvent) -> Optional[str]:
    """Collector endpoint configured on the build's tracing feature, if any."""
    features = event.features_of_type(BUILD_FEATURE_TYPE)
    if not features:
        return None
    return features[0].parameters.get(REPORTER_URL) or None

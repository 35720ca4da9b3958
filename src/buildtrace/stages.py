"""
Fixed build phases.

The CI server records infrastructure phases as ``buildStageDuration:*``
statistics. The tables below are consumed positionally by the timeline:
leading phases run before the first build step, trailing phases after the
last one.
"""

from __future__ import annotations

from typing import NamedTuple, Tuple


class BuildStage(NamedTuple):
    key: str
    name: str


CHECKOUT = BuildStage("buildStageDuration:sourcesUpdate", "Build Checkout Time")
ARTIFACT_DEPENDENCY_RESOLVING = BuildStage(
    "buildStageDuration:dependenciesResolving", "Artifact Dependencies Resolving Time"
)
PREPARATION = BuildStage("buildStageDuration:firstStepPreparation", "Build Preparation")
ARTIFACT_PUBLISHING = BuildStage(
    "buildStageDuration:artifactsPublishing", "Build Artifacts Publishing Time"
)
BUILD_FINISHING = BuildStage("buildStageDuration:buildFinishing", "Build Finishing")

LEADING_STAGES: Tuple[BuildStage, ...] = (
    CHECKOUT,
    ARTIFACT_DEPENDENCY_RESOLVING,
    PREPARATION,
)

TRAILING_STAGES: Tuple[BuildStage, ...] = (
    ARTIFACT_PUBLISHING,
    BUILD_FINISHING,
)

"""
Build timeline reconstruction.

The CI server only records how long each phase and step took, not when it
ran. The timeline lays those durations end to end from the build's start:

    checkout -> dependency resolution -> preparation
        -> steps (in configured order)
        -> artifact publishing -> build finishing
        -> unclassified remainder up to the build's finish

Phases without a recorded duration are left out and do not move the cursor.
The final interval always ends exactly at the build's finish time; if the
recorded durations overrun it, the final interval has zero length instead of
a negative one.

Example:
    snapshot = BuildTimingSnapshot(
        start_time=1000,
        finish_time=5000,
        durations={"buildStageDuration:sourcesUpdate": 500,
                   "buildStageDuration:buildStep1": 2000},
        step_order=("1",),
    )
    for interval in build_timeline(snapshot):
        print(interval.name, interval.start, interval.finish)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from buildtrace.constants import BUILD_STEP_PREFIX, UNCLASSIFIED_STAGE_NAME
from buildtrace.snapshot import BuildTimingSnapshot
from buildtrace.stages import LEADING_STAGES, TRAILING_STAGES, BuildStage

logger = logging.getLogger(__name__)

KIND_PHASE = "phase"
KIND_STEP = "step"
KIND_UNCLASSIFIED = "unclassified"

_ZERO = Decimal(0)


@dataclass(frozen=True)
class Interval:
    """A named span of build time, in epoch milliseconds."""

    name: str
    start: Decimal
    finish: Decimal
    kind: str = KIND_PHASE

    def __post_init__(self) -> None:
        if self.finish < self.start:
            raise ValueError(
                f"Interval {self.name!r} finishes before it starts "
                f"({self.finish} < {self.start})"
            )

    @property
    def duration(self) -> Decimal:
        return self.finish - self.start


def _advance(cursor: Decimal, duration: Decimal, name: str) -> Decimal:
    if duration < _ZERO:
        logger.warning(f"Negative duration {duration} for {name!r}, treating as zero")
        return cursor
    return cursor + duration


def _stage_intervals(
    stages: Sequence[BuildStage],
    durations: Dict[str, Decimal],
    cursor: Decimal,
) -> Tuple[List[Interval], Decimal]:
    intervals: List[Interval] = []
    for stage in stages:
        duration = durations.get(stage.key)
        if duration is None:
            continue
        finish = _advance(cursor, duration, stage.name)
        intervals.append(Interval(stage.name, cursor, finish, KIND_PHASE))
        cursor = finish
    return intervals, cursor


def ordered_steps(snapshot: BuildTimingSnapshot) -> List[Tuple[str, Decimal]]:
    """
    Collect step durations in configured step order.

    Steps missing from the configured order (e.g. removed from the
    configuration after the build ran) go after all known steps, keeping
    the order in which they were found.
    """
    positions = {step_id: index for index, step_id in enumerate(snapshot.step_order)}
    unknown = len(positions)

    steps = [
        (key[len(BUILD_STEP_PREFIX):], duration)
        for key, duration in snapshot.durations.items()
        if key.startswith(BUILD_STEP_PREFIX)
    ]
    return sorted(steps, key=lambda step: positions.get(step[0], unknown))


def build_timeline(snapshot: BuildTimingSnapshot) -> List[Interval]:
    """
    Reconstruct the ordered, contiguous interval sequence of a build.

    Args:
        snapshot: Timing snapshot of a finished build

    Returns:
        Intervals tiling [start_time, finish_time]; the last one is always
        the unclassified remainder.
    """
    durations = dict(snapshot.durations)
    cursor = snapshot.start_time

    intervals, cursor = _stage_intervals(LEADING_STAGES, durations, cursor)

    for step_id, duration in ordered_steps(snapshot):
        name = snapshot.step_display_names.get(step_id) or step_id
        finish = _advance(cursor, duration, name)
        intervals.append(Interval(name, cursor, finish, KIND_STEP))
        cursor = finish

    trailing, cursor = _stage_intervals(TRAILING_STAGES, durations, cursor)
    intervals.extend(trailing)

    remainder = snapshot.finish_time - cursor
    if remainder < _ZERO:
        logger.debug(
            f"Recorded durations overrun build finish by {-remainder} ms, "
            f"clamping remainder to zero"
        )
        remainder = _ZERO
    intervals.append(
        Interval(UNCLASSIFIED_STAGE_NAME, cursor, cursor + remainder, KIND_UNCLASSIFIED)
    )
    return intervals

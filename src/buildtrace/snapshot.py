"""
Per-build timing snapshot.

A snapshot is the read-only view of one finished build that the timeline
is computed from: start and finish times, the recorded stage durations, and
the configured step order with step display names. It is built fresh for
each build-finished notification and discarded afterwards.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from buildtrace.errors import MissingBuildTypeError
from buildtrace.models import BuildFinishedEvent


def _to_decimal(value) -> Decimal:
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


@dataclass(frozen=True)
class BuildTimingSnapshot:
    """
    Immutable timing view of one finished build.

    Attributes:
        start_time: Build start, epoch milliseconds
        finish_time: Build finish, epoch milliseconds
        durations: Stage/step statistic key -> duration in milliseconds
        step_order: Step ids in configured order
        step_display_names: Step id -> human readable name
    """

    start_time: Decimal
    finish_time: Decimal
    durations: Mapping[str, Decimal] = field(default_factory=dict)
    step_order: Tuple[str, ...] = ()
    step_display_names: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_time", _to_decimal(self.start_time))
        object.__setattr__(self, "finish_time", _to_decimal(self.finish_time))
        object.__setattr__(
            self,
            "durations",
            MappingProxyType({k: _to_decimal(v) for k, v in self.durations.items()}),
        )
        object.__setattr__(self, "step_order", tuple(self.step_order))
        object.__setattr__(
            self, "step_display_names", MappingProxyType(dict(self.step_display_names))
        )

    @classmethod
    def from_event(
        cls,
        event: BuildFinishedEvent,
        finish_time: Optional[int] = None,
    ) -> "BuildTimingSnapshot":
        """
        Build a snapshot from a build-finished notification.

        Args:
            event: The notification
            finish_time: Override for the finish time (epoch ms). Defaults to
                the event's finish time, or the current time when the event
                carries none.

        Raises:
            MissingBuildTypeError: If the build has no build type
        """
        build_type = event.build_type
        if build_type is None:
            raise MissingBuildTypeError(event.build_id)

        # Duplicate runner ids keep their first position and their last name
        display_names: Dict[str, str] = {}
        for runner in build_type.runners:
            display_names[runner.id] = runner.display_name

        if finish_time is None:
            finish_time = event.finish_time
        if finish_time is None:
            finish_time = int(time.time() * 1000)

        return cls(
            start_time=Decimal(event.start_time),
            finish_time=Decimal(finish_time),
            durations=event.statistics,
            step_order=tuple(display_names),
            step_display_names=display_names,
        )

"""
Pydantic models for the build-finished notification.

The CI server reports a finished build as a single payload carrying the
build's identity, timing, branch, configuration and collected statistics.
Field aliases follow the server's camelCase JSON so payloads load as-is.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Branch(_Payload):
    """VCS branch a build ran on."""
    name: str = Field(..., description="Branch name")
    is_default: bool = Field(False, alias="isDefault", description="Whether this is the default branch")


class BuildRunner(_Payload):
    """One configured build step."""
    id: str = Field(..., description="Runner identifier, stable across builds")
    name: str = Field("", description="User-given step name, may be empty")
    run_type: str = Field("", alias="runType", description="Display name of the runner type")

    @property
    def display_name(self) -> str:
        return self.name or self.run_type


class BuildType(_Payload):
    """Build configuration the build was started from."""
    id: str = Field(..., description="Internal build type id")
    external_id: str = Field(..., alias="externalId", description="External build type id")
    runners: List[BuildRunner] = Field(default_factory=list, description="Steps in configured order")


class BuildFeature(_Payload):
    """Build feature attached to the configuration."""
    type: str = Field(..., description="Feature type")
    parameters: Dict[str, str] = Field(default_factory=dict, description="Feature parameters")


class BuildFinishedEvent(_Payload):
    """Notification that a build has finished."""
    build_id: int = Field(..., alias="buildId", description="Build id")
    build_type_id: str = Field(..., alias="buildTypeId", description="Build type id")
    project_id: str = Field(..., alias="projectId", description="Project id")
    start_time: int = Field(..., alias="startTime", description="Start, epoch milliseconds")
    finish_time: Optional[int] = Field(None, alias="finishTime", description="Finish, epoch milliseconds")
    branch: Optional[Branch] = Field(None, description="Branch, absent for non-branched builds")
    is_personal: bool = Field(False, alias="isPersonal", description="Personal (private) build")
    build_type: Optional[BuildType] = Field(None, alias="buildType", description="Build configuration")
    features: List[BuildFeature] = Field(default_factory=list, description="Attached build features")
    statistics: Dict[str, Decimal] = Field(default_factory=dict, description="Build statistic values")

    def features_of_type(self, feature_type: str) -> List[BuildFeature]:
        return [f for f in self.features if f.type == feature_type]

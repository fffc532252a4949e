"""Group planning settings and partition results."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from teamride.practices.models import Group


class GroupSettings(BaseModel):
    """Auto-assign constraints.

    Attributes:
        riders_per_coach: Maximum riders one coach supervises
        min_leader_level: Minimum coach license level to lead a group
        preferred_coaches_per_group: Target coaches per group
        preferred_group_size: Inclusive (min, max) riders per group
        max_improvement_rounds: Cap on pace-peer improvement passes
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    riders_per_coach: int = Field(default=6, ge=1, le=20)
    min_leader_level: int = Field(default=2, ge=1, le=3)
    preferred_coaches_per_group: int = Field(default=3, ge=1, le=10)
    preferred_group_size: tuple[int, int] = (4, 8)
    max_improvement_rounds: int = Field(default=50, ge=0, le=500)

    @field_validator("preferred_group_size")
    @classmethod
    def check_size_bounds(cls, value: tuple[int, int]) -> tuple[int, int]:
        low, high = value
        if not (1 <= low <= 30 and 1 <= high <= 30):
            raise ValueError(f"Group size bounds must be within 1-30, got {value}")
        return value

    @model_validator(mode="after")
    def check_size_order(self) -> GroupSettings:
        low, high = self.preferred_group_size
        if low > high:
            raise ValueError(f"Minimum group size {low} exceeds maximum {high}")
        return self

    @property
    def min_group_size(self) -> int:
        return self.preferred_group_size[0]

    @property
    def max_group_size(self) -> int:
        return self.preferred_group_size[1]


@dataclass(frozen=True)
class GroupCountCandidate:
    """A group count the caller may pick when no count satisfies every constraint.

    Attributes:
        group_count: Number of groups
        min_size: Smallest resulting group
        max_size: Largest resulting group
        violations: Constraints this count breaks
    """

    group_count: int
    min_size: int
    max_size: int
    violations: tuple[str, ...] = ()


@dataclass(frozen=True)
class InfeasibleConfiguration:
    """No group count satisfies every constraint; the caller must choose one."""

    candidates: list[GroupCountCandidate]
    rider_count: int
    coach_count: int


@dataclass
class PartitionResult:
    """Output of a partition run.

    Exactly one of ``groups`` (non-empty) or ``infeasible`` is meaningful.
    """

    groups: list[Group] = field(default_factory=list)
    infeasible: InfeasibleConfiguration | None = None

    @property
    def is_feasible(self) -> bool:
        return self.infeasible is None

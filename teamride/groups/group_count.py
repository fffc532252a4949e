"""Group count selection.

Candidate counts run from ceil(R / max_size) to floor(R / min_size). A
count is feasible when its average group size fits the preferred range,
there are enough coaches and leaders for it, and the coaches can cover
every rider. The smallest feasible count wins; when none is feasible the
candidates are handed back for the caller to choose from.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from loguru import logger

from teamride.errors import ValidationError
from teamride.groups.models import GroupCountCandidate, GroupSettings, InfeasibleConfiguration
from teamride.roster.models import Coach, Rider


def group_count_bounds(rider_count: int, settings: GroupSettings) -> tuple[int, int]:
    """Inclusive candidate range of group counts, clamped to [1, R]."""
    low = max(1, math.ceil(rider_count / settings.max_group_size))
    high = min(rider_count, rider_count // settings.min_group_size)
    return low, high


def eligible_leaders(coaches: Sequence[Coach], settings: GroupSettings) -> list[Coach]:
    return [coach for coach in coaches if coach.level >= settings.min_leader_level]


def group_count_violations(
    group_count: int,
    rider_count: int,
    coaches: Sequence[Coach],
    settings: GroupSettings,
) -> list[str]:
    """Constraints a group count breaks (empty when feasible)."""
    violations: list[str] = []
    coach_count = len(coaches)

    average = rider_count / group_count
    if not settings.min_group_size <= average <= settings.max_group_size:
        violations.append("average group size outside preferred range")

    enough_coaches = coach_count >= group_count * settings.preferred_coaches_per_group or (
        coach_count >= group_count and settings.min_leader_level == 1
    )
    if not enough_coaches:
        violations.append("not enough coaches")

    if len(eligible_leaders(coaches, settings)) < group_count:
        violations.append("not enough eligible leaders")

    if coach_count > 0 and coach_count * settings.riders_per_coach < rider_count:
        violations.append("coach capacity below rider count")
    return violations


def choose_group_count(
    riders: Sequence[Rider],
    coaches: Sequence[Coach],
    settings: GroupSettings,
) -> int | InfeasibleConfiguration:
    """Pick the smallest feasible group count.

    Args:
        riders: Attending riders
        coaches: Attending coaches
        settings: Auto-assign settings

    Returns:
        The group count, or InfeasibleConfiguration listing the candidates

    Raises:
        ValidationError: No riders, or no group count fits the size range
    """
    rider_count = len(riders)
    if rider_count == 0:
        raise ValidationError("NO_ATTENDING_RIDERS", ["Cannot build groups without attending riders"])

    low, high = group_count_bounds(rider_count, settings)
    if low > high:
        raise ValidationError(
            "NO_GROUP_COUNT_CANDIDATES",
            [f"{rider_count} riders cannot form groups of {settings.min_group_size}-{settings.max_group_size}"],
        )

    candidates: list[GroupCountCandidate] = []
    for group_count in range(low, high + 1):
        violations = group_count_violations(group_count, rider_count, coaches, settings)
        if not violations:
            logger.debug(f"[GROUPS] Selected group count {group_count} for {rider_count} riders, {len(coaches)} coaches")
            return group_count
        candidates.append(
            GroupCountCandidate(
                group_count=group_count,
                min_size=rider_count // group_count,
                max_size=math.ceil(rider_count / group_count),
                violations=tuple(violations),
            )
        )

    logger.info(
        f"[GROUPS] No feasible group count for {rider_count} riders and {len(coaches)} coaches; "
        f"{len(candidates)} candidates returned"
    )
    return InfeasibleConfiguration(candidates=candidates, rider_count=rider_count, coach_count=len(coaches))

"""Group partitioner.

Splits a practice's attending riders and coaches into ride groups:

- Stage A: choose the group count (``group_count``)
- Stage B: decide how many coaches each group gets (``coach_distribution``)
- Stage C: place riders by pace (``rider_distribution``)
- Stage D: give coaches their roles (``coach_roles``)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from loguru import logger

from teamride.errors import ValidationError
from teamride.groups.coach_distribution import best_distribution
from teamride.groups.coach_roles import assign_coach_roles
from teamride.groups.group_count import choose_group_count
from teamride.groups.helpers import create_group
from teamride.groups.layout_cache import LayoutCache
from teamride.groups.models import GroupSettings, InfeasibleConfiguration, PartitionResult
from teamride.groups.rider_distribution import distribute_riders
from teamride.practices.models import Group, Practice
from teamride.roster.models import Coach, Rider


def partition(
    riders: Sequence[Rider],
    coaches: Sequence[Coach],
    settings: GroupSettings,
    target_group_count: int | None = None,
    existing_groups: Sequence[Group] | None = None,
) -> PartitionResult:
    """Partition attendees into ride groups.

    Args:
        riders: Attending riders
        coaches: Attending coaches
        settings: Auto-assign settings
        target_group_count: Explicit group count, skips group count selection
        existing_groups: Groups being re-filled; their count and routes are kept

    Returns:
        PartitionResult with groups, or the infeasible candidates

    Raises:
        ValidationError: No riders, or an unusable group count
    """
    rider_count = len(riders)
    if rider_count == 0:
        raise ValidationError("NO_ATTENDING_RIDERS", ["Cannot build groups without attending riders"])

    if target_group_count is None and existing_groups:
        target_group_count = len(existing_groups)

    if target_group_count is not None:
        if not 1 <= target_group_count <= rider_count:
            raise ValidationError(
                "INVALID_GROUP_COUNT",
                [f"Group count {target_group_count} must be between 1 and {rider_count}"],
            )
        group_count = target_group_count
    else:
        choice = choose_group_count(riders, coaches, settings)
        if isinstance(choice, InfeasibleConfiguration):
            return PartitionResult(infeasible=choice)
        group_count = choice

    by_id = {str(rider.id): rider for rider in riders}
    rider_groups = distribute_riders(riders, group_count, settings)
    distribution = best_distribution(len(coaches), group_count, settings.preferred_coaches_per_group)
    roles = assign_coach_roles(rider_groups, coaches, distribution, by_id, settings)

    groups: list[Group] = []
    for index, rider_ids in enumerate(rider_groups):
        route_id = None
        if existing_groups and index < len(existing_groups):
            route_id = existing_groups[index].route_id
        groups.append(create_group(index, rider_ids, roles[index], by_id, route_id=route_id))

    logger.info(
        f"[GROUPS] Partitioned {rider_count} riders and {len(coaches)} coaches into {group_count} groups "
        f"(sizes={[len(g.rider_ids) for g in groups]}, coaches={list(distribution)})"
    )
    return PartitionResult(groups=groups)


def attending(practice: Practice, riders: Sequence[Rider], coaches: Sequence[Coach]) -> tuple[list[Rider], list[Coach]]:
    """Riders and coaches marked available for a practice, archived excluded."""
    rider_ids = set(practice.available_rider_ids)
    coach_ids = set(practice.available_coach_ids)
    return (
        [rider for rider in riders if str(rider.id) in rider_ids and not rider.archived],
        [coach for coach in coaches if str(coach.id) in coach_ids and not coach.archived],
    )


def auto_assign(
    practice: Practice,
    riders: Sequence[Rider],
    coaches: Sequence[Coach],
    settings: GroupSettings,
    cache: LayoutCache | None = None,
    target_group_count: int | None = None,
) -> tuple[Practice, PartitionResult]:
    """Rebuild a practice's groups from its attendance.

    The practice's cached layouts are discarded. An infeasible result leaves
    the practice unchanged.

    Returns:
        (practice with new groups, partition result)
    """
    attending_riders, attending_coaches = attending(practice, riders, coaches)
    result = partition(attending_riders, attending_coaches, settings, target_group_count=target_group_count)
    if not result.is_feasible:
        return practice, result

    if cache is not None:
        cache.clear(practice.id)
    updated = replace(practice, groups=result.groups, planning_started=True)
    return updated, result

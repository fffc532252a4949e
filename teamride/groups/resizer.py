"""Grow or shrink a practice's groups by one.

Riders keep their pace order across groups: growing pushes the slowest
riders of each over-full group to the front of the next group, shrinking
dissolves the last group and pulls the fastest riders of each over-full
group to the back of the previous one. Coaches are redistributed over the
new group count. Every layout a practice passes through is cached by group
count, so resizing back restores the earlier layout exactly.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import replace

from loguru import logger

from teamride.errors import StateConflictError
from teamride.groups.coach_distribution import best_distribution
from teamride.groups.coach_roles import assign_coach_roles
from teamride.groups.helpers import create_group, refresh_fitness_tags, renumber_groups
from teamride.groups.layout_cache import LayoutCache
from teamride.groups.models import GroupSettings
from teamride.groups.rider_distribution import target_sizes
from teamride.practices.models import Group, Practice
from teamride.roster.models import Coach, Rider


def _rider_set(groups: Sequence[Group]) -> set[str]:
    return {rider_id for group in groups for rider_id in group.rider_ids}


def _missing_references(
    groups: Sequence[Group],
    riders: Mapping[str, Rider],
    coaches: Mapping[str, Coach],
) -> list[str]:
    missing: list[str] = []
    for group in groups:
        missing.extend(f"rider {rid}" for rid in group.rider_ids if rid not in riders)
        missing.extend(f"coach {cid}" for cid in group.coaches.all_ids() if cid not in coaches)
    return missing


def _check_roster(practice: Practice, riders: Mapping[str, Rider], coaches: Mapping[str, Coach]) -> None:
    missing = _missing_references(practice.groups, riders, coaches)
    if missing:
        raise StateConflictError(
            "ROSTER_MISMATCH",
            [f"Practice {practice.id} groups reference unknown {ref}" for ref in missing],
        )


def _cached_layout(
    practice: Practice,
    group_count: int,
    riders: Mapping[str, Rider],
    coaches: Mapping[str, Coach],
    cache: LayoutCache,
) -> list[Group] | None:
    cached = cache.get(practice.id, group_count)
    if cached is None:
        return None
    if _rider_set(cached) != _rider_set(practice.groups) or _missing_references(cached, riders, coaches):
        logger.debug(f"[GROUPS] Discarding stale {group_count}-group layout for practice {practice.id}")
        cache.discard(practice.id, group_count)
        return None
    logger.debug(f"[GROUPS] Restoring cached {group_count}-group layout for practice {practice.id}")
    return cached


def _redistribute_coaches(
    groups: list[Group],
    coach_pool: Sequence[Coach],
    riders: Mapping[str, Rider],
    settings: GroupSettings,
) -> None:
    rider_groups = [group.rider_ids for group in groups]
    distribution = best_distribution(len(coach_pool), len(groups), settings.preferred_coaches_per_group)
    roles = assign_coach_roles(rider_groups, coach_pool, distribution, riders, settings)
    for group, group_roles in zip(groups, roles):
        group.coaches = group_roles


def _coach_pool(groups: Sequence[Group], coaches: Mapping[str, Coach]) -> list[Coach]:
    seen: dict[str, Coach] = {}
    for group in groups:
        for coach_id in group.coaches.all_ids():
            seen.setdefault(coach_id, coaches[coach_id])
    return list(seen.values())


def grow(
    practice: Practice,
    riders: Sequence[Rider],
    coaches: Sequence[Coach],
    settings: GroupSettings,
    cache: LayoutCache,
) -> Practice:
    """Add one group to a practice.

    Args:
        practice: Practice with at least one group
        riders: Rider roster
        coaches: Coach roster
        settings: Auto-assign settings
        cache: Layout cache

    Returns:
        Practice with N + 1 groups

    Raises:
        StateConflictError: Too few riders, or groups reference unknown people
    """
    rider_map = {str(rider.id): rider for rider in riders}
    coach_map = {str(coach.id): coach for coach in coaches}
    _check_roster(practice, rider_map, coach_map)

    current = len(practice.groups)
    total = sum(len(group.rider_ids) for group in practice.groups)
    if current == 0 or total < current + 1:
        raise StateConflictError(
            "GROUP_COUNT_LIMIT",
            [f"Cannot grow to {current + 1} groups with {total} riders"],
        )

    cache.store(practice.id, practice.groups)
    cached = _cached_layout(practice, current + 1, rider_map, coach_map, cache)
    if cached is not None:
        return replace(practice, groups=cached)

    groups = copy.deepcopy(practice.groups)
    coach_pool = _coach_pool(groups, coach_map)
    targets = target_sizes(total, current + 1)
    groups.append(create_group(current))

    for index in range(current):
        while len(groups[index].rider_ids) > targets[index]:
            rider_id = groups[index].rider_ids.pop()
            groups[index + 1].rider_ids.insert(0, rider_id)

    _redistribute_coaches(groups, coach_pool, rider_map, settings)
    renumber_groups(groups)
    refresh_fitness_tags(groups, rider_map)
    cache.store(practice.id, groups)

    logger.info(
        f"[GROUPS] Grew practice {practice.id} to {len(groups)} groups "
        f"(sizes={[len(g.rider_ids) for g in groups]})"
    )
    return replace(practice, groups=groups)


def shrink(
    practice: Practice,
    riders: Sequence[Rider],
    coaches: Sequence[Coach],
    settings: GroupSettings,
    cache: LayoutCache,
) -> Practice:
    """Remove one group from a practice.

    Raises:
        StateConflictError: Only one group left, or groups reference unknown people
    """
    rider_map = {str(rider.id): rider for rider in riders}
    coach_map = {str(coach.id): coach for coach in coaches}
    _check_roster(practice, rider_map, coach_map)

    current = len(practice.groups)
    if current <= 1:
        raise StateConflictError("GROUP_COUNT_LIMIT", [f"Cannot shrink below one group (have {current})"])

    cache.store(practice.id, practice.groups)
    cached = _cached_layout(practice, current - 1, rider_map, coach_map, cache)
    if cached is not None:
        return replace(practice, groups=cached)

    groups = copy.deepcopy(practice.groups)
    coach_pool = _coach_pool(groups, coach_map)
    dissolved = groups.pop()
    groups[-1].rider_ids.extend(dissolved.rider_ids)

    total = sum(len(group.rider_ids) for group in groups)
    targets = target_sizes(total, current - 1)
    for index in range(current - 2, 0, -1):
        while len(groups[index].rider_ids) > targets[index]:
            rider_id = groups[index].rider_ids.pop(0)
            groups[index - 1].rider_ids.append(rider_id)

    _redistribute_coaches(groups, coach_pool, rider_map, settings)
    renumber_groups(groups)
    refresh_fitness_tags(groups, rider_map)
    cache.store(practice.id, groups)

    logger.info(
        f"[GROUPS] Shrank practice {practice.id} to {len(groups)} groups "
        f"(sizes={[len(g.rider_ids) for g in groups]})"
    )
    return replace(practice, groups=groups)

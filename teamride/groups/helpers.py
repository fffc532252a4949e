"""Group construction and bookkeeping helpers."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from teamride.practices.models import CoachRoles, Group, new_group_id
from teamride.roster.models import Coach, Rider

_LABEL_RE = re.compile(r"^Group (\d+)$")


def rider_sort_key(rider: Rider) -> tuple[int, str, str]:
    """Fastest first; ties by name, then id."""
    return (-rider.pace, rider.name, str(rider.id))


def coach_sort_key(coach: Coach) -> tuple[int, int, str, str]:
    """Fastest first; ties by higher level, then name and id."""
    return (-coach.pace, -coach.level, coach.name, str(coach.id))


def group_label(index: int) -> str:
    return f"Group {index + 1}"


def fitness_tag(rider_ids: Iterable[str], riders: Mapping[str, Rider]) -> int | None:
    """Rounded average pace of a group's riders, None for an empty group."""
    paces = [riders[rider_id].pace for rider_id in rider_ids if rider_id in riders]
    if not paces:
        return None
    return int(sum(paces) / len(paces) + 0.5)


def create_group(
    index: int,
    rider_ids: Iterable[str] = (),
    coaches: CoachRoles | None = None,
    riders: Mapping[str, Rider] | None = None,
    route_id: str | None = None,
) -> Group:
    """Build a labelled group; the fitness tag is derived when riders are known."""
    ids = list(rider_ids)
    return Group(
        id=new_group_id(),
        label=group_label(index),
        rider_ids=ids,
        coaches=coaches or CoachRoles(),
        route_id=route_id,
        fitness_tag=fitness_tag(ids, riders) if riders is not None else None,
    )


def refresh_fitness_tags(groups: list[Group], riders: Mapping[str, Rider]) -> None:
    for group in groups:
        group.fitness_tag = fitness_tag(group.rider_ids, riders)


def renumber_groups(groups: list[Group], fill_gaps: bool = False) -> list[Group]:
    """Relabel groups.

    Sequential mode labels groups "Group 1".."Group N" in list order. Fill-gaps
    mode keeps existing numeric labels and gives unlabelled (or duplicate)
    groups the lowest free numbers.
    """
    if not fill_gaps:
        for index, group in enumerate(groups):
            group.label = group_label(index)
        return groups

    taken: set[int] = set()
    pending: list[Group] = []
    for group in groups:
        match = _LABEL_RE.match(group.label or "")
        number = int(match.group(1)) if match else None
        if number is None or number < 1 or number in taken:
            pending.append(group)
            continue
        taken.add(number)

    next_number = 1
    for group in pending:
        while next_number in taken:
            next_number += 1
        group.label = f"Group {next_number}"
        taken.add(next_number)
    return groups


def remove_rider_from_groups(groups: list[Group], rider_id: str) -> bool:
    """Take a rider out of every group. Returns True if anything changed."""
    changed = False
    for group in groups:
        if rider_id in group.rider_ids:
            group.rider_ids = [rid for rid in group.rider_ids if rid != rider_id]
            changed = True
    return changed


def average_pace(rider_ids: Iterable[str], riders: Mapping[str, Rider]) -> float:
    paces = [riders[rider_id].pace for rider_id in rider_ids if rider_id in riders]
    if not paces:
        return 0.0
    return sum(paces) / len(paces)


@dataclass(frozen=True)
class GroupStats:
    """Summary numbers shown next to a group."""

    rider_count: int
    coach_count: int
    average_pace: float
    distinct_paces: int


def group_stats(group: Group, riders: Mapping[str, Rider]) -> GroupStats:
    paces = {riders[rider_id].pace for rider_id in group.rider_ids if rider_id in riders}
    return GroupStats(
        rider_count=len(group.rider_ids),
        coach_count=group.coaches.count(),
        average_pace=average_pace(group.rider_ids, riders),
        distinct_paces=len(paces),
    )

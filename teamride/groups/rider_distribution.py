"""Rider placement by pace.

Riders are sorted fastest first and cut into contiguous groups, earlier
groups taking the remainder. Improvement rounds then move riders who are
the only one of their pace in a group over to the nearest group holding
riders of that pace, so pace peers ride together.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from loguru import logger

from teamride.groups.helpers import average_pace, rider_sort_key
from teamride.groups.models import GroupSettings
from teamride.roster.models import Rider


def target_sizes(rider_count: int, group_count: int) -> list[int]:
    """Even sizes with the remainder on the earliest groups."""
    base, remainder = divmod(rider_count, group_count)
    return [base + 1 if index < remainder else base for index in range(group_count)]


def split_by_pace(riders: Sequence[Rider], group_count: int) -> list[list[str]]:
    ordered = sorted(riders, key=rider_sort_key)
    groups: list[list[str]] = []
    start = 0
    for size in target_sizes(len(ordered), group_count):
        groups.append([str(rider.id) for rider in ordered[start : start + size]])
        start += size
    return groups


def _averages_non_increasing(groups: list[list[str]], riders: Mapping[str, Rider]) -> bool:
    averages = [average_pace(group, riders) for group in groups if group]
    return all(earlier >= later for earlier, later in zip(averages, averages[1:]))


def _nearest_peer_group(groups: list[list[str]], source: int, pace: int, riders: Mapping[str, Rider]) -> int | None:
    candidates = [
        index
        for index, group in enumerate(groups)
        if index != source and any(riders[rider_id].pace == pace for rider_id in group)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda index: (abs(index - source), index))


def improve_pace_grouping(
    groups: list[list[str]],
    riders: Mapping[str, Rider],
    settings: GroupSettings,
) -> int:
    """Move lone-pace riders next to their peers, in place.

    A move is kept only when both groups stay within one rider of the
    preferred size range, the source group keeps a rider, and group average
    paces stay non-increasing.

    Returns:
        Number of moves made
    """
    lower = settings.min_group_size - 1
    upper = settings.max_group_size + 1
    moves = 0

    for _ in range(settings.max_improvement_rounds):
        moved = False
        for source in range(len(groups)):
            for rider_id in list(groups[source]):
                pace = riders[rider_id].pace
                if sum(1 for rid in groups[source] if riders[rid].pace == pace) != 1:
                    continue
                target = _nearest_peer_group(groups, source, pace, riders)
                if target is None:
                    continue
                if len(groups[source]) - 1 < max(lower, 1) or len(groups[target]) + 1 > upper:
                    continue

                trial = [list(group) for group in groups]
                trial[source].remove(rider_id)
                trial[target].append(rider_id)
                trial[target].sort(key=lambda rid: rider_sort_key(riders[rid]))
                if not _averages_non_increasing(trial, riders):
                    continue

                groups[:] = trial
                moves += 1
                moved = True
        if not moved:
            break

    if moves:
        logger.debug(f"[GROUPS] Pace-peer improvement moved {moves} riders")
    return moves


def distribute_riders(riders: Sequence[Rider], group_count: int, settings: GroupSettings) -> list[list[str]]:
    """Assign riders to ``group_count`` groups, fastest group first.

    Args:
        riders: Attending riders
        group_count: Number of groups
        settings: Auto-assign settings

    Returns:
        Rider ids per group, each group ordered fastest first
    """
    by_id = {str(rider.id): rider for rider in riders}
    groups = split_by_pace(riders, group_count)
    improve_pace_grouping(groups, by_id, settings)
    return groups

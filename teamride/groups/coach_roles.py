"""Coach role assignment and role upkeep."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from loguru import logger

from teamride.groups.helpers import average_pace, coach_sort_key
from teamride.groups.models import GroupSettings
from teamride.practices.models import CoachRoles, Group
from teamride.roster.models import Coach, Rider


def group_priority(rider_groups: Sequence[Sequence[str]], riders: Mapping[str, Rider]) -> list[int]:
    """Group indexes in leader priority order.

    Larger groups first, then groups with more distinct paces, then slower
    groups (lower average pace).
    """

    def key(index: int) -> tuple[int, int, float, int]:
        group = rider_groups[index]
        distinct = len({riders[rider_id].pace for rider_id in group if rider_id in riders})
        return (-len(group), -distinct, average_pace(group, riders), index)

    return sorted(range(len(rider_groups)), key=key)


def _add_to_roles(roles: CoachRoles, coach_id: str, can_lead: bool) -> None:
    if roles.leader is None and can_lead:
        roles.leader = coach_id
    elif roles.sweep is None:
        roles.sweep = coach_id
    elif roles.roam is None:
        roles.roam = coach_id
    else:
        roles.extra_roam.append(coach_id)


def assign_coach_roles(
    rider_groups: Sequence[Sequence[str]],
    coaches: Sequence[Coach],
    distribution: Sequence[int],
    riders: Mapping[str, Rider],
    settings: GroupSettings,
) -> list[CoachRoles]:
    """Place coaches into role slots.

    One eligible leader per group in priority order (fastest leader to the
    top priority group); groups may stay leaderless when leaders run out.
    The other coaches, fastest first, fill sweep, roam and extra roam of the
    group with the largest remaining need. Once every need is met, leftovers
    join the group with the fewest coaches.

    Args:
        rider_groups: Rider ids per group
        coaches: Attending coaches
        distribution: Target coach count per group
        riders: Riders by id
        settings: Auto-assign settings

    Returns:
        Coach roles per group, in group order
    """
    group_count = len(rider_groups)
    roles = [CoachRoles() for _ in range(group_count)]
    if group_count == 0:
        return roles

    need = list(distribution) + [0] * (group_count - len(distribution))
    priority = group_priority(rider_groups, riders)
    rank = {index: position for position, index in enumerate(priority)}

    leaders = sorted((c for c in coaches if c.level >= settings.min_leader_level), key=coach_sort_key)
    used: set[str] = set()
    leader_iter = iter(leaders)
    for index in priority:
        if need[index] <= 0:
            continue
        leader = next(leader_iter, None)
        if leader is None:
            break
        roles[index].leader = str(leader.id)
        need[index] -= 1
        used.add(str(leader.id))

    remaining = sorted((c for c in coaches if str(c.id) not in used), key=coach_sort_key)
    for coach in remaining:
        if any(value > 0 for value in need):
            index = max(range(group_count), key=lambda i: (need[i], -rank[i]))
            need[index] -= 1
        else:
            index = min(range(group_count), key=lambda i: (roles[i].count(), rank[i]))
        _add_to_roles(roles[index], str(coach.id), coach.level >= settings.min_leader_level)

    leaderless = sum(1 for role in roles if role.leader is None)
    if leaderless:
        logger.info(f"[GROUPS] {leaderless} of {group_count} groups have no eligible leader")
    return roles


def _qualifies(coach_id: str | None, coaches: Mapping[str, Coach], settings: GroupSettings) -> bool:
    if not coach_id:
        return False
    coach = coaches.get(coach_id)
    return coach is not None and coach.level >= settings.min_leader_level


def optimize_coach_roles(roles: CoachRoles, coaches: Mapping[str, Coach], settings: GroupSettings) -> CoachRoles:
    """Tidy role slots after a coach left a group, in place.

    1. A missing sweep is filled by the roam coach
    2. A missing leader is filled by a qualified sweep, roam or extra roam
    3. A two-coach group ends up as leader plus sweep where possible

    Returns:
        The same CoachRoles instance
    """
    if roles.sweep is None and roles.roam is not None:
        roles.sweep, roles.roam = roles.roam, None

    if roles.leader is None:
        if _qualifies(roles.sweep, coaches, settings):
            roles.leader, roles.sweep = roles.sweep, None
            if roles.roam is not None:
                roles.sweep, roles.roam = roles.roam, None
        elif _qualifies(roles.roam, coaches, settings):
            roles.leader, roles.roam = roles.roam, None
        else:
            qualified = next((cid for cid in roles.extra_roam if _qualifies(cid, coaches, settings)), None)
            if qualified is not None:
                roles.leader = qualified
                roles.extra_roam = [cid for cid in roles.extra_roam if cid != qualified]

    if roles.count() == 2:
        if roles.leader and roles.roam and not roles.sweep:
            roles.sweep, roles.roam = roles.roam, None
        elif roles.sweep and roles.roam and not roles.leader:
            if _qualifies(roles.sweep, coaches, settings):
                roles.leader, roles.sweep, roles.roam = roles.sweep, roles.roam, None
            elif _qualifies(roles.roam, coaches, settings):
                roles.leader, roles.roam = roles.roam, None
    return roles


def remove_coach_from_groups(
    groups: list[Group],
    coach_id: str,
    coaches: Mapping[str, Coach] | None = None,
    settings: GroupSettings | None = None,
) -> bool:
    """Take a coach out of every role slot.

    Riders stay put; the group shows up as non-compliant instead. Roles are
    re-optimized when coaches and settings are given.

    Returns:
        True if the coach held any slot
    """
    changed = False
    for group in groups:
        roles = group.coaches
        held = False
        for slot in ("leader", "sweep", "roam"):
            if getattr(roles, slot) == coach_id:
                setattr(roles, slot, None)
                held = True
        if coach_id in roles.extra_roam:
            roles.extra_roam = [cid for cid in roles.extra_roam if cid != coach_id]
            held = True
        if held and coaches is not None and settings is not None:
            optimize_coach_roles(roles, coaches, settings)
        changed = changed or held
    return changed


@dataclass(frozen=True)
class CoachAssignment:
    group_id: str
    role: str


def coach_assignment_map(groups: Sequence[Group]) -> dict[str, CoachAssignment]:
    """Where each assigned coach rides.

    Extra roam coaches are numbered after the first (``extraRoam``,
    ``extraRoam2`` ...).
    """
    assignments: dict[str, CoachAssignment] = {}
    for group in groups:
        for slot in ("leader", "sweep", "roam"):
            coach_id = getattr(group.coaches, slot)
            if coach_id:
                assignments[coach_id] = CoachAssignment(group_id=group.id, role=slot)
        for position, coach_id in enumerate(group.coaches.extra_roam):
            if coach_id:
                role = "extraRoam" if position == 0 else f"extraRoam{position + 1}"
                assignments[coach_id] = CoachAssignment(group_id=group.id, role=role)
    return assignments

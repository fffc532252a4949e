"""Read-only group compliance checks."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from teamride.groups.models import GroupSettings
from teamride.practices.models import Group
from teamride.roster.models import Coach


@dataclass(frozen=True)
class GroupCompliance:
    group_id: str
    label: str
    compliant: bool
    reasons: list[str] = field(default_factory=list)


def check_group(group: Group, coaches: Mapping[str, Coach], settings: GroupSettings) -> GroupCompliance:
    """Check one group.

    A group is compliant when it has a leader of sufficient level, its coaches
    can supervise all of its riders, and it is not a lone coach with a lone
    rider.
    """
    reasons: list[str] = []
    leader = coaches.get(group.coaches.leader) if group.coaches.leader else None
    if leader is None:
        reasons.append("no ride leader")
    elif leader.level < settings.min_leader_level:
        reasons.append(f"leader level {leader.level} below required {settings.min_leader_level}")

    coach_count = group.coaches.count()
    rider_count = len(group.rider_ids)
    capacity = coach_count * settings.riders_per_coach
    if rider_count > capacity:
        reasons.append(f"{rider_count} riders exceed coach capacity {capacity}")

    if coach_count == 1 and rider_count == 1:
        reasons.append("single coach with a single rider")

    return GroupCompliance(group_id=group.id, label=group.label, compliant=not reasons, reasons=reasons)


def compliance_report(
    groups: Sequence[Group],
    coaches: Sequence[Coach],
    settings: GroupSettings,
) -> list[GroupCompliance]:
    by_id = {str(coach.id): coach for coach in coaches}
    return [check_group(group, by_id, settings) for group in groups]

"""Expected attendance for a practice.

Archived riders never attend. A rule's roster filter narrows riders on a
single dimension; riders with no value on that dimension pass through.
Anyone with a scheduled absence covering the practice date is dropped.
"""

from __future__ import annotations

from collections.abc import Iterable

from teamride.practices.models import Practice
from teamride.roster.models import Coach, PersonType, Rider, ScheduledAbsence
from teamride.roster.normalize import KNOWN_GENDER_CODES, absent_ids, normalize_gender, normalize_grade
from teamride.season.models import PracticeRule, RosterFilter, RosterFilterType, SeasonSettings
from teamride.season.rules import find_rule_for_date


def matches_roster_filter(rider: Rider, roster_filter: RosterFilter | None) -> bool:
    """Check a rider against a rule's roster filter.

    An inactive filter, or one without allowed values, lets everyone through.
    """
    if roster_filter is None or not roster_filter.is_active or not roster_filter.values:
        return True

    if roster_filter.filter_type == RosterFilterType.GRADE:
        allowed = {normalize_grade(value) for value in roster_filter.values}
        return normalize_grade(rider.grade) in allowed

    if roster_filter.filter_type == RosterFilterType.GENDER:
        code = normalize_gender(rider.gender)
        if code not in KNOWN_GENDER_CODES:
            return True
        return code in {normalize_gender(value) for value in roster_filter.values}

    if roster_filter.filter_type == RosterFilterType.RACING_GROUP:
        group = rider.racing_group.strip()
        if not group:
            return True
        return group.casefold() in {value.strip().casefold() for value in roster_filter.values}

    return True


def resolve_attendance(
    practice: Practice,
    rule: PracticeRule | None,
    riders: Iterable[Rider],
    absences: Iterable[ScheduledAbsence] = (),
) -> set[str]:
    """Compute the eligible rider ids for a practice.

    Args:
        practice: Practice being attended
        rule: Rule governing the practice date (None means no filter)
        riders: Team riders
        absences: Scheduled absences

    Returns:
        Ids of riders expected at the practice
    """
    skipped = absent_ids(absences, PersonType.RIDER, practice.date) if practice.date_key else set()
    roster_filter = rule.roster_filter if rule is not None else None
    return {
        str(rider.id)
        for rider in riders
        if not rider.archived and str(rider.id) not in skipped and matches_roster_filter(rider, roster_filter)
    }


def resolve_coach_attendance(
    practice: Practice,
    coaches: Iterable[Coach],
    absences: Iterable[ScheduledAbsence] = (),
) -> set[str]:
    """All non-archived coaches without an absence on the practice date."""
    skipped = absent_ids(absences, PersonType.COACH, practice.date) if practice.date_key else set()
    return {str(coach.id) for coach in coaches if not coach.archived and str(coach.id) not in skipped}


def expected_riders(
    practice: Practice,
    season: SeasonSettings,
    riders: Iterable[Rider],
    absences: Iterable[ScheduledAbsence] = (),
) -> set[str]:
    """Resolve attendance using whichever rule governs the practice date."""
    rule = find_rule_for_date(season.rules, practice.date)
    return resolve_attendance(practice, rule, riders, absences)

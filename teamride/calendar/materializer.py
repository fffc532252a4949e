"""Schedule materializer.

Turns the season's practice rules into concrete practice records:

1. Valid dates: every day of the effective window matched by a rule, plus
   the dates of active rescheduled practices
2. Reconciliation: records with no usable date, outside the window, or on a
   date no rule produces are pruned. Tombstones and rescheduled practices
   are never pruned. Applying a plan drops unsaved records from memory and
   turns persisted ones into tombstones
3. Creation: every valid date with no active practice, no tombstone and no
   practice rescheduled away from it gets a new record

Materializing again after applying a plan yields an empty plan.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence, Set
from dataclasses import dataclass, field, replace
from datetime import date

from loguru import logger

from teamride.attendance.resolver import resolve_attendance, resolve_coach_attendance
from teamride.practices.models import Practice, PracticeStatus, new_practice_id
from teamride.practices.state import AppState
from teamride.roster.models import Coach, Rider, ScheduledAbsence
from teamride.season.models import PracticeRule, SeasonSettings
from teamride.season.rules import find_rule_for_date
from teamride.utils.dates import date_key, format_date_key, iter_days, month_end, month_start, parse_iso_date


@dataclass(frozen=True)
class MaterializationPlan:
    """Records to create and prune so practices match the season rules.

    Attributes:
        to_create: New practice records, in date order
        to_prune: Existing records that no longer belong to the schedule
        valid_dates: Date keys the rules (and reschedules) produce
        clears_selection: The caller's selected practice is being pruned
    """

    to_create: list[Practice] = field(default_factory=list)
    to_prune: list[Practice] = field(default_factory=list)
    valid_dates: frozenset[str] = frozenset()
    clears_selection: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.to_create and not self.to_prune


def effective_window(settings: SeasonSettings, practices: Iterable[Practice]) -> tuple[date, date] | None:
    """Resolve the date range to materialize.

    An explicit season window wins. Otherwise the range covers the full
    months spanning existing practice dates and single-date rules.

    Returns:
        Inclusive (start, end), or None when there is nothing to anchor on
    """
    bounds = settings.window.bounds()
    if bounds is not None:
        return bounds

    anchors = [parse_iso_date(practice.date) for practice in practices]
    anchors.extend(parse_iso_date(rule.specific_date) for rule in settings.rules if rule.specific_date)
    known = [day for day in anchors if day is not None]
    if not known:
        return None
    return month_start(min(known)), month_end(max(known))


def compute_valid_dates(
    settings: SeasonSettings,
    practices: Iterable[Practice],
    window: tuple[date, date] | None,
) -> set[str]:
    """Date keys that should carry a practice.

    Planner exclusion does not affect validity. Active rescheduled
    practices always keep their date.
    """
    valid: set[str] = set()
    if window is not None and settings.rules:
        start, end = window
        for day in iter_days(start, end):
            if find_rule_for_date(settings.rules, day) is not None:
                valid.add(format_date_key(day))

    for practice in practices:
        if practice.is_active and practice.rescheduled_from and practice.date_key:
            valid.add(practice.date_key)
    return valid


def _prune_reason(
    practice: Practice,
    window: tuple[date, date] | None,
    valid_dates: set[str],
    has_rules: bool,
) -> str | None:
    if practice.deleted:
        return None
    if not practice.date:
        return "missing date"
    day = parse_iso_date(practice.date)
    if day is None:
        return "unparsable date"
    if practice.rescheduled_from:
        return None
    if window is not None and not window[0] <= day <= window[1]:
        return "outside season window"
    if has_rules and format_date_key(day) not in valid_dates:
        return "no matching rule"
    return None


def clean_invalid_practices(
    settings: SeasonSettings,
    practices: Sequence[Practice],
    window: tuple[date, date] | None,
    valid_dates: set[str],
    current_practice_id: str | None = None,
) -> tuple[list[Practice], list[Practice], bool]:
    """Split practices into kept and pruned records.

    Args:
        settings: Season settings
        practices: All practice records, tombstones included
        window: Effective window
        valid_dates: Output of ``compute_valid_dates``
        current_practice_id: Caller's selected practice

    Returns:
        (kept, pruned, clears_selection)
    """
    has_rules = bool(settings.rules)
    kept: list[Practice] = []
    pruned: list[Practice] = []
    for practice in practices:
        reason = _prune_reason(practice, window, valid_dates, has_rules)
        if reason is None:
            kept.append(practice)
            continue
        logger.debug(f"[MATERIALIZE] Pruning practice {practice.id} ({practice.date or 'no date'}): {reason}")
        pruned.append(practice)

    clears_selection = current_practice_id is not None and any(p.id == current_practice_id for p in pruned)
    return kept, pruned, clears_selection


def blocked_dates(practices: Iterable[Practice]) -> set[str]:
    """Date keys that must not receive a new practice.

    Covers dates with an active practice, tombstoned dates and the original
    dates of active rescheduled practices.
    """
    blocked: set[str] = set()
    for practice in practices:
        key = practice.date_key
        if key is not None:
            blocked.add(key)
        if practice.is_active and practice.rescheduled_from:
            original = date_key(practice.rescheduled_from)
            if original is not None:
                blocked.add(original)
    return blocked


def practice_from_rule(
    day_key: str,
    rule: PracticeRule,
    riders: Iterable[Rider] = (),
    coaches: Iterable[Coach] = (),
    absences: Iterable[ScheduledAbsence] = (),
) -> Practice:
    """Seed a new practice from the rule governing its date."""
    practice = Practice(
        id=new_practice_id(),
        date=day_key,
        time=rule.time,
        end_time=rule.end_time,
        meet_location=rule.meet_location,
        location_lat=rule.location_lat,
        location_lng=rule.location_lng,
        description=rule.description,
    )
    absences = list(absences)
    practice.available_rider_ids = sorted(resolve_attendance(practice, rule, riders, absences))
    practice.available_coach_ids = sorted(resolve_coach_attendance(practice, coaches, absences))
    practice.attendance_initialized = True
    return practice


def ensure_practices_from_schedule(
    settings: SeasonSettings,
    practices: Sequence[Practice],
    valid_dates: set[str],
    riders: Iterable[Rider] = (),
    coaches: Iterable[Coach] = (),
    absences: Iterable[ScheduledAbsence] = (),
) -> list[Practice]:
    """Build the practices missing from the schedule.

    ``practices`` must already be reconciled. Tombstoned dates are never
    regenerated.

    Returns:
        New practice records in date order
    """
    blocked = blocked_dates(practices)
    riders = list(riders)
    coaches = list(coaches)
    absences = list(absences)

    created: list[Practice] = []
    for key in sorted(valid_dates - blocked):
        rule = find_rule_for_date(settings.rules, key)
        if rule is None:
            continue
        created.append(practice_from_rule(key, rule, riders, coaches, absences))
    return created


def materialize(
    settings: SeasonSettings,
    practices: Sequence[Practice],
    riders: Iterable[Rider] = (),
    coaches: Iterable[Coach] = (),
    absences: Iterable[ScheduledAbsence] = (),
    current_practice_id: str | None = None,
) -> MaterializationPlan:
    """Compute the practices to create and prune for a season.

    Args:
        settings: Season window and rules
        practices: Existing practice records, tombstones included
        riders: Roster used to seed attendance on new practices
        coaches: Coaches used to seed attendance on new practices
        absences: Scheduled absences
        current_practice_id: Caller's selected practice

    Returns:
        MaterializationPlan
    """
    window = effective_window(settings, practices)
    valid_dates = compute_valid_dates(settings, practices, window)
    kept, pruned, clears_selection = clean_invalid_practices(
        settings, practices, window, valid_dates, current_practice_id
    )
    to_create = ensure_practices_from_schedule(settings, kept, valid_dates, riders, coaches, absences)

    if to_create or pruned:
        logger.info(
            f"[MATERIALIZE] Plan ready: create={len(to_create)} prune={len(pruned)} valid_dates={len(valid_dates)}"
        )
    return MaterializationPlan(
        to_create=to_create,
        to_prune=pruned,
        valid_dates=frozenset(valid_dates),
        clears_selection=clears_selection,
    )


def materialize_state(state: AppState) -> MaterializationPlan:
    return materialize(
        state.season,
        state.practices,
        riders=state.riders,
        coaches=state.coaches,
        absences=state.absences,
        current_practice_id=state.current_practice_id,
    )


def retire_practice(practice: Practice) -> Practice:
    """Tombstone for a persisted record the schedule no longer produces."""
    return replace(practice, status=PracticeStatus.DELETED, status_before_delete=practice.status)


def apply_materialization(state: AppState, plan: MaterializationPlan, failed_ids: Set[str] = frozenset()) -> AppState:
    """Return a new state with a plan's prunes and creations applied.

    Pruned records that were never saved are dropped. Persisted ones are
    replaced by their tombstone so the removal survives later window changes.

    Args:
        state: State the plan was computed from
        plan: Output of ``materialize_state``
        failed_ids: Persisted prunes whose soft delete failed; they stay
            untouched so the next run prunes them again
    """
    pruned = {practice.id for practice in plan.to_prune if practice.id not in failed_ids}
    dropped = {practice_id for practice_id in pruned if practice_id in state.unsaved_practice_ids}
    practices: list[Practice] = []
    for practice in state.practices:
        if practice.id in dropped:
            continue
        practices.append(retire_practice(practice) if practice.id in pruned else practice)
    practices.extend(plan.to_create)
    return replace(
        state,
        practices=tuple(practices),
        current_practice_id=None if plan.clears_selection else state.current_practice_id,
        unsaved_practice_ids=state.unsaved_practice_ids - dropped,
    )

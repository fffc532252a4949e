"""Season-wide updates: new settings, exception resets and series edits."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from loguru import logger

from teamride.errors import PersistenceError
from teamride.logging import log_core_error
from teamride.practices.models import Practice, PracticeChanges, PracticeStatus
from teamride.practices.state import AppState
from teamride.repository.base import Repository
from teamride.season.models import PracticeRule, SeasonSettings
from teamride.utils.dates import parse_iso_date, weekday_index


def _reset_exceptions(practice: Practice) -> Practice:
    return replace(
        practice,
        status=PracticeStatus.SCHEDULED,
        cancellation_reason="",
        rescheduled_from=None,
        status_before_delete=None,
    )


def _has_exception(practice: Practice) -> bool:
    return practice.status != PracticeStatus.SCHEDULED or practice.rescheduled_from is not None


def apply_season_updates(
    state: AppState,
    settings: SeasonSettings,
    today: date,
    whole_season: bool = False,
) -> tuple[AppState, PracticeChanges]:
    """Adopt new season settings and reset practice exceptions.

    For the whole season, rescheduled practices are dropped, every practice
    goes when no rule remains, practices outside a set window are trimmed and
    the selection is cleared. Cancelled, rescheduled and deleted practices on
    or after the cut-off date (``today``, or every date for the whole season)
    then go back to scheduled. A tombstone whose date already holds an
    active practice is purged instead of revived.

    Args:
        state: Current application state
        settings: New season settings
        today: Cut-off date when not updating the whole season
        whole_season: Apply to every practice

    Returns:
        (new state, changes to persist)
    """
    changes = PracticeChanges()
    practices = list(state.practices)
    current_practice_id = state.current_practice_id

    if whole_season:
        kept: list[Practice] = []
        bounds = settings.window.bounds()
        for practice in practices:
            if practice.rescheduled_from or not settings.rules:
                changes.purged.append(practice.id)
                continue
            if bounds is not None:
                day = parse_iso_date(practice.date)
                if day is None or not bounds[0] <= day <= bounds[1]:
                    changes.purged.append(practice.id)
                    continue
            kept.append(practice)
        practices = kept
        current_practice_id = None

    active_dates = {p.date_key for p in practices if p.is_active and p.date_key}
    result: list[Practice] = []
    for practice in practices:
        day = parse_iso_date(practice.date)
        in_range = day is not None and (whole_season or day >= today)
        if not in_range or not _has_exception(practice):
            result.append(practice)
            continue
        if practice.deleted and practice.date_key in active_dates:
            changes.purged.append(practice.id)
            continue
        reset = _reset_exceptions(practice)
        active_dates.add(reset.date_key)
        changes.updated.append(reset)
        result.append(reset)

    logger.info(
        f"[SEASON] Applied season updates: whole_season={whole_season} "
        f"reset={len(changes.updated)} removed={len(changes.purged)} rules={len(settings.rules)}"
    )
    new_state = replace(
        state,
        season=settings,
        practices=tuple(result),
        current_practice_id=current_practice_id,
        unsaved_practice_ids=state.unsaved_practice_ids - set(changes.purged),
    )
    return new_state, changes


def apply_rule_to_series(state: AppState, rule: PracticeRule, today: date) -> tuple[AppState, PracticeChanges]:
    """Push a rule's time and location to the practices of its series.

    Recurring rules update every practice on their weekday from ``today``
    on; single-date rules update the practice on their date. Cancelled,
    rescheduled and deleted practices keep their values.

    Returns:
        (new state, changes to persist)
    """
    changes = PracticeChanges()
    result: list[Practice] = []
    for practice in state.practices:
        day = parse_iso_date(practice.date)
        if day is None or practice.deleted or practice.cancelled or practice.rescheduled_from:
            result.append(practice)
            continue

        if rule.is_single:
            in_series = practice.date_key == rule.specific_date
        else:
            in_series = weekday_index(day) == rule.day_of_week and day >= today
        if not in_series:
            result.append(practice)
            continue

        updated = replace(
            practice,
            time=rule.time,
            end_time=rule.end_time,
            description=rule.description,
            meet_location=rule.meet_location,
            location_lat=rule.location_lat,
            location_lng=rule.location_lng,
        )
        changes.updated.append(updated)
        result.append(updated)

    logger.debug(f"[SEASON] Rule {rule.id} applied to {len(changes.updated)} practices")
    return replace(state, practices=tuple(result)), changes


async def save_season_updates(
    repository: Repository,
    state: AppState,
    settings: SeasonSettings,
    today: date,
    whole_season: bool = False,
) -> AppState:
    """Apply season updates and persist the settings and practice changes.

    Raises:
        PersistenceError: A write failed; the returned state is not produced
    """
    new_state, changes = apply_season_updates(state, settings, today, whole_season)
    try:
        await repository.save_season_settings(settings)
        if not changes.is_empty:
            await repository.apply_changes(changes)
    except PersistenceError as e:
        log_core_error(e, {"operation": "save_season_updates", "whole_season": whole_season})
        raise
    return new_state

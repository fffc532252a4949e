"""Next-practice lookup used by the planner."""

from __future__ import annotations

from datetime import date

from teamride.practices.models import Practice
from teamride.practices.state import AppState
from teamride.season.rules import is_date_excluded_from_planner
from teamride.utils.dates import parse_iso_date


def next_upcoming_practice(state: AppState, today: date) -> Practice | None:
    """Earliest active, non-cancelled practice on or after ``today``.

    Practices whose date is excluded from the planner are skipped.

    Args:
        state: Current application state
        today: Local calendar day to search from

    Returns:
        The next practice to plan, or None
    """
    upcoming: list[tuple[date, Practice]] = []
    for practice in state.practices:
        if practice.deleted or practice.cancelled:
            continue
        day = parse_iso_date(practice.date)
        if day is None or day < today:
            continue
        if is_date_excluded_from_planner(state.season, day):
            continue
        upcoming.append((day, practice))

    if not upcoming:
        return None
    upcoming.sort(key=lambda item: item[0])
    return upcoming[0][1]

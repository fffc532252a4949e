"""Tests for next-practice lookup."""

from datetime import date

from helpers import make_practice, tombstone

from teamride.calendar.upcoming import next_upcoming_practice
from teamride.practices.models import PracticeStatus
from teamride.practices.state import AppState
from teamride.season.models import PracticeRule, SeasonSettings


def _state(*practices, rules=()):
    return AppState(season=SeasonSettings(rules=list(rules)), practices=tuple(practices))


def test_returns_earliest_practice_on_or_after_today():
    state = _state(
        make_practice("late", "2024-09-23"),
        make_practice("past", "2024-09-02"),
        make_practice("today", "2024-09-09"),
    )
    assert next_upcoming_practice(state, date(2024, 9, 9)).id == "today"


def test_skips_cancelled_and_deleted():
    state = _state(
        make_practice("cancelled", "2024-09-09", status=PracticeStatus.CANCELLED, cancellation_reason="Rain"),
        tombstone("gone", "2024-09-10"),
        make_practice("next", "2024-09-16"),
    )
    assert next_upcoming_practice(state, date(2024, 9, 1)).id == "next"


def test_skips_planner_excluded_dates():
    rules = [
        PracticeRule(day_of_week=1, time="15:30", exclude_from_planner=True),
        PracticeRule(day_of_week=3, time="15:30"),
    ]
    state = _state(make_practice("mon", "2024-09-09"), make_practice("wed", "2024-09-11"), rules=rules)
    assert next_upcoming_practice(state, date(2024, 9, 9)).id == "wed"


def test_none_when_nothing_upcoming():
    state = _state(make_practice("past", "2024-09-02"))
    assert next_upcoming_practice(state, date(2024, 9, 3)) is None

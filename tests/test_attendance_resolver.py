"""Tests for expected-attendance resolution."""

from teamride.attendance.resolver import (
    expected_riders,
    matches_roster_filter,
    resolve_attendance,
    resolve_coach_attendance,
)
from teamride.practices.models import Practice
from teamride.roster.models import Coach, PersonType, Rider, ScheduledAbsence
from teamride.roster.normalize import normalize_gender, normalize_grade
from teamride.season.models import PracticeRule, RosterFilter, SeasonSettings

PRACTICE = Practice(id="p1", date="2024-09-09")

RIDERS = [
    Rider(id="a", name="Ana", grade="9", gender="female", racing_group="JV"),
    Rider(id="b", name="Ben", grade="sophomore", gender="M", racing_group="Varsity"),
    Rider(id="c", name="Cam", grade="", gender="", racing_group=""),
    Rider(id="d", name="Dee", grade="12th", gender="nonbinary", racing_group="varsity"),
    Rider(id="e", name="Eli", grade="10th", gender="m", archived=True),
]


def _rule(filter_type: str, values: list[str]) -> PracticeRule:
    return PracticeRule(day_of_week=1, time="15:30", roster_filter=RosterFilter(filter_type=filter_type, values=values))


class TestNormalization:
    def test_grade_aliases(self):
        assert normalize_grade("6") == "6th"
        assert normalize_grade("6th grade") == "6th"
        assert normalize_grade("Senior") == "12th"
        assert normalize_grade("") == "9th"
        assert normalize_grade("college") == "college"

    def test_gender_codes(self):
        assert normalize_gender("Female") == "F"
        assert normalize_gender("boys") == "M"
        assert normalize_gender("non-binary") == "NB"
        assert normalize_gender("x") == "X"
        assert normalize_gender(None) == ""


class TestResolveAttendance:
    def test_no_filter_returns_all_active_riders(self):
        rule = PracticeRule(day_of_week=1, time="15:30")
        assert resolve_attendance(PRACTICE, rule, RIDERS) == {"a", "b", "c", "d"}

    def test_no_rule_means_no_filter(self):
        assert resolve_attendance(PRACTICE, None, RIDERS) == {"a", "b", "c", "d"}

    def test_grade_filter_uses_normalized_grades(self):
        # Empty grade defaults to 9th
        assert resolve_attendance(PRACTICE, _rule("grade", ["9th"]), RIDERS) == {"a", "c"}

    def test_gender_filter_passes_unknown_gender(self):
        assert resolve_attendance(PRACTICE, _rule("gender", ["F"]), RIDERS) == {"a", "c"}

    def test_racing_group_filter_passes_riders_without_group(self):
        assert resolve_attendance(PRACTICE, _rule("racingGroup", ["Varsity"]), RIDERS) == {"b", "c", "d"}

    def test_empty_allowed_values_does_not_narrow(self):
        assert matches_roster_filter(RIDERS[0], RosterFilter(filter_type="grade", values=[]))

    def test_scheduled_absence_excludes_rider(self):
        absences = [
            ScheduledAbsence(PersonType.RIDER, "a", "2024-09-01", "2024-09-09"),
            ScheduledAbsence(PersonType.RIDER, "b", "2024-09-10", "2024-09-20"),
            ScheduledAbsence(PersonType.COACH, "c", "2024-09-01", "2024-09-30"),
        ]
        assert resolve_attendance(PRACTICE, None, RIDERS, absences) == {"b", "c", "d"}

    def test_expected_riders_uses_governing_rule(self):
        season = SeasonSettings(rules=[_rule("gender", ["M"])])
        assert expected_riders(PRACTICE, season, RIDERS) == {"b", "c"}


def test_coach_attendance_skips_archived_and_absent():
    coaches = [Coach(id="c1"), Coach(id="c2", archived=True), Coach(id="c3")]
    absences = [ScheduledAbsence(PersonType.COACH, "c3", "2024-09-09", "2024-09-09")]
    assert resolve_coach_attendance(PRACTICE, coaches, absences) == {"c1"}

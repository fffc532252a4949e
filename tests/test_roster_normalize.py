"""Tests for roster normalization and absence lookups."""

import pytest

from teamride.roster.models import AbsenceReason, PersonType, ScheduledAbsence
from teamride.roster.normalize import absent_ids, active_absences, normalize_gender, normalize_grade


@pytest.mark.parametrize(
    "raw,expected",
    [("9", "9th"), ("Freshman", "9th"), ("12th grade", "12th"), (10, "10th"), ("", "9th"), (None, "9th"), ("K", "K")],
)
def test_normalize_grade(raw, expected):
    assert normalize_grade(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [("Male", "M"), ("girls", "F"), ("non-binary", "NB"), ("x", "X"), ("  ", ""), (None, "")],
)
def test_normalize_gender(raw, expected):
    assert normalize_gender(raw) == expected


ABSENCES = [
    ScheduledAbsence(PersonType.RIDER, "r1", "2024-09-01", "2024-09-10", AbsenceReason.INJURED),
    ScheduledAbsence(PersonType.COACH, "r1", "2024-09-01", "2024-09-30"),
    ScheduledAbsence(PersonType.RIDER, "r2", "2024-09-09", "2024-09-09"),
]


def test_absent_ids_by_type_and_date():
    assert absent_ids(ABSENCES, PersonType.RIDER, "2024-09-09") == {"r1", "r2"}
    assert absent_ids(ABSENCES, PersonType.RIDER, "2024-09-11") == set()
    assert absent_ids(ABSENCES, PersonType.COACH, "2024-09-11") == {"r1"}
    assert absent_ids(ABSENCES, PersonType.RIDER, "bogus") == set()


def test_active_absences_for_one_person():
    found = active_absences(ABSENCES, PersonType.RIDER, "r1", "2024-09-10")
    assert [a.reason_label for a in found] == ["Injured"]
    assert active_absences(ABSENCES, PersonType.RIDER, "r1", "2024-09-11") == []


def test_unpadded_absence_bounds_compare_as_dates():
    absences = [
        ScheduledAbsence(PersonType.RIDER, "r3", "2024-9-2", "2024-9-10"),
        ScheduledAbsence(PersonType.RIDER, "r4", "2024-09-01", "whenever"),
    ]
    assert absent_ids(absences, PersonType.RIDER, "2024-09-09") == {"r3"}
    assert absent_ids(absences, PersonType.RIDER, "2024-09-11") == set()
    assert len(active_absences(absences, PersonType.RIDER, "r3", "2024-09-02")) == 1

"""Roster value normalization and absence lookups."""

from __future__ import annotations

from collections.abc import Iterable

from teamride.roster.models import PersonType, ScheduledAbsence
from teamride.utils.dates import date_key, loose_date_key

DEFAULT_GRADE = "9th"

GRADE_MAP: dict[str, str] = {
    "6": "6th", "6th": "6th", "6th grade": "6th", "sixth": "6th",
    "7": "7th", "7th": "7th", "7th grade": "7th", "seventh": "7th",
    "8": "8th", "8th": "8th", "8th grade": "8th", "eighth": "8th",
    "9": "9th", "9th": "9th", "9th grade": "9th", "ninth": "9th", "freshman": "9th",
    "10": "10th", "10th": "10th", "10th grade": "10th", "tenth": "10th", "sophomore": "10th",
    "11": "11th", "11th": "11th", "11th grade": "11th", "eleventh": "11th", "junior": "11th",
    "12": "12th", "12th": "12th", "12th grade": "12th", "twelfth": "12th", "senior": "12th",
}

_MALE = {"m", "male", "man", "men", "boy", "boys"}
_FEMALE = {"f", "female", "woman", "women", "girl", "girls"}
_NONBINARY = {"nb", "nonbinary", "non-binary", "non binary"}

KNOWN_GENDER_CODES = frozenset({"M", "F", "NB"})


def normalize_grade(value: str | int | None) -> str:
    """Map free-form grade input to its canonical label ("9", "freshman" -> "9th").

    Empty input defaults to 9th grade; unknown values are returned as given.
    """
    if value is None or value == "":
        return DEFAULT_GRADE
    key = str(value).strip().lower()
    return GRADE_MAP.get(key, str(value))


def normalize_gender(value: str | None) -> str:
    """Map free-form gender input to M / F / NB.

    Unknown values are upper-cased; empty input returns an empty string.
    """
    text = (value or "").strip().lower()
    if not text:
        return ""
    if text in _MALE:
        return "M"
    if text in _FEMALE:
        return "F"
    if text in _NONBINARY:
        return "NB"
    return text.upper()


def absence_covers(absence: ScheduledAbsence, key: str) -> bool:
    """Whether an absence's inclusive range holds a date key.

    Bounds are normalized first; an absence with an unreadable bound covers nothing.
    """
    start = loose_date_key(absence.start_date)
    end = loose_date_key(absence.end_date)
    if start is None or end is None:
        return False
    return start <= key <= end


def active_absences(
    absences: Iterable[ScheduledAbsence],
    person_type: PersonType,
    person_id: str,
    on_date: str,
) -> list[ScheduledAbsence]:
    """Absences of one person covering a date."""
    key = date_key(on_date)
    if key is None:
        return []
    return [
        absence
        for absence in absences
        if absence.person_type == person_type
        and str(absence.person_id) == str(person_id)
        and absence_covers(absence, key)
    ]


def absent_ids(absences: Iterable[ScheduledAbsence], person_type: PersonType, on_date: str) -> set[str]:
    """Ids of everyone of a type with an absence covering the date."""
    key = date_key(on_date)
    if key is None:
        return set()
    return {
        str(absence.person_id)
        for absence in absences
        if absence.person_type == person_type and absence_covers(absence, key)
    }

"""Roster records consumed by the attendance and grouping code."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class Rider:
    """A rider on the team roster.

    Attributes:
        id: Rider identifier
        name: Display name, used as a deterministic tie-break
        pace: Endurance/pace level (higher is faster)
        climbing: Climbing skill level
        descending: Descending skill level
        grade: School grade as entered (normalized on use)
        gender: Gender as entered (normalized on use)
        racing_group: Racing group label, empty if none
        archived: Archived riders never attend
    """

    id: str
    name: str = ""
    pace: int = 5
    climbing: int = 5
    descending: int = 5
    grade: str = ""
    gender: str = ""
    racing_group: str = ""
    archived: bool = False


@dataclass(frozen=True)
class Coach:
    """A coach on the team roster.

    Attributes:
        id: Coach identifier
        name: Display name, used as a deterministic tie-break
        level: License level 1-3 (0 when unlicensed)
        pace: Endurance/pace level (higher is faster)
        archived: Archived coaches never attend
    """

    id: str
    name: str = ""
    level: int = 1
    pace: int = 5
    archived: bool = False


class PersonType(StrEnum):
    RIDER = "rider"
    COACH = "coach"


class AbsenceReason(StrEnum):
    INJURED = "injured"
    VACATION = "vacation"
    SUSPENSION = "suspension"
    OTHER = "other"


_ABSENCE_LABELS: dict[AbsenceReason, str] = {
    AbsenceReason.INJURED: "Injured",
    AbsenceReason.VACATION: "Vacation/Travel",
    AbsenceReason.SUSPENSION: "Behavior/Suspension",
    AbsenceReason.OTHER: "Other",
}


@dataclass(frozen=True)
class ScheduledAbsence:
    """A planned absence covering an inclusive ISO date range."""

    person_type: PersonType
    person_id: str
    start_date: str
    end_date: str
    reason: AbsenceReason = AbsenceReason.OTHER

    @property
    def reason_label(self) -> str:
        return _ABSENCE_LABELS.get(self.reason, "Other")

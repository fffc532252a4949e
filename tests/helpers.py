"""Builders shared by the test modules."""

from teamride.practices.models import Practice, PracticeStatus
from teamride.roster.models import Coach, Rider


def make_riders(paces: list[int], prefix: str = "r") -> list[Rider]:
    """Riders named after their position so ties sort predictably."""
    return [Rider(id=f"{prefix}{index:02d}", name=f"Rider {index:02d}", pace=pace) for index, pace in enumerate(paces)]


def make_coaches(levels: list[int], pace: int = 5, prefix: str = "c") -> list[Coach]:
    return [Coach(id=f"{prefix}{index}", name=f"Coach {index}", level=level, pace=pace) for index, level in enumerate(levels)]


def make_practice(practice_id: str, day: str, **kwargs) -> Practice:
    return Practice(id=practice_id, date=day, **kwargs)


def tombstone(practice_id: str, day: str) -> Practice:
    return Practice(id=practice_id, date=day, status=PracticeStatus.DELETED)

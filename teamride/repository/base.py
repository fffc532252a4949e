"""Repository contract for practice storage.

All writes raise ``PersistenceError`` on failure. Callers treat a failed
write as not applied.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from teamride.practices.models import Practice, PracticeChanges
from teamride.practices.state import AppState
from teamride.roster.models import Coach, Rider, ScheduledAbsence
from teamride.season.models import SeasonSettings


@runtime_checkable
class Repository(Protocol):
    async def list_practices(self) -> list[Practice]: ...

    async def create_practice(self, practice: Practice) -> Practice: ...

    async def update_practice(self, practice_id: str, fields: Mapping[str, Any]) -> Practice:
        """Overwrite the given fields of a stored practice."""
        ...

    async def soft_delete_practice(self, practice_id: str) -> Practice:
        """Turn a stored practice into a tombstone."""
        ...

    async def apply_changes(self, changes: PracticeChanges) -> None:
        """Write a changeset all-or-nothing."""
        ...

    async def list_riders(self) -> list[Rider]: ...

    async def list_coaches(self) -> list[Coach]: ...

    async def list_absences(self) -> list[ScheduledAbsence]: ...

    async def get_season_settings(self) -> SeasonSettings: ...

    async def save_season_settings(self, settings: SeasonSettings) -> None: ...


async def load_state(repository: Repository) -> AppState:
    """Read everything the core needs from a repository into an AppState."""
    return AppState(
        season=await repository.get_season_settings(),
        practices=tuple(await repository.list_practices()),
        riders=tuple(await repository.list_riders()),
        coaches=tuple(await repository.list_coaches()),
        absences=tuple(await repository.list_absences()),
    )

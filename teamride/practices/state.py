"""Application state passed explicitly through the core."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from teamride.practices.models import Practice, PracticeChanges
from teamride.roster.models import Coach, Rider, ScheduledAbsence
from teamride.season.models import SeasonSettings


@dataclass(frozen=True)
class AppState:
    """Snapshot of everything the scheduling core reads.

    Core operations take an AppState and return a new one.

    Attributes:
        season: Season window and practice rules
        practices: All practice records, tombstones included
        riders: Team riders
        coaches: Team coaches
        absences: Scheduled absences
        current_practice_id: Practice selected by the caller, if any
        unsaved_practice_ids: Practices created in memory whose write failed
    """

    season: SeasonSettings = field(default_factory=SeasonSettings)
    practices: tuple[Practice, ...] = ()
    riders: tuple[Rider, ...] = ()
    coaches: tuple[Coach, ...] = ()
    absences: tuple[ScheduledAbsence, ...] = ()
    current_practice_id: str | None = None
    unsaved_practice_ids: frozenset[str] = frozenset()

    def practice(self, practice_id: str) -> Practice | None:
        for practice in self.practices:
            if practice.id == practice_id:
                return practice
        return None

    def with_changes(self, changes: PracticeChanges) -> AppState:
        """Return a new state with a changeset applied to the practice list."""
        updated = {practice.id: practice for practice in changes.updated}
        purged = set(changes.purged)
        practices = [updated.get(practice.id, practice) for practice in self.practices if practice.id not in purged]
        practices.extend(changes.created)
        current = self.current_practice_id
        if current is not None and current in purged:
            current = None
        return replace(self, practices=tuple(practices), current_practice_id=current)

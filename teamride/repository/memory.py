"""In-memory repository, used by tests and single-process deployments."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import fields, replace
from typing import Any

from loguru import logger

from teamride.errors import PersistenceError
from teamride.practices.models import Practice, PracticeChanges, PracticeStatus
from teamride.roster.models import Coach, Rider, ScheduledAbsence
from teamride.season.models import SeasonSettings

PRACTICE_FIELDS = frozenset(f.name for f in fields(Practice))


class InMemoryRepository:
    """Dict-backed repository storing copies of every record."""

    def __init__(
        self,
        season: SeasonSettings | None = None,
        practices: Iterable[Practice] = (),
        riders: Iterable[Rider] = (),
        coaches: Iterable[Coach] = (),
        absences: Iterable[ScheduledAbsence] = (),
    ):
        self._season = season or SeasonSettings()
        self._practices: dict[str, Practice] = {p.id: copy.deepcopy(p) for p in practices}
        self._riders = list(riders)
        self._coaches = list(coaches)
        self._absences = list(absences)

    async def list_practices(self) -> list[Practice]:
        return [copy.deepcopy(practice) for practice in self._practices.values()]

    async def create_practice(self, practice: Practice) -> Practice:
        if practice.id in self._practices:
            raise PersistenceError("WRITE_FAILED", [f"Practice {practice.id} already exists"])
        self._practices[practice.id] = copy.deepcopy(practice)
        return copy.deepcopy(practice)

    async def update_practice(self, practice_id: str, fields: Mapping[str, Any]) -> Practice:
        current = self._get(practice_id)
        unknown = set(fields) - PRACTICE_FIELDS - {"id"}
        if unknown or "id" in fields:
            raise PersistenceError("WRITE_FAILED", [f"Cannot update fields: {sorted(unknown | ({'id'} & set(fields)))}"])
        try:
            updated = replace(current, **copy.deepcopy(dict(fields)))
        except ValueError as e:
            raise PersistenceError("WRITE_FAILED", [str(e)]) from e
        self._practices[practice_id] = updated
        return copy.deepcopy(updated)

    async def soft_delete_practice(self, practice_id: str) -> Practice:
        current = self._get(practice_id)
        if current.deleted:
            return copy.deepcopy(current)
        return await self.update_practice(
            practice_id,
            {"status": PracticeStatus.DELETED, "status_before_delete": current.status},
        )

    async def apply_changes(self, changes: PracticeChanges) -> None:
        staged = dict(self._practices)
        for practice in changes.updated:
            if practice.id not in staged:
                raise PersistenceError("NOT_FOUND", [f"Practice {practice.id} not found"])
            staged[practice.id] = copy.deepcopy(practice)
        for practice in changes.created:
            if practice.id in staged:
                raise PersistenceError("WRITE_FAILED", [f"Practice {practice.id} already exists"])
            staged[practice.id] = copy.deepcopy(practice)
        for practice_id in changes.purged:
            staged.pop(practice_id, None)
        self._practices = staged
        logger.debug(
            f"[REPOSITORY] Applied changes: updated={len(changes.updated)} "
            f"created={len(changes.created)} purged={len(changes.purged)}"
        )

    async def list_riders(self) -> list[Rider]:
        return list(self._riders)

    async def list_coaches(self) -> list[Coach]:
        return list(self._coaches)

    async def list_absences(self) -> list[ScheduledAbsence]:
        return list(self._absences)

    async def get_season_settings(self) -> SeasonSettings:
        return self._season.model_copy(deep=True)

    async def save_season_settings(self, settings: SeasonSettings) -> None:
        self._season = settings.model_copy(deep=True)

    def _get(self, practice_id: str) -> Practice:
        practice = self._practices.get(practice_id)
        if practice is None:
            raise PersistenceError("NOT_FOUND", [f"Practice {practice_id} not found"])
        return practice

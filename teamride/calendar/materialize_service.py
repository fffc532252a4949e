"""Async materialization runner.

Persistence failures never stop a run: a practice whose create fails stays
in memory, its id is remembered in ``AppState.unsaved_practice_ids`` and the
write is retried on the next run. A pruned record whose soft delete fails is
left as it is, so the next run prunes it again.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from teamride.calendar.materializer import MaterializationPlan, apply_materialization, materialize_state
from teamride.errors import PersistenceError
from teamride.practices.state import AppState
from teamride.repository.base import Repository, load_state


class MaterializationService:
    """Keeps stored practices in line with the season rules."""

    def __init__(self, repository: Repository):
        self.repository = repository

    async def run(self, state: AppState | None = None) -> AppState:
        """Materialize the schedule and persist the difference.

        Args:
            state: Current state; loaded from the repository when omitted

        Returns:
            New state with pruned records retired and new practices added
        """
        if state is None:
            state = await load_state(self.repository)
        else:
            state = await self._refresh_season(state)

        state = await self.retry_unsaved(state)
        plan = materialize_state(state)
        if plan.is_empty:
            logger.debug("[MATERIALIZE] Schedule already up to date")
            return state

        failed = await self._retire_pruned(plan, state.unsaved_practice_ids)
        unsaved = await self._create(plan)
        new_state = apply_materialization(state, plan, failed_ids=failed)
        unsaved_ids = new_state.unsaved_practice_ids | unsaved
        logger.info(
            f"[MATERIALIZE] Run complete: created={len(plan.to_create)} pruned={len(plan.to_prune) - len(failed)} "
            f"unsaved={len(unsaved_ids)}"
        )
        return replace(new_state, unsaved_practice_ids=unsaved_ids)

    async def retry_unsaved(self, state: AppState) -> AppState:
        """Re-attempt creates that failed on an earlier run."""
        if not state.unsaved_practice_ids:
            return state

        remaining: set[str] = set()
        for practice_id in sorted(state.unsaved_practice_ids):
            practice = state.practice(practice_id)
            if practice is None:
                continue
            try:
                await self.repository.create_practice(practice)
                logger.info(f"[MATERIALIZE] Saved previously unsaved practice {practice_id} ({practice.date})")
            except PersistenceError as e:
                logger.warning(f"[MATERIALIZE] Retry failed for practice {practice_id} ({practice.date}): {e}")
                remaining.add(practice_id)
        return replace(state, unsaved_practice_ids=frozenset(remaining))

    async def _refresh_season(self, state: AppState) -> AppState:
        try:
            season = await self.repository.get_season_settings()
        except PersistenceError as e:
            logger.warning(f"[MATERIALIZE] Could not read season settings, using in-memory copy: {e}")
            return state
        return replace(state, season=season)

    async def _retire_pruned(self, plan: MaterializationPlan, unsaved_ids: frozenset[str]) -> set[str]:
        """Soft-delete pruned records that exist in storage.

        Records never saved only live in memory and need no write. Returns the
        ids whose soft delete failed.
        """
        failed: set[str] = set()
        for practice in plan.to_prune:
            if practice.id in unsaved_ids:
                continue
            try:
                await self.repository.soft_delete_practice(practice.id)
            except PersistenceError as e:
                if e.code == "NOT_FOUND":
                    continue
                logger.warning(
                    f"[MATERIALIZE] Failed to retire practice {practice.id} ({practice.date}), retrying next run: {e}"
                )
                failed.add(practice.id)
        return failed

    async def _create(self, plan: MaterializationPlan) -> set[str]:
        unsaved: set[str] = set()
        for practice in plan.to_create:
            try:
                await self.repository.create_practice(practice)
            except PersistenceError as e:
                logger.warning(
                    f"[MATERIALIZE] Failed to save practice for {practice.date}, keeping it in memory for retry: {e}"
                )
                unsaved.add(practice.id)
        return unsaved

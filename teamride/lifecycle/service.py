"""Async lifecycle runner: persists a transition, then updates state."""

from __future__ import annotations

from loguru import logger

from teamride.errors import PersistenceError, TeamRideError
from teamride.lifecycle.machine import Transition, apply_transition
from teamride.logging import log_core_error
from teamride.practices.state import AppState
from teamride.repository.base import Repository


class LifecycleService:
    """Applies lifecycle transitions through a repository.

    The in-memory state only changes after the changeset is written.
    """

    def __init__(self, repository: Repository):
        self.repository = repository

    async def transition(self, state: AppState, practice_id: str, transition: Transition) -> AppState:
        """Apply and persist one transition.

        Args:
            state: Current application state
            practice_id: Practice to transition
            transition: Requested transition

        Returns:
            New state with the changes applied

        Raises:
            StateConflictError: Transition not allowed
            ValidationError: Bad transition arguments
            PersistenceError: The write failed; ``state`` is still current
        """
        context = {"practice_id": practice_id, "transition": str(transition.kind)}
        try:
            outcome = apply_transition(state.practices, practice_id, transition)
        except TeamRideError as e:
            log_core_error(e, context)
            raise

        try:
            await self.repository.apply_changes(outcome.changes)
        except PersistenceError as e:
            log_core_error(e, context)
            raise

        logger.bind(**context).debug(f"[LIFECYCLE] Persisted {transition.kind} for practice {practice_id}")
        return state.with_changes(outcome.changes)

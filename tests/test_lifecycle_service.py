"""Tests for the async lifecycle runner."""

import pytest
from helpers import make_practice

from teamride.errors import PersistenceError, StateConflictError
from teamride.lifecycle.machine import Transition
from teamride.lifecycle.service import LifecycleService
from teamride.practices.models import PracticeChanges, PracticeStatus
from teamride.practices.state import AppState
from teamride.repository.memory import InMemoryRepository


class BrokenRepository(InMemoryRepository):
    async def apply_changes(self, changes: PracticeChanges) -> None:
        raise PersistenceError("WRITE_FAILED", ["disk full"])


def _state() -> AppState:
    practices = (make_practice("p1", "2024-09-02"), make_practice("p2", "2024-09-09"))
    return AppState(practices=practices, current_practice_id="p1")


@pytest.mark.asyncio
async def test_transition_persists_then_updates_state():
    state = _state()
    repository = InMemoryRepository(practices=state.practices)

    new_state = await LifecycleService(repository).transition(state, "p2", Transition.reschedule("2024-09-11"))

    moved = new_state.practice("p2")
    assert moved.date == "2024-09-11"
    assert moved.status == PracticeStatus.RESCHEDULED
    stored = {p.id: p for p in await repository.list_practices()}
    assert stored["p2"] == moved
    assert len(stored) == 3
    assert len(new_state.practices) == 3
    assert state.practice("p2").date == "2024-09-09"


@pytest.mark.asyncio
async def test_failed_write_leaves_state_untouched():
    state = _state()
    repository = BrokenRepository(practices=state.practices)

    with pytest.raises(PersistenceError):
        await LifecycleService(repository).transition(state, "p1", Transition.delete())

    assert state.practice("p1").status == PracticeStatus.SCHEDULED
    assert not (await repository.list_practices())[0].deleted


@pytest.mark.asyncio
async def test_rejected_transition_writes_nothing():
    state = _state()
    repository = InMemoryRepository(practices=state.practices)

    with pytest.raises(StateConflictError):
        await LifecycleService(repository).transition(state, "p1", Transition.reinstate())

    assert await repository.list_practices() == list(state.practices)

"""Practice scheduling and group planning endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from teamride.api.dependencies import get_group_settings, get_layout_cache, get_repository, to_http_exception
from teamride.api.schemas import (
    AutoAssignRequest,
    ComplianceResponse,
    GroupComplianceSchema,
    GroupSchema,
    GroupsResponse,
    InfeasibleSchema,
    MaterializeResponse,
    NextPracticeResponse,
    PracticeSchema,
    TransitionRequest,
    TransitionResponse,
)
from teamride.calendar.materialize_service import MaterializationService
from teamride.calendar.upcoming import next_upcoming_practice
from teamride.errors import TeamRideError
from teamride.groups.compliance import compliance_report
from teamride.groups.layout_cache import LayoutCache
from teamride.groups.models import GroupSettings
from teamride.groups.partitioner import auto_assign
from teamride.groups.resizer import grow, shrink
from teamride.lifecycle.machine import Transition
from teamride.lifecycle.service import LifecycleService
from teamride.practices.models import Practice
from teamride.practices.state import AppState
from teamride.repository.base import Repository, load_state

router = APIRouter(prefix="/practices", tags=["practices"])


async def _load(repository: Repository) -> AppState:
    try:
        return await load_state(repository)
    except TeamRideError as e:
        raise to_http_exception(e) from e


def _require_practice(state: AppState, practice_id: str) -> Practice:
    practice = state.practice(practice_id)
    if practice is None or practice.deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Practice {practice_id} not found",
        )
    return practice


async def _save_groups(repository: Repository, practice: Practice) -> None:
    try:
        await repository.update_practice(
            practice.id,
            {"groups": practice.groups, "planning_started": practice.planning_started},
        )
    except TeamRideError as e:
        raise to_http_exception(e) from e


@router.post("/materialize", response_model=MaterializeResponse)
async def materialize_practices(repository: Repository = Depends(get_repository)) -> MaterializeResponse:
    """Create and prune practices so they match the season rules."""
    state = await _load(repository)
    before = {practice.id for practice in state.practices}
    new_state = await MaterializationService(repository).run(state)

    created = sorted(p.date for p in new_state.practices if p.id not in before)
    active = sum(1 for p in new_state.practices if p.is_active)
    logger.info(f"[API] Materialized schedule: created={len(created)} active={active}")
    return MaterializeResponse(
        created=created,
        practice_count=active,
        unsaved=sorted(new_state.unsaved_practice_ids),
    )


@router.get("/next", response_model=NextPracticeResponse)
async def get_next_practice(
    today: date | None = None,
    repository: Repository = Depends(get_repository),
) -> NextPracticeResponse:
    state = await _load(repository)
    practice = next_upcoming_practice(state, today or date.today())
    return NextPracticeResponse(practice=PracticeSchema.from_practice(practice) if practice else None)


@router.post("/{practice_id}/groups/auto", response_model=GroupsResponse)
async def auto_assign_groups(
    practice_id: str,
    request: AutoAssignRequest | None = None,
    repository: Repository = Depends(get_repository),
    cache: LayoutCache = Depends(get_layout_cache),
    default_settings: GroupSettings = Depends(get_group_settings),
) -> GroupsResponse:
    """Rebuild a practice's groups from its attendance.

    An infeasible configuration returns the group count candidates and
    leaves the practice untouched.
    """
    request = request or AutoAssignRequest()
    group_settings = request.settings or default_settings
    state = await _load(repository)
    practice = _require_practice(state, practice_id)

    try:
        updated, result = auto_assign(
            practice,
            state.riders,
            state.coaches,
            group_settings,
            cache=cache,
            target_group_count=request.target_group_count,
        )
    except TeamRideError as e:
        raise to_http_exception(e) from e

    if result.infeasible is not None:
        return GroupsResponse(practice_id=practice_id, infeasible=InfeasibleSchema.from_result(result.infeasible))

    await _save_groups(repository, updated)
    return GroupsResponse(practice_id=practice_id, groups=[GroupSchema.from_group(g) for g in updated.groups])


@router.post("/{practice_id}/groups/grow", response_model=GroupsResponse)
async def grow_groups(
    practice_id: str,
    repository: Repository = Depends(get_repository),
    cache: LayoutCache = Depends(get_layout_cache),
    group_settings: GroupSettings = Depends(get_group_settings),
) -> GroupsResponse:
    state = await _load(repository)
    practice = _require_practice(state, practice_id)
    try:
        updated = grow(practice, state.riders, state.coaches, group_settings, cache)
    except TeamRideError as e:
        raise to_http_exception(e) from e
    await _save_groups(repository, updated)
    return GroupsResponse(practice_id=practice_id, groups=[GroupSchema.from_group(g) for g in updated.groups])


@router.post("/{practice_id}/groups/shrink", response_model=GroupsResponse)
async def shrink_groups(
    practice_id: str,
    repository: Repository = Depends(get_repository),
    cache: LayoutCache = Depends(get_layout_cache),
    group_settings: GroupSettings = Depends(get_group_settings),
) -> GroupsResponse:
    state = await _load(repository)
    practice = _require_practice(state, practice_id)
    try:
        updated = shrink(practice, state.riders, state.coaches, group_settings, cache)
    except TeamRideError as e:
        raise to_http_exception(e) from e
    await _save_groups(repository, updated)
    return GroupsResponse(practice_id=practice_id, groups=[GroupSchema.from_group(g) for g in updated.groups])


@router.get("/{practice_id}/groups/compliance", response_model=ComplianceResponse)
async def get_group_compliance(
    practice_id: str,
    repository: Repository = Depends(get_repository),
    group_settings: GroupSettings = Depends(get_group_settings),
) -> ComplianceResponse:
    state = await _load(repository)
    practice = _require_practice(state, practice_id)
    report = compliance_report(practice.groups, state.coaches, group_settings)
    return ComplianceResponse(
        practice_id=practice_id,
        compliant=all(item.compliant for item in report),
        groups=[GroupComplianceSchema.from_result(item) for item in report],
    )


@router.post("/{practice_id}/transitions", response_model=TransitionResponse)
async def transition_practice(
    practice_id: str,
    request: TransitionRequest,
    repository: Repository = Depends(get_repository),
) -> TransitionResponse:
    """Cancel, reinstate, reschedule, delete or restore a practice."""
    state = await _load(repository)
    transition = Transition(kind=request.kind, reason=request.reason, new_date=request.new_date)
    before = {practice.id for practice in state.practices}

    try:
        new_state = await LifecycleService(repository).transition(state, practice_id, transition)
    except TeamRideError as e:
        raise to_http_exception(e) from e

    practice = new_state.practice(practice_id)
    after = {p.id for p in new_state.practices}
    if practice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Practice {practice_id} not found")
    return TransitionResponse(
        practice=PracticeSchema.from_practice(practice),
        created_ids=sorted(after - before),
        purged_ids=sorted(before - after),
    )

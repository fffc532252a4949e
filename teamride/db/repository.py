"""SQLAlchemy-backed repository.

Session work is synchronous; the async methods satisfy the Repository
protocol. Every SQLAlchemy failure surfaces as ``PersistenceError``.
"""

from __future__ import annotations

from collections.abc import Generator, Mapping
from contextlib import contextmanager
from dataclasses import fields, replace
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from teamride.db.models import AbsenceRecord, CoachRecord, PracticeRecord, RiderRecord, SeasonSettingsRecord
from teamride.db.session import get_session
from teamride.errors import PersistenceError
from teamride.practices.models import CoachRoles, Group, Practice, PracticeChanges, PracticeStatus
from teamride.roster.models import AbsenceReason, Coach, PersonType, Rider, ScheduledAbsence
from teamride.season.models import SeasonSettings
from teamride.season.rules import normalize_rule_entry

PRACTICE_FIELDS = frozenset(f.name for f in fields(Practice))
SEASON_ROW_ID = 1


def group_to_json(group: Group) -> dict[str, Any]:
    return {
        "id": group.id,
        "label": group.label,
        "riders": list(group.rider_ids),
        "coaches": {
            "leader": group.coaches.leader,
            "sweep": group.coaches.sweep,
            "roam": group.coaches.roam,
            "extraRoam": list(group.coaches.extra_roam),
        },
        "routeId": group.route_id,
        "fitnessTag": group.fitness_tag,
    }


def group_from_json(data: Mapping[str, Any]) -> Group:
    coaches = data.get("coaches") or {}
    return Group(
        id=str(data.get("id", "")),
        label=str(data.get("label", "")),
        rider_ids=[str(rider_id) for rider_id in data.get("riders", [])],
        coaches=CoachRoles(
            leader=coaches.get("leader"),
            sweep=coaches.get("sweep"),
            roam=coaches.get("roam"),
            extra_roam=[str(cid) for cid in coaches.get("extraRoam", []) if cid],
        ),
        route_id=data.get("routeId"),
        fitness_tag=data.get("fitnessTag"),
    )


def _record_values(practice: Practice) -> dict[str, Any]:
    return {
        "date": practice.date,
        "time": practice.time,
        "end_time": practice.end_time,
        "meet_location": practice.meet_location,
        "location_lat": practice.location_lat,
        "location_lng": practice.location_lng,
        "description": practice.description,
        "goals": practice.goals,
        "available_rider_ids": list(practice.available_rider_ids),
        "available_coach_ids": list(practice.available_coach_ids),
        "groups": [group_to_json(group) for group in practice.groups],
        "published_groups": (
            [group_to_json(group) for group in practice.published_groups] if practice.published_groups is not None else None
        ),
        "status": str(practice.status),
        "cancellation_reason": practice.cancellation_reason,
        "rescheduled_from": practice.rescheduled_from,
        "status_before_delete": str(practice.status_before_delete) if practice.status_before_delete else None,
        "planning_started": practice.planning_started,
        "attendance_initialized": practice.attendance_initialized,
    }


def record_to_practice(record: PracticeRecord) -> Practice:
    return Practice(
        id=record.id,
        date=record.date,
        time=record.time,
        end_time=record.end_time,
        meet_location=record.meet_location,
        location_lat=record.location_lat,
        location_lng=record.location_lng,
        description=record.description,
        goals=record.goals,
        available_rider_ids=list(record.available_rider_ids or []),
        available_coach_ids=list(record.available_coach_ids or []),
        groups=[group_from_json(group) for group in record.groups or []],
        published_groups=(
            [group_from_json(group) for group in record.published_groups] if record.published_groups is not None else None
        ),
        status=PracticeStatus(record.status),
        cancellation_reason=record.cancellation_reason,
        rescheduled_from=record.rescheduled_from,
        status_before_delete=PracticeStatus(record.status_before_delete) if record.status_before_delete else None,
        planning_started=record.planning_started,
        attendance_initialized=record.attendance_initialized,
    )


def _absence_reason(value: str) -> AbsenceReason:
    try:
        return AbsenceReason(value)
    except ValueError:
        return AbsenceReason.OTHER


def _write_record(record: PracticeRecord, practice: Practice) -> None:
    for name, value in _record_values(practice).items():
        setattr(record, name, value)


class SqlRepository:
    """Repository over the SQLAlchemy models in ``teamride.db.models``."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Generator[Session, None, None]:
        try:
            with get_session(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"[REPOSITORY] {operation} failed: {e}")
            raise PersistenceError("WRITE_FAILED", [f"{operation}: {e}"]) from e

    def _load(self, session: Session, practice_id: str) -> PracticeRecord:
        record = session.get(PracticeRecord, practice_id)
        if record is None:
            raise PersistenceError("NOT_FOUND", [f"Practice {practice_id} not found"])
        return record

    async def list_practices(self) -> list[Practice]:
        with self._session("list_practices") as session:
            records = session.execute(select(PracticeRecord).order_by(PracticeRecord.date)).scalars().all()
            return [record_to_practice(record) for record in records]

    async def create_practice(self, practice: Practice) -> Practice:
        with self._session("create_practice") as session:
            record = PracticeRecord(id=practice.id)
            _write_record(record, practice)
            session.add(record)
        return practice

    async def update_practice(self, practice_id: str, fields: Mapping[str, Any]) -> Practice:
        unknown = set(fields) - PRACTICE_FIELDS
        if unknown or "id" in fields:
            raise PersistenceError("WRITE_FAILED", [f"Cannot update fields: {sorted(unknown | ({'id'} & set(fields)))}"])
        with self._session("update_practice") as session:
            record = self._load(session, practice_id)
            try:
                updated = replace(record_to_practice(record), **dict(fields))
            except ValueError as e:
                raise PersistenceError("WRITE_FAILED", [str(e)]) from e
            _write_record(record, updated)
        return updated

    async def soft_delete_practice(self, practice_id: str) -> Practice:
        with self._session("soft_delete_practice") as session:
            record = self._load(session, practice_id)
            practice = record_to_practice(record)
            if practice.deleted:
                return practice
            tombstone = replace(practice, status=PracticeStatus.DELETED, status_before_delete=practice.status)
            _write_record(record, tombstone)
        return tombstone

    async def apply_changes(self, changes: PracticeChanges) -> None:
        with self._session("apply_changes") as session:
            for practice in changes.updated:
                _write_record(self._load(session, practice.id), practice)
            for practice in changes.created:
                record = PracticeRecord(id=practice.id)
                _write_record(record, practice)
                session.add(record)
            for practice_id in changes.purged:
                record = session.get(PracticeRecord, practice_id)
                if record is not None:
                    session.delete(record)
        logger.debug(
            f"[REPOSITORY] Applied changes: updated={len(changes.updated)} "
            f"created={len(changes.created)} purged={len(changes.purged)}"
        )

    async def list_riders(self) -> list[Rider]:
        with self._session("list_riders") as session:
            records = session.execute(select(RiderRecord).order_by(RiderRecord.id)).scalars().all()
            return [
                Rider(
                    id=r.id,
                    name=r.name,
                    pace=r.pace,
                    climbing=r.climbing,
                    descending=r.descending,
                    grade=r.grade,
                    gender=r.gender,
                    racing_group=r.racing_group,
                    archived=r.archived,
                )
                for r in records
            ]

    async def list_coaches(self) -> list[Coach]:
        with self._session("list_coaches") as session:
            records = session.execute(select(CoachRecord).order_by(CoachRecord.id)).scalars().all()
            return [Coach(id=c.id, name=c.name, level=c.level, pace=c.pace, archived=c.archived) for c in records]

    async def list_absences(self) -> list[ScheduledAbsence]:
        with self._session("list_absences") as session:
            records = session.execute(select(AbsenceRecord).order_by(AbsenceRecord.id)).scalars().all()
            return [
                ScheduledAbsence(
                    person_type=PersonType(a.person_type),
                    person_id=a.person_id,
                    start_date=a.start_date,
                    end_date=a.end_date,
                    reason=_absence_reason(a.reason),
                )
                for a in records
            ]

    async def get_season_settings(self) -> SeasonSettings:
        with self._session("get_season_settings") as session:
            record = session.get(SeasonSettingsRecord, SEASON_ROW_ID)
            payload = dict(record.payload or {}) if record is not None else {}

        raw_rules = payload.get("rules", payload.get("practices")) or []
        rules = [rule for rule in (normalize_rule_entry(raw) for raw in raw_rules) if rule is not None]
        try:
            return SeasonSettings(
                start_date=payload.get("startDate", ""),
                end_date=payload.get("endDate", ""),
                rules=rules,
            )
        except PydanticValidationError as e:
            raise PersistenceError("INVALID_SEASON", [f"Stored season settings are invalid: {e.error_count()} errors"]) from e

    async def save_season_settings(self, settings: SeasonSettings) -> None:
        payload = settings.model_dump(mode="json", by_alias=True)
        with self._session("save_season_settings") as session:
            record = session.get(SeasonSettingsRecord, SEASON_ROW_ID)
            if record is None:
                session.add(SeasonSettingsRecord(id=SEASON_ROW_ID, payload=payload))
            else:
                record.payload = payload

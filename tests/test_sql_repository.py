"""Tests for the SQLAlchemy repository on in-memory SQLite."""

import pytest
from helpers import make_practice
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from teamride.db.models import AbsenceRecord, CoachRecord, RiderRecord, SeasonSettingsRecord
from teamride.db.repository import SqlRepository, group_from_json, group_to_json
from teamride.db.session import get_session, init_db
from teamride.errors import PersistenceError
from teamride.practices.models import CoachRoles, Group, PracticeChanges, PracticeStatus
from teamride.roster.models import AbsenceReason, PersonType
from teamride.season.models import PracticeRule, RosterFilter, RosterFilterType, SeasonSettings


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def repository(session_factory) -> SqlRepository:
    return SqlRepository(session_factory)


def _group() -> Group:
    return Group(
        id="g1",
        label="Group 1",
        rider_ids=["r1", "r2"],
        coaches=CoachRoles(leader="c1", extra_roam=["c4"]),
        route_id="hills",
        fitness_tag=7,
    )


def test_group_json_uses_stored_keys():
    data = group_to_json(_group())
    assert data["riders"] == ["r1", "r2"]
    assert data["routeId"] == "hills"
    assert data["coaches"]["extraRoam"] == ["c4"]
    assert group_from_json(data) == _group()


@pytest.mark.asyncio
async def test_practice_round_trip(repository):
    practice = make_practice(
        "p1",
        "2024-09-02",
        time="15:30",
        groups=[_group()],
        available_rider_ids=["r1", "r2"],
        status=PracticeStatus.CANCELLED,
        cancellation_reason="Rain",
    )
    await repository.create_practice(practice)
    assert await repository.list_practices() == [practice]


@pytest.mark.asyncio
async def test_list_orders_by_date(repository):
    await repository.create_practice(make_practice("late", "2024-09-30"))
    await repository.create_practice(make_practice("early", "2024-09-02"))
    assert [p.id for p in await repository.list_practices()] == ["early", "late"]


@pytest.mark.asyncio
async def test_duplicate_create_is_a_persistence_error(repository):
    await repository.create_practice(make_practice("p1", "2024-09-02"))
    with pytest.raises(PersistenceError) as exc:
        await repository.create_practice(make_practice("p1", "2024-09-09"))
    assert exc.value.code == "WRITE_FAILED"


@pytest.mark.asyncio
async def test_update_and_soft_delete(repository):
    await repository.create_practice(make_practice("p1", "2024-09-02"))

    updated = await repository.update_practice("p1", {"goals": "Cadence drills", "groups": [_group()]})
    assert updated.goals == "Cadence drills"

    tombstone = await repository.soft_delete_practice("p1")
    assert tombstone.deleted
    assert tombstone.status_before_delete == PracticeStatus.SCHEDULED

    stored = (await repository.list_practices())[0]
    assert stored == tombstone
    assert stored.groups == [_group()]


@pytest.mark.asyncio
async def test_update_unknown_practice(repository):
    with pytest.raises(PersistenceError) as exc:
        await repository.update_practice("missing", {"goals": "x"})
    assert exc.value.code == "NOT_FOUND"


@pytest.mark.asyncio
async def test_apply_changes_rolls_back_on_failure(repository):
    await repository.create_practice(make_practice("p1", "2024-09-02"))
    bad = PracticeChanges(
        updated=[make_practice("p1", "2024-09-02", goals="partial")],
        created=[make_practice("p1", "2024-09-09")],
    )
    with pytest.raises(PersistenceError):
        await repository.apply_changes(bad)
    assert (await repository.list_practices())[0].goals == ""

    good = PracticeChanges(created=[make_practice("p2", "2024-09-09")], purged=["p1"])
    await repository.apply_changes(good)
    assert [p.id for p in await repository.list_practices()] == ["p2"]


@pytest.mark.asyncio
async def test_roster_reads(repository, session_factory):
    with get_session(session_factory) as session:
        session.add(RiderRecord(id="r1", name="Ana", pace=7, grade="10", gender="F"))
        session.add(CoachRecord(id="c1", name="Sam", level=3, pace=6))
        session.add(
            AbsenceRecord(
                person_type="rider", person_id="r1", start_date="2024-09-01", end_date="2024-09-10", reason="sabbatical"
            )
        )

    riders = await repository.list_riders()
    coaches = await repository.list_coaches()
    absences = await repository.list_absences()

    assert [(r.id, r.pace, r.grade) for r in riders] == [("r1", 7, "10")]
    assert [(c.id, c.level) for c in coaches] == [("c1", 3)]
    assert absences[0].person_type == PersonType.RIDER
    assert absences[0].reason == AbsenceReason.OTHER


@pytest.mark.asyncio
async def test_season_settings_round_trip(repository):
    assert await repository.get_season_settings() == SeasonSettings()

    season = SeasonSettings(
        start_date="2024-09-02",
        end_date="2024-11-30",
        rules=[
            PracticeRule(
                id="mon",
                day_of_week=1,
                time="15:30",
                roster_filter=RosterFilter(filter_type=RosterFilterType.GRADE, values=["9th", "10th"]),
            ),
            PracticeRule(id="race", specific_date="2024-10-12", time="08:00", exclude_from_planner=True),
        ],
    )
    await repository.save_season_settings(season)
    assert await repository.get_season_settings() == season


@pytest.mark.asyncio
async def test_lenient_rule_reading(repository, session_factory):
    payload = {
        "startDate": "2024-09-02",
        "endDate": "2024-09-30",
        "practices": [
            {"id": 7, "day": "3", "startTime": "7:05"},
            {"id": "no-time", "dayOfWeek": 2},
        ],
    }
    with get_session(session_factory) as session:
        session.add(SeasonSettingsRecord(id=1, payload=payload))

    season = await repository.get_season_settings()
    assert [(r.id, r.day_of_week, r.time) for r in season.rules] == [("7", 3, "07:05")]

"""Tests for the schedule materializer."""

from dataclasses import replace
from datetime import date

from helpers import make_practice, make_riders, tombstone

from teamride.calendar.materializer import (
    apply_materialization,
    compute_valid_dates,
    effective_window,
    materialize,
    materialize_state,
)
from teamride.lifecycle.machine import Transition, apply_transition
from teamride.practices.models import PracticeStatus
from teamride.practices.state import AppState
from teamride.roster.models import Rider
from teamride.season.models import PracticeRule, RosterFilter, SeasonSettings

SEPTEMBER_MONDAYS = ["2024-09-02", "2024-09-09", "2024-09-16", "2024-09-23", "2024-09-30"]


def _active_dates(state: AppState) -> list[str]:
    return sorted(p.date for p in state.practices if p.is_active)


def _run(state: AppState) -> AppState:
    plan = materialize(state.season, state.practices, state.riders, state.coaches, state.absences, state.current_practice_id)
    return apply_materialization(state, plan)


class TestMaterialize:
    def test_weekly_rule_creates_practice_per_monday(self, september_season):
        plan = materialize(september_season, [])
        assert [p.date for p in plan.to_create] == SEPTEMBER_MONDAYS
        assert all(p.time == "15:30" and p.end_time == "17:30" for p in plan.to_create)
        assert all(p.meet_location == "School lot" for p in plan.to_create)
        assert plan.to_prune == []

    def test_materialize_is_idempotent(self, september_season):
        state = _run(AppState(season=september_season))
        plan = materialize(state.season, state.practices)
        assert plan.is_empty

    def test_new_practice_attendance_uses_rule_filter(self):
        rule = PracticeRule(
            day_of_week=1, time="15:30", roster_filter=RosterFilter(filter_type="gender", values=["F"])
        )
        season = SeasonSettings(start_date="2024-09-02", end_date="2024-09-02", rules=[rule])
        riders = [Rider(id="f", gender="F"), Rider(id="m", gender="M"), Rider(id="x", archived=True)]
        plan = materialize(season, [], riders=riders)
        assert plan.to_create[0].available_rider_ids == ["f"]
        assert plan.to_create[0].attendance_initialized

    def test_specific_date_rule_adds_single_practice(self, september_season, monday_rule):
        single = PracticeRule(id="extra", specific_date="2024-09-14", time="09:00")
        season = september_season.model_copy(update={"rules": [monday_rule, single]})
        plan = materialize(season, [])
        created = {p.date: p for p in plan.to_create}
        assert "2024-09-14" in created
        assert created["2024-09-14"].time == "09:00"

    def test_planner_exclusion_does_not_affect_validity(self, september_season, monday_rule):
        season = september_season.model_copy(update={"rules": [monday_rule.model_copy(update={"exclude_from_planner": True})]})
        assert len(materialize(season, []).to_create) == 5


class TestTombstones:
    def test_deleted_date_stays_deleted(self, september_season):
        state = _run(AppState(season=september_season))
        target = next(p for p in state.practices if p.date == "2024-09-09")
        outcome = apply_transition(state.practices, target.id, Transition.delete())
        state = replace(state, practices=tuple(outcome.practices))

        for _ in range(3):
            state = _run(state)

        assert _active_dates(state) == ["2024-09-02", "2024-09-16", "2024-09-23", "2024-09-30"]
        tombstones = [p for p in state.practices if p.deleted]
        assert [p.date for p in tombstones] == ["2024-09-09"]

    def test_rescheduled_practice_survives_and_original_is_not_regenerated(self, september_season):
        state = _run(AppState(season=september_season))
        target = next(p for p in state.practices if p.date == "2024-09-16")
        outcome = apply_transition(state.practices, target.id, Transition.reschedule("2024-09-18"))
        state = _run(replace(state, practices=tuple(outcome.practices)))

        assert _active_dates(state) == ["2024-09-02", "2024-09-09", "2024-09-18", "2024-09-23", "2024-09-30"]
        moved = next(p for p in state.practices if p.date == "2024-09-18")
        assert moved.rescheduled_from == "2024-09-16"
        assert moved.status == PracticeStatus.RESCHEDULED
        on_original = [p for p in state.practices if p.date == "2024-09-16"]
        assert len(on_original) == 1 and on_original[0].deleted

    def test_rescheduled_original_blocked_even_without_tombstone(self, september_season):
        moved = make_practice("moved", "2024-09-18", status=PracticeStatus.RESCHEDULED, rescheduled_from="2024-09-16")
        plan = materialize(september_season, [moved])
        assert "2024-09-16" not in [p.date for p in plan.to_create]
        assert "2024-09-18" in plan.valid_dates


class TestReconciliation:
    def test_prunes_invalid_records(self, september_season):
        practices = [
            make_practice("no-date", ""),
            make_practice("bad-date", "2024-99-01"),
            make_practice("outside", "2024-10-07"),
            make_practice("tuesday", "2024-09-10"),
            make_practice("ok", "2024-09-02"),
        ]
        plan = materialize(september_season, practices)
        assert sorted(p.id for p in plan.to_prune) == ["bad-date", "no-date", "outside", "tuesday"]
        assert "2024-09-02" not in [p.date for p in plan.to_create]

    def test_pruning_selected_practice_clears_selection(self, september_season):
        state = AppState(
            season=september_season,
            practices=(make_practice("tuesday", "2024-09-10"),),
            current_practice_id="tuesday",
        )
        plan = materialize(state.season, state.practices, current_practice_id=state.current_practice_id)
        assert plan.clears_selection
        assert apply_materialization(state, plan).current_practice_id is None

    def test_without_rules_only_structural_pruning(self):
        season = SeasonSettings(start_date="2024-09-01", end_date="2024-09-30")
        plan = materialize(season, [make_practice("keep", "2024-09-10"), make_practice("drop", "")])
        assert [p.id for p in plan.to_prune] == ["drop"]
        assert plan.to_create == []

    def test_tombstone_on_rule_date_is_kept(self, september_season):
        plan = materialize(september_season, [tombstone("t", "2024-09-09")])
        assert plan.to_prune == []
        assert "2024-09-09" not in [p.date for p in plan.to_create]

    def test_tombstone_outside_window_is_kept(self, september_season):
        plan = materialize(september_season, [tombstone("t", "2024-10-07"), tombstone("w", "2024-09-11")])
        assert plan.to_prune == []

    def test_rescheduled_practice_outside_window_is_kept(self, september_season):
        moved = make_practice("moved", "2024-10-02", status=PracticeStatus.RESCHEDULED, rescheduled_from="2024-09-30")
        plan = materialize(september_season, [moved, tombstone("t", "2024-09-30")])
        assert plan.to_prune == []
        assert "2024-09-30" not in [p.date for p in plan.to_create]

    def test_apply_retires_saved_and_drops_unsaved_prunes(self, september_season):
        state = AppState(
            season=september_season,
            practices=(make_practice("saved", "2024-09-10"), make_practice("local", "2024-09-11")),
            unsaved_practice_ids=frozenset({"local"}),
        )
        new_state = apply_materialization(state, materialize_state(state))
        assert new_state.practice("local") is None
        assert new_state.unsaved_practice_ids == frozenset()
        retired = new_state.practice("saved")
        assert retired.deleted
        assert retired.status_before_delete == PracticeStatus.SCHEDULED

    def test_apply_keeps_prunes_that_failed_to_persist(self, september_season):
        state = AppState(season=september_season, practices=(make_practice("saved", "2024-09-10"),))
        plan = materialize_state(state)
        new_state = apply_materialization(state, plan, failed_ids={"saved"})
        assert new_state.practice("saved").is_active
        assert [p.id for p in materialize_state(new_state).to_prune] == ["saved"]


class TestEffectiveWindow:
    def test_explicit_window(self, september_season):
        assert effective_window(september_season, []) == (date(2024, 9, 2), date(2024, 9, 30))

    def test_unset_window_spans_full_months_of_practices(self, monday_rule):
        season = SeasonSettings(rules=[monday_rule])
        practices = [make_practice("a", "2024-09-16"), make_practice("b", "2024-10-07")]
        assert effective_window(season, practices) == (date(2024, 9, 1), date(2024, 10, 31))

    def test_unset_window_without_anchors(self, monday_rule):
        season = SeasonSettings(rules=[monday_rule])
        assert effective_window(season, []) is None
        assert materialize(season, []).is_empty

    def test_unset_window_fills_months(self, monday_rule):
        season = SeasonSettings(rules=[monday_rule])
        plan = materialize(season, [make_practice("a", "2024-09-16")])
        assert [p.date for p in plan.to_create] == ["2024-09-02", "2024-09-09", "2024-09-23", "2024-09-30"]


def test_valid_dates_include_active_reschedules(september_season):
    moved = make_practice("m", "2024-10-15", status=PracticeStatus.RESCHEDULED, rescheduled_from="2024-09-16")
    window = effective_window(september_season, [moved])
    valid = compute_valid_dates(september_season, [moved], window)
    assert "2024-10-15" in valid
    assert set(SEPTEMBER_MONDAYS) <= valid


def test_seeded_riders_sorted(september_season):
    plan = materialize(september_season, [], riders=make_riders([3, 5], prefix="z"))
    assert plan.to_create[0].available_rider_ids == ["z00", "z01"]

"""Tests for the group partitioner."""

import pytest
from helpers import make_coaches, make_practice, make_riders

from teamride.errors import ValidationError
from teamride.groups.helpers import create_group
from teamride.groups.layout_cache import LayoutCache
from teamride.groups.models import GroupSettings
from teamride.groups.partitioner import attending, auto_assign, partition
from teamride.practices.models import Group
from teamride.roster.models import Rider

ONE_COACH_SETTINGS = GroupSettings(riders_per_coach=6, preferred_group_size=(4, 8), preferred_coaches_per_group=1)


@pytest.fixture
def eighteen_riders() -> list[Rider]:
    return make_riders([10] * 6 + [6] * 6 + [2] * 6)


class TestPartition:
    def test_three_groups_of_six(self, eighteen_riders):
        coaches = make_coaches([2, 2, 3, 2])
        result = partition(eighteen_riders, coaches, ONE_COACH_SETTINGS)

        assert result.is_feasible
        assert [len(g.rider_ids) for g in result.groups] == [6, 6, 6]
        assert [g.label for g in result.groups] == ["Group 1", "Group 2", "Group 3"]
        assert [g.fitness_tag for g in result.groups] == [10, 6, 2]
        assert all(g.coaches.leader is not None for g in result.groups)
        assigned = [cid for g in result.groups for cid in g.coaches.all_ids()]
        assert sorted(assigned) == ["c0", "c1", "c2", "c3"]

    def test_every_rider_placed_once(self, eighteen_riders):
        result = partition(eighteen_riders, make_coaches([2, 2, 3, 2]), ONE_COACH_SETTINGS)
        placed = [rid for g in result.groups for rid in g.rider_ids]
        assert sorted(placed) == sorted(r.id for r in eighteen_riders)

    def test_groups_ordered_fastest_first(self, eighteen_riders):
        result = partition(eighteen_riders, make_coaches([2, 2, 3, 2]), ONE_COACH_SETTINGS)
        by_id = {r.id: r for r in eighteen_riders}
        paces = [[by_id[rid].pace for rid in g.rider_ids] for g in result.groups]
        for faster, slower in zip(paces, paces[1:]):
            assert min(faster) >= max(slower)

    def test_infeasible_returns_candidates(self, group_settings):
        result = partition(make_riders([5] * 10), [], group_settings)

        assert not result.is_feasible
        assert result.groups == []
        assert result.infeasible.rider_count == 10
        assert result.infeasible.coach_count == 0
        assert [c.group_count for c in result.infeasible.candidates] == [2]
        assert "not enough coaches" in result.infeasible.candidates[0].violations

    def test_explicit_group_count_skips_selection(self, eighteen_riders, group_settings):
        result = partition(eighteen_riders, [], group_settings, target_group_count=2)
        assert result.is_feasible
        assert [len(g.rider_ids) for g in result.groups] == [9, 9]

    @pytest.mark.parametrize("count", [0, 19])
    def test_explicit_group_count_out_of_range(self, eighteen_riders, group_settings, count):
        with pytest.raises(ValidationError) as exc:
            partition(eighteen_riders, [], group_settings, target_group_count=count)
        assert exc.value.code == "INVALID_GROUP_COUNT"

    def test_no_riders(self, group_settings):
        with pytest.raises(ValidationError) as exc:
            partition([], make_coaches([3]), group_settings)
        assert exc.value.code == "NO_ATTENDING_RIDERS"

    def test_existing_groups_keep_count_and_routes(self, eighteen_riders, group_settings):
        existing = [create_group(0, route_id="hills"), create_group(1, route_id="flats")]
        result = partition(eighteen_riders, [], group_settings, existing_groups=existing)
        assert [g.route_id for g in result.groups] == ["hills", "flats"]


def test_attending_skips_unavailable_and_archived():
    riders = make_riders([5, 5, 5])
    riders[2] = Rider(id="r02", name="Rider 02", archived=True)
    coaches = make_coaches([2, 2])
    practice = make_practice("p1", "2024-09-02", available_rider_ids=["r00", "r02"], available_coach_ids=["c1"])

    attending_riders, attending_coaches = attending(practice, riders, coaches)

    assert [r.id for r in attending_riders] == ["r00"]
    assert [c.id for c in attending_coaches] == ["c1"]


class TestAutoAssign:
    def test_builds_groups_and_clears_cache(self, eighteen_riders):
        coaches = make_coaches([2, 2, 3, 2])
        practice = make_practice(
            "p1",
            "2024-09-02",
            available_rider_ids=[r.id for r in eighteen_riders],
            available_coach_ids=[c.id for c in coaches],
        )
        cache = LayoutCache()
        cache.store("p1", [Group(id="old", label="Group 1", rider_ids=["r00"])])

        updated, result = auto_assign(practice, eighteen_riders, coaches, ONE_COACH_SETTINGS, cache)

        assert result.is_feasible
        assert updated.groups == result.groups
        assert updated.planning_started
        assert practice.groups == []
        assert cache.group_counts("p1") == []

    def test_infeasible_leaves_practice_unchanged(self, group_settings):
        riders = make_riders([5] * 10)
        practice = make_practice("p1", "2024-09-02", available_rider_ids=[r.id for r in riders])
        cache = LayoutCache()
        cache.store("p1", [Group(id="old", label="Group 1", rider_ids=["r00"])])

        updated, result = auto_assign(practice, riders, [], group_settings, cache)

        assert not result.is_feasible
        assert updated is practice
        assert cache.group_counts("p1") == [1]

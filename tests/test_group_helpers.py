"""Tests for group construction helpers."""

from helpers import make_riders

from teamride.groups.helpers import (
    create_group,
    fitness_tag,
    group_stats,
    remove_rider_from_groups,
    renumber_groups,
    rider_sort_key,
)
from teamride.practices.models import CoachRoles, Group
from teamride.roster.models import Rider


def _labelled(*labels: str) -> list[Group]:
    return [Group(id=f"g{i}", label=label) for i, label in enumerate(labels)]


def test_rider_sort_key_fastest_then_name():
    riders = [Rider(id="b", name="Bea", pace=5), Rider(id="a", name="Ann", pace=5), Rider(id="c", name="Cy", pace=8)]
    assert [r.id for r in sorted(riders, key=rider_sort_key)] == ["c", "a", "b"]


def test_fitness_tag_rounds_half_up():
    by_id = {r.id: r for r in make_riders([7, 8])}
    assert fitness_tag(["r00", "r01"], by_id) == 8
    assert fitness_tag([], by_id) is None


def test_create_group_labels_and_tags():
    by_id = {r.id: r for r in make_riders([6, 4])}
    group = create_group(2, ["r00", "r01"], riders=by_id)
    assert group.label == "Group 3"
    assert group.fitness_tag == 5
    assert group.id


def test_renumber_sequential():
    groups = renumber_groups(_labelled("Group 4", "Fast", "Group 1"))
    assert [g.label for g in groups] == ["Group 1", "Group 2", "Group 3"]


def test_renumber_fill_gaps_keeps_existing_numbers():
    groups = renumber_groups(_labelled("Group 3", "", "Group 1", "Group 3"), fill_gaps=True)
    assert [g.label for g in groups] == ["Group 3", "Group 2", "Group 1", "Group 4"]


def test_remove_rider_from_groups():
    groups = [Group(id="a", label="Group 1", rider_ids=["r1", "r2"]), Group(id="b", label="Group 2", rider_ids=["r3"])]
    assert remove_rider_from_groups(groups, "r2")
    assert groups[0].rider_ids == ["r1"]
    assert not remove_rider_from_groups(groups, "r2")


def test_group_stats():
    by_id = {r.id: r for r in make_riders([6, 6, 3])}
    group = Group(id="a", label="Group 1", rider_ids=["r00", "r01", "r02"], coaches=CoachRoles(leader="c0", sweep="c1"))
    stats = group_stats(group, by_id)
    assert stats.rider_count == 3
    assert stats.coach_count == 2
    assert stats.average_pace == 5.0
    assert stats.distinct_paces == 2

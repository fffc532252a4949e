"""Tests for coach-per-group distribution."""

from teamride.groups.coach_distribution import (
    best_distribution,
    candidate_distributions,
    even_split,
    minimum_two_split,
    preferred_split,
    score_distribution,
)


def test_even_split_puts_remainder_first():
    assert even_split(7, 3) == (3, 2, 2)


def test_preferred_split_fills_toward_preferred():
    assert preferred_split(7, 3, 2) == (3, 2, 2)
    assert preferred_split(2, 3, 2) == (2, 0, 0)


def test_minimum_two_split():
    assert minimum_two_split(7, 3) == (3, 2, 2)
    assert minimum_two_split(5, 3) is None


def test_candidates_give_every_group_a_coach_when_possible():
    for distribution in candidate_distributions(4, 3, 3):
        assert sum(distribution) == 4
        assert min(distribution) >= 1


def test_candidates_without_coaches():
    assert candidate_distributions(0, 3, 2) == [(0, 0, 0)]


def test_score_penalizes_single_coach_groups():
    assert score_distribution((2, 2), 2) > score_distribution((3, 1), 2)


def test_best_distribution_prefers_earlier_groups_on_tie():
    assert best_distribution(7, 3, 2) == (3, 2, 2)


def test_best_distribution_avoids_single_coach_groups():
    assert best_distribution(6, 3, 3) == (2, 2, 2)


def test_best_distribution_is_deterministic():
    assert best_distribution(11, 4, 3) == best_distribution(11, 4, 3)

"""Coach count per group.

A fixed set of candidate distributions is scored; the best score wins and
ties go to the lexicographically largest distribution, so earlier (faster)
groups receive the extra coaches. When there are at least as many coaches
as groups every candidate gives each group one coach.
"""

from __future__ import annotations

from loguru import logger

SINGLE_COACH_PENALTY = 100
AVERAGE_DEVIATION_WEIGHT = 10
PREFERRED_MATCH_BONUS = 5


def even_split(coach_count: int, group_count: int) -> tuple[int, ...]:
    base, remainder = divmod(coach_count, group_count)
    return tuple(base + 1 if index < remainder else base for index in range(group_count))


def _round_robin(distribution: list[int], remaining: int) -> None:
    index = 0
    while remaining > 0:
        distribution[index % len(distribution)] += 1
        remaining -= 1
        index += 1


def preferred_split(coach_count: int, group_count: int, preferred: int) -> tuple[int, ...]:
    """Fill groups toward ``preferred`` in order, then spread what is left."""
    floor = 1 if coach_count >= group_count else 0
    distribution = [floor] * group_count
    remaining = coach_count - floor * group_count
    for index in range(group_count):
        top_up = min(max(preferred - distribution[index], 0), remaining)
        distribution[index] += top_up
        remaining -= top_up
    _round_robin(distribution, remaining)
    return tuple(distribution)


def minimum_two_split(coach_count: int, group_count: int) -> tuple[int, ...] | None:
    """Two coaches per group with the rest spread; None if coaches run short."""
    if coach_count < 2 * group_count:
        return None
    distribution = [2] * group_count
    _round_robin(distribution, coach_count - 2 * group_count)
    return tuple(distribution)


def single_shifts(distribution: tuple[int, ...]) -> list[tuple[int, ...]]:
    """Every distribution reachable by moving one coach between two groups."""
    shifted: list[tuple[int, ...]] = []
    for source, count in enumerate(distribution):
        if count == 0:
            continue
        for target in range(len(distribution)):
            if target == source:
                continue
            candidate = list(distribution)
            candidate[source] -= 1
            candidate[target] += 1
            shifted.append(tuple(candidate))
    return shifted


def candidate_distributions(coach_count: int, group_count: int, preferred: int) -> list[tuple[int, ...]]:
    """Deterministic candidate coach distributions, duplicates removed."""
    if group_count <= 0:
        return []
    if coach_count <= 0:
        return [(0,) * group_count]

    even = even_split(coach_count, group_count)
    raw = [even, preferred_split(coach_count, group_count, preferred)]
    minimum_two = minimum_two_split(coach_count, group_count)
    if minimum_two is not None:
        raw.append(minimum_two)
    raw.extend(single_shifts(even))

    needs_coach = coach_count >= group_count
    seen: set[tuple[int, ...]] = set()
    candidates: list[tuple[int, ...]] = []
    for distribution in raw:
        if distribution in seen:
            continue
        if needs_coach and min(distribution) < 1:
            continue
        seen.add(distribution)
        candidates.append(distribution)
    return candidates


def score_distribution(distribution: tuple[int, ...], preferred: int) -> float:
    """Score a distribution; single-coach groups weigh heaviest."""
    if not distribution:
        return float("-inf")
    average = sum(distribution) / len(distribution)
    single = sum(1 for count in distribution if count == 1)
    exact = sum(1 for count in distribution if count == preferred)
    return (
        -SINGLE_COACH_PENALTY * single
        - AVERAGE_DEVIATION_WEIGHT * abs(average - preferred)
        + PREFERRED_MATCH_BONUS * exact
    )


def best_distribution(coach_count: int, group_count: int, preferred: int) -> tuple[int, ...]:
    """Pick the highest scoring coach distribution.

    Args:
        coach_count: Coaches available
        group_count: Number of groups
        preferred: Preferred coaches per group

    Returns:
        Coaches per group, in group order
    """
    candidates = candidate_distributions(coach_count, group_count, preferred)
    if not candidates:
        return ()
    best = max(candidates, key=lambda dist: (score_distribution(dist, preferred), dist))
    logger.debug(f"[GROUPS] Coach distribution {best} chosen from {len(candidates)} candidates")
    return best

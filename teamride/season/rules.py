"""Practice rule lookups.

Rule precedence for a calendar date:
1. A single-date rule for that exact date wins outright
2. Otherwise the first recurring rule on that weekday
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from teamride.season.models import PracticeRule, SeasonSettings
from teamride.utils.dates import DAYS_OF_WEEK, format_date_key, normalize_time_value, parse_iso_date, weekday_index

_AUTO_DESCRIPTION_MARKERS = ("morning practice", "afternoon practice", "evening practice")


@dataclass(frozen=True)
class ExcludedPracticeDays:
    """Weekdays and single dates whose practices are skipped by the planner."""

    weekdays: frozenset[int] = field(default_factory=frozenset)
    specific_dates: frozenset[str] = field(default_factory=frozenset)


def recurring_rules_for_weekday(rules: list[PracticeRule], weekday: int) -> list[PracticeRule]:
    return [rule for rule in rules if not rule.is_single and rule.day_of_week == weekday]


def find_rule_for_date(rules: list[PracticeRule], value: str | date | None) -> PracticeRule | None:
    """Resolve the rule governing a calendar date.

    Args:
        rules: Ordered practice rules
        value: ISO date string or date

    Returns:
        Matching rule, or None when no rule lands on the date
    """
    day = parse_iso_date(value)
    if day is None:
        return None

    key = format_date_key(day)
    for rule in rules:
        if rule.specific_date == key:
            return rule

    recurring = recurring_rules_for_weekday(rules, weekday_index(day))
    return recurring[0] if recurring else None


def is_date_excluded_from_planner(settings: SeasonSettings, value: str | date | None) -> bool:
    """Check whether a practice date belongs to a series hidden from the planner.

    A single-date rule decides on its own. For recurring rules the date is
    excluded only when every rule on that weekday is excluded.
    """
    if not settings.rules:
        return False
    day = parse_iso_date(value)
    if day is None:
        return False

    key = format_date_key(day)
    for rule in settings.rules:
        if rule.specific_date == key:
            return rule.exclude_from_planner

    recurring = recurring_rules_for_weekday(settings.rules, weekday_index(day))
    if recurring:
        return all(rule.exclude_from_planner for rule in recurring)
    return False


def excluded_practice_days(settings: SeasonSettings) -> ExcludedPracticeDays:
    weekdays: set[int] = set()
    specific_dates: set[str] = set()
    for rule in settings.rules:
        if not rule.exclude_from_planner:
            continue
        if rule.specific_date:
            specific_dates.add(rule.specific_date)
        elif rule.day_of_week is not None:
            weekdays.add(rule.day_of_week)
    return ExcludedPracticeDays(weekdays=frozenset(weekdays), specific_dates=frozenset(specific_dates))


def rule_day_name(rule: PracticeRule) -> str | None:
    if rule.specific_date:
        day = parse_iso_date(rule.specific_date)
        return DAYS_OF_WEEK[weekday_index(day)] if day else None
    if rule.day_of_week is not None:
        return DAYS_OF_WEEK[rule.day_of_week]
    return None


def describe_practice(day_name: str | None, time_str: str | None) -> str:
    """Build the default practice description, e.g. "Monday afternoon practice".

    Before noon is morning, before 17:00 afternoon, later is evening.
    """
    if not day_name or not time_str:
        return "Practice"

    normalized = normalize_time_value(time_str)
    if not normalized:
        return "Practice"
    hour, minute = (int(part) for part in normalized.split(":"))
    total_minutes = hour * 60 + minute

    if total_minutes < 12 * 60:
        time_of_day = "morning practice"
    elif total_minutes < 17 * 60:
        time_of_day = "afternoon practice"
    else:
        time_of_day = "evening practice"
    return f"{day_name} {time_of_day}"


def is_auto_description(text: str) -> bool:
    """Whether a description was generated (and may be regenerated)."""
    stripped = text.strip()
    if not stripped:
        return True
    return (
        any(marker in stripped for marker in _AUTO_DESCRIPTION_MARKERS)
        or stripped.startswith("Weekly Practice")
        or stripped == "Practice"
    )


def refresh_rule_description(rule: PracticeRule) -> PracticeRule:
    """Regenerate an auto description after the rule's day or time changed.

    Hand-written descriptions are kept.
    """
    if not is_auto_description(rule.description):
        return rule
    day_name = rule_day_name(rule)
    if not day_name or not rule.time:
        return rule
    return rule.model_copy(update={"description": describe_practice(day_name, rule.time)})


def normalize_rule_entry(raw: Mapping[str, Any] | None) -> PracticeRule | None:
    """Leniently read a stored practice rule.

    Accepts ``day``/``weekday`` aliases for the weekday and ``startTime`` for
    the start time. Rules without a usable day (or date) and start time are
    dropped.

    Args:
        raw: Stored rule dictionary

    Returns:
        PracticeRule, or None if the entry cannot be used
    """
    if not isinstance(raw, Mapping):
        return None

    data = dict(raw)
    specific_date = data.get("specificDate", data.get("specific_date"))
    time_value = normalize_time_value(data.get("time") or data.get("startTime") or "")
    if not time_value:
        logger.debug(f"[RULES] Dropping practice rule without start time: id={data.get('id')}")
        return None

    if not specific_date:
        weekday = _coerce_weekday(data)
        if weekday is None:
            logger.debug(f"[RULES] Dropping practice rule without valid weekday: id={data.get('id')}")
            return None
        data["dayOfWeek"] = weekday
    else:
        data.pop("dayOfWeek", None)
    data.pop("day_of_week", None)
    data.pop("day", None)
    data.pop("weekday", None)
    data.pop("startTime", None)
    data["time"] = time_value

    for coord, snake in (("locationLat", "location_lat"), ("locationLng", "location_lng")):
        data[coord] = _coerce_float(data.pop(snake, None) if coord not in data else data.get(coord))

    try:
        return PracticeRule.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(f"[RULES] Dropping invalid practice rule id={data.get('id')}: {e.error_count()} errors")
        return None


def _coerce_weekday(data: dict[str, Any]) -> int | None:
    for key in ("dayOfWeek", "day_of_week", "day", "weekday"):
        value = data.get(key)
        if value is None or value == "":
            continue
        try:
            weekday = int(value)
        except (TypeError, ValueError):
            continue
        if 0 <= weekday <= 6:
            return weekday
        return None
    return None


def _coerce_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None

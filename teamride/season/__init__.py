"""Season rule store: window, practice rules and roster filters."""

from teamride.season.models import PracticeRule, RosterFilter, RosterFilterType, SeasonSettings, SeasonWindow
from teamride.season.rules import find_rule_for_date, is_date_excluded_from_planner

__all__ = [
    "PracticeRule",
    "RosterFilter",
    "RosterFilterType",
    "SeasonSettings",
    "SeasonWindow",
    "find_rule_for_date",
    "is_date_excluded_from_planner",
]

"""Shared fixtures for the teamride test suite."""

import pytest

from teamride.groups.models import GroupSettings
from teamride.season.models import PracticeRule, SeasonSettings


@pytest.fixture
def monday_rule() -> PracticeRule:
    return PracticeRule(id="mon", day_of_week=1, time="15:30", end_time="17:30", meet_location="School lot")


@pytest.fixture
def september_season(monday_rule: PracticeRule) -> SeasonSettings:
    """Season 2024-09-02..2024-09-30 with a Monday 15:30 practice."""
    return SeasonSettings(start_date="2024-09-02", end_date="2024-09-30", rules=[monday_rule])


@pytest.fixture
def group_settings() -> GroupSettings:
    return GroupSettings()

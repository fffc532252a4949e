"""Season settings schema.

Season window, practice rules and roster filters as stored by the settings
collaborator. Stored JSON uses camelCase keys (``dayOfWeek``,
``specificDate``, ``rosterFilter`` ...); snake_case is accepted too.
The core only reads these models.
"""

from __future__ import annotations

import uuid
from datetime import date
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from teamride.utils.dates import date_key, normalize_time_value, parse_iso_date

_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RosterFilterType(StrEnum):
    """Dimension a practice rule narrows its roster on."""

    NONE = "none"
    GRADE = "grade"
    GENDER = "gender"
    RACING_GROUP = "racingGroup"


class RosterFilter(BaseModel):
    """Rule-level predicate narrowing which riders are expected at a practice.

    Attributes:
        filter_type: Active filter dimension
        values: Allowed values for the active dimension
    """

    model_config = _CAMEL_CONFIG

    filter_type: RosterFilterType = RosterFilterType.NONE
    values: list[str] = Field(default_factory=list, validation_alias=AliasChoices("values", "allowedValues"))

    @property
    def is_active(self) -> bool:
        return self.filter_type != RosterFilterType.NONE


class PracticeRule(BaseModel):
    """Declarative practice rule: recurring weekday or a single date.

    A rule with ``specific_date`` is a single practice and wins over any
    recurring rule landing on the same date.

    Attributes:
        id: Rule identifier
        day_of_week: Weekday for recurring rules (0 = Sunday)
        specific_date: ISO date for single practices
        time: Start time (HH:MM)
        end_time: End time (HH:MM, may be empty)
        description: Practice description, copied to practice goals
        meet_location: Meeting place text
        location_lat: Optional latitude of the meeting place
        location_lng: Optional longitude of the meeting place
        roster_filter: Optional roster narrowing for this rule
        exclude_from_planner: Practice shows on the calendar but is skipped
            when picking the next practice to plan
    """

    model_config = _CAMEL_CONFIG

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    specific_date: str | None = None
    time: str = ""
    end_time: str = ""
    description: str = ""
    meet_location: str = ""
    location_lat: float | None = None
    location_lng: float | None = None
    roster_filter: RosterFilter | None = None
    exclude_from_planner: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("specific_date", mode="before")
    @classmethod
    def normalize_specific_date(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        key = date_key(value)
        if key is None:
            raise ValueError(f"Invalid specific date: {value!r}")
        return key

    @field_validator("time", "end_time", mode="before")
    @classmethod
    def normalize_time(cls, value: str | None) -> str:
        return normalize_time_value(value)

    @model_validator(mode="after")
    def require_day_or_date(self) -> PracticeRule:
        if self.specific_date is None and self.day_of_week is None:
            raise ValueError("Practice must have either a day of week or a specific date")
        if self.specific_date is not None:
            self.day_of_week = None
        return self

    @property
    def is_single(self) -> bool:
        return self.specific_date is not None


class SeasonWindow(BaseModel):
    """Inclusive season date range; unset when either bound is empty."""

    model_config = _CAMEL_CONFIG

    start_date: str = ""
    end_date: str = ""

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_bound(cls, value: str | None) -> str:
        return _normalize_season_bound(value)

    @model_validator(mode="after")
    def check_order(self) -> SeasonWindow:
        _check_season_order(self.start_date, self.end_date)
        return self

    @property
    def is_set(self) -> bool:
        return bool(self.start_date and self.end_date)

    def bounds(self) -> tuple[date, date] | None:
        if not self.is_set:
            return None
        start = parse_iso_date(self.start_date)
        end = parse_iso_date(self.end_date)
        if start is None or end is None:
            return None
        return start, end


class SeasonSettings(BaseModel):
    """Season window plus the ordered practice rules.

    Attributes:
        start_date: Season start (ISO, may be empty)
        end_date: Season end (ISO, may be empty)
        rules: Ordered practice rules (stored under ``practices``)
    """

    model_config = _CAMEL_CONFIG

    start_date: str = ""
    end_date: str = ""
    rules: list[PracticeRule] = Field(default_factory=list, validation_alias=AliasChoices("rules", "practices"))

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_bound(cls, value: str | None) -> str:
        return _normalize_season_bound(value)

    @model_validator(mode="after")
    def check_order(self) -> SeasonSettings:
        _check_season_order(self.start_date, self.end_date)
        return self

    @property
    def window(self) -> SeasonWindow:
        return SeasonWindow(start_date=self.start_date, end_date=self.end_date)


def _normalize_season_bound(value: str | None) -> str:
    if not value:
        return ""
    key = date_key(value)
    if key is None:
        raise ValueError(f"Invalid season date: {value!r}")
    return key


def _check_season_order(start_date: str, end_date: str) -> None:
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    if start is not None and end is not None and start > end:
        raise ValueError(f"Season start {start_date} is after season end {end_date}")

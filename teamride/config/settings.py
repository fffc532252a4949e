import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from teamride.groups.models import GroupSettings

LOG_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"})


def default_database_url() -> str:
    """``DATABASE_URL`` if set, else a SQLite file next to the package (absolute path)."""
    url = os.getenv("DATABASE_URL", "")
    if url:
        return url
    db_file = (Path(__file__).resolve().parent.parent.parent / "teamride.db").resolve()
    logger.info(f"[CONFIG] DATABASE_URL not set, using SQLite at {db_file}")
    return f"sqlite:///{db_file}"


class Settings(BaseSettings):
    database_url: str = Field(default_factory=default_database_url, validation_alias="DATABASE_URL")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="", validation_alias="LOG_FILE")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    # Auto-assign defaults (overridable per request)
    riders_per_coach: int = Field(default=6, ge=1, le=20, validation_alias="RIDERS_PER_COACH")
    min_leader_level: int = Field(default=2, ge=1, le=3, validation_alias="MIN_LEADER_LEVEL")
    preferred_coaches_per_group: int = Field(default=3, ge=1, le=10, validation_alias="PREFERRED_COACHES_PER_GROUP")
    preferred_group_size_min: int = Field(default=4, ge=1, le=30, validation_alias="PREFERRED_GROUP_SIZE_MIN")
    preferred_group_size_max: int = Field(default=8, ge=1, le=30, validation_alias="PREFERRED_GROUP_SIZE_MAX")
    max_improvement_rounds: int = Field(
        default=50,
        ge=0,
        le=500,
        validation_alias="MAX_IMPROVEMENT_ROUNDS",
        description="Upper bound on rider pace-peer improvement passes",
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Unknown levels fall back to INFO instead of failing startup."""
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            logger.warning(f"[CONFIG] LOG_LEVEL={value!r} is not a loguru level, using INFO")
            return "INFO"
        return level

    @model_validator(mode="after")
    def order_group_size_range(self) -> "Settings":
        low, high = self.preferred_group_size_min, self.preferred_group_size_max
        if low > high:
            logger.warning(f"[CONFIG] PREFERRED_GROUP_SIZE_MIN={low} > PREFERRED_GROUP_SIZE_MAX={high}, swapping")
            self.preferred_group_size_min, self.preferred_group_size_max = high, low
        return self

    def group_settings(self) -> GroupSettings:
        """Default auto-assign settings from the environment."""
        return GroupSettings(
            riders_per_coach=self.riders_per_coach,
            min_leader_level=self.min_leader_level,
            preferred_coaches_per_group=self.preferred_coaches_per_group,
            preferred_group_size=(self.preferred_group_size_min, self.preferred_group_size_max),
            max_improvement_rounds=self.max_improvement_rounds,
        )


settings = Settings()

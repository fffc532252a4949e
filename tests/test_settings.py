"""Tests for environment-driven settings."""

from teamride.config.settings import Settings


def test_group_settings_from_environment(monkeypatch):
    monkeypatch.setenv("RIDERS_PER_COACH", "4")
    monkeypatch.setenv("PREFERRED_GROUP_SIZE_MIN", "10")
    monkeypatch.setenv("PREFERRED_GROUP_SIZE_MAX", "5")

    group_settings = Settings().group_settings()

    assert group_settings.riders_per_coach == 4
    assert group_settings.preferred_group_size == (5, 10)


def test_invalid_log_level_falls_back(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert Settings().log_level == "INFO"


def test_database_url_override(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/test.db")
    assert Settings().database_url == "sqlite:///tmp/test.db"

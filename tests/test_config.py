"""Tests for settings and the clock helpers."""

from datetime import date

import pytest

from price_comparator import config
from price_comparator.config import (
    DEFAULT_TIMEZONE,
    Settings,
    get_settings,
    recency_cutoff,
    reset_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_defaults(monkeypatch):
    for name in ("PRICE_DATA_DIR", "PRICE_TIMEZONE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.data_dir == "./data"
    assert settings.timezone == DEFAULT_TIMEZONE
    assert settings.log_level == "INFO"


def test_from_environment(monkeypatch):
    monkeypatch.setenv("PRICE_DATA_DIR", "/srv/prices")
    monkeypatch.setenv("PRICE_TIMEZONE", "UTC")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings == Settings("/srv/prices", "UTC", "DEBUG")


def test_unknown_timezone_falls_back(monkeypatch):
    monkeypatch.setenv("PRICE_TIMEZONE", "Mars/Olympus_Mons")
    assert Settings.from_env().timezone == DEFAULT_TIMEZONE


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("PRICE_DATA_DIR", "/first")
    first = get_settings()
    monkeypatch.setenv("PRICE_DATA_DIR", "/second")
    assert get_settings() is first
    reset_settings()
    assert get_settings().data_dir == "/second"


def test_recency_cutoff_is_seven_days():
    assert recency_cutoff(date(2025, 5, 8)) == date(2025, 5, 1)


def test_today_in_timezone():
    assert isinstance(config.today_in("UTC"), date)

"""
Configuration for the Price Comparator

Settings come from the environment (a local .env file is loaded first):
- PRICE_DATA_DIR: directory holding the store CSV exports (default ./data)
- PRICE_TIMEZONE: timezone that decides what "today" is (default Europe/Bucharest)
- LOG_LEVEL: root logging level (default INFO)
"""

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional

import pytz
from dotenv import load_dotenv

# Price observations older than this are not "current"
RECENCY_WINDOW = timedelta(days=7)

DEFAULT_DATA_DIR = "./data"
DEFAULT_TIMEZONE = "Europe/Bucharest"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

Clock = Callable[[], date]


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment"""
    data_dir: str = DEFAULT_DATA_DIR
    timezone: str = DEFAULT_TIMEZONE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Unknown timezones fall back to the default zone with a warning
        instead of failing the whole application.
        """
        timezone = os.getenv("PRICE_TIMEZONE", DEFAULT_TIMEZONE)
        try:
            pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError:
            logging.getLogger(__name__).warning(
                f"Unknown timezone '{timezone}', using {DEFAULT_TIMEZONE}"
            )
            timezone = DEFAULT_TIMEZONE

        return cls(
            data_dir=os.getenv("PRICE_DATA_DIR", DEFAULT_DATA_DIR),
            timezone=timezone,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def today_in(timezone: str) -> date:
    """Current calendar date in the given timezone"""
    return datetime.now(pytz.timezone(timezone)).date()


def default_clock() -> date:
    return today_in(get_settings().timezone)


def recency_cutoff(today: date) -> date:
    """Oldest observation date still inside the recency window (inclusive)"""
    return today - RECENCY_WINDOW


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for command line entry points."""
    logging.basicConfig(
        level=getattr(logging, (level or get_settings().log_level), logging.INFO),
        format=LOG_FORMAT,
    )


# Convenience function for global access
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance.
    Loads .env and reads the environment on first use.
    """
    global _settings

    if _settings is None:
        load_dotenv()
        _settings = Settings.from_env()

    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None

# File: calendar_modular/core/config_manager.py
"""
Centralized configuration management for Calendar Modular.
Loads settings from environment variables (and a local .env file).
"""

import os
from pathlib import Path
from typing import List

import pytz
from dotenv import load_dotenv

from calendar_modular.utils.logger import setup_logger

# Load environment variables
load_dotenv()

logger = setup_logger(__name__)


class Config:
    """Application configuration singleton."""

    # Base directories
    BASE_DIR = Path(__file__).parent.parent.parent  # Go up 3 levels from calendar_modular/core/

    DATA_DIR = BASE_DIR / "data"
    OUTPUT_DIR = BASE_DIR / "output"

    # Files
    DB_FILE = Path(os.getenv("CALENDAR_DB", str(DATA_DIR / "calendar.db")))
    EXPORT_FILE = Path(os.getenv("EXPORT_FILE", str(OUTPUT_DIR / "schedule.ics")))
    TOKEN_FILE = BASE_DIR / "token.json"
    CREDENTIALS_FILE = BASE_DIR / "credentials.json"

    # Schedule settings
    TARGET_TIMEZONE = os.getenv("TIMEZONE", "America/New_York")
    CALENDAR_NAME = os.getenv("CALENDAR_NAME", "My Class Schedule")
    SNAP_MINUTES = int(os.getenv("SNAP_MINUTES", "15"))
    DEFAULT_USER_ID = os.getenv("CALENDAR_USER_ID", "local")

    # iCalendar identity
    PRODID = "-//Calendar Modular//EN"
    UID_DOMAIN = "calendar-modular.app"

    # Google Calendar sink
    GENERATOR_ID = "Calendar_Modular_Export_v1"
    GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")
    GOOGLE_SCOPES: List[str] = [
        'https://www.googleapis.com/auth/calendar',
    ]

    @classmethod
    def tz(cls) -> pytz.BaseTzInfo:
        """Return the configured pytz timezone."""
        return pytz.timezone(cls.TARGET_TIMEZONE)

    @classmethod
    def validate(cls) -> bool:
        """Validate that all required configuration is present and sane."""
        errors = []

        if cls.TARGET_TIMEZONE not in pytz.all_timezones_set:
            errors.append(f"Unknown timezone '{cls.TARGET_TIMEZONE}'")

        if cls.SNAP_MINUTES <= 0 or (24 * 60) % cls.SNAP_MINUTES != 0:
            errors.append(f"SNAP_MINUTES must divide a day evenly, got {cls.SNAP_MINUTES}")

        if not cls.CALENDAR_NAME.strip():
            errors.append("CALENDAR_NAME is empty")

        if errors:
            for error in errors:
                logger.error(f"Configuration Error: {error}")
            return False

        return True

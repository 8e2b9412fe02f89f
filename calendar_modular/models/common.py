# File: calendar_modular/models/common.py

from datetime import datetime, time
from typing import Optional, Union

import pytz

def parse_iso_datetime(date_str: Optional[str]) -> Optional[datetime]:
    """Robustly parse ISO date strings with 'Z' or offsets."""
    if not date_str:
        return None
    try:
        # specific fix for Python < 3.11 which doesn't handle 'Z' natively in fromisoformat
        clean_str = date_str.replace('Z', '+00:00')
        return datetime.fromisoformat(clean_str)
    except ValueError:
        # Fallback for simple date strings without time
        try:
            return datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError:
            return None


def parse_time_of_day(value: Union[str, time, None]) -> Optional[time]:
    """Parse "HH:MM" or "HH:MM:SS" (24-hour) into a time."""
    if value is None or isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def localize(naive: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """Attach tz to a naive wall-clock datetime; aware values are converted instead."""
    if naive.tzinfo is not None:
        return naive.astimezone(tz)
    return tz.localize(naive)

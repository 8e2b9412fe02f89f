# File: calendar_modular/models/enums.py

from datetime import date
from enum import Enum

from .errors import InvalidRecurrencePattern


class Weekday(Enum):
    """
    Closed weekday tag vocabulary, Sunday through Saturday.

    Tag  Day        Index  iCalendar
    U    Sunday     0      SU
    M    Monday     1      MO
    T    Tuesday    2      TU
    W    Wednesday  3      WE
    R    Thursday   4      TH
    F    Friday     5      FR
    S    Saturday   6      SA

    Index follows the Sunday-first convention of the extraction records,
    not Python's Monday-first date.weekday().
    """
    SUNDAY = "U"
    MONDAY = "M"
    TUESDAY = "T"
    WEDNESDAY = "W"
    THURSDAY = "R"
    FRIDAY = "F"
    SATURDAY = "S"

    @property
    def index(self) -> int:
        return _ORDER.index(self)

    @property
    def ical_code(self) -> str:
        return self.name[:2]

    @classmethod
    def from_index(cls, index: int) -> 'Weekday':
        return _ORDER[index % 7]

    @classmethod
    def from_date(cls, day: date) -> 'Weekday':
        """Map a calendar date to its tag (date.weekday() is Monday=0)."""
        return _ORDER[(day.weekday() + 1) % 7]

    @classmethod
    def parse(cls, raw) -> 'Weekday':
        """Accept a tag, an English day name or abbreviation, or an iCalendar code."""
        if isinstance(raw, Weekday):
            return raw
        text = str(raw).strip()
        if text in _BY_TAG:
            return _BY_TAG[text]
        lowered = text.lower()
        for day in _ORDER:
            name = day.name.lower()
            if lowered in (name, name[:3], name[:2]):
                return day
        raise InvalidRecurrencePattern(f"Unrecognized weekday tag: {raw!r}")


_ORDER = (
    Weekday.SUNDAY,
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
)
_BY_TAG = {day.value: day for day in _ORDER}


class BlockKind(Enum):
    """The two block kinds. Fixed blocks recur and never move."""
    FIXED = "fixed"
    FLEXIBLE = "flexible"


class RejectionReason(Enum):
    """Why the mutation guard refused a proposed move or resize."""
    IMMUTABLE_BLOCK = "ImmutableBlock"
    INVALID_INTERVAL = "InvalidInterval"

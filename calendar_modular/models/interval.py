# File: calendar_modular/models/interval.py
"""
Half-open time interval and inclusive date window primitives.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator

import pytz

from .errors import InvalidInterval


@dataclass(frozen=True)
class TimeInterval:
    """A half-open [start, end) span between two instants."""
    start: datetime
    end: datetime

    def __post_init__(self):
        """Reject zero or negative durations."""
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise InvalidInterval(
                f"Cannot mix naive and aware instants: {self.start!r} / {self.end!r}"
            )
        if self.start >= self.end:
            raise InvalidInterval(
                f"Interval start must be before end: {self.start.isoformat()} >= {self.end.isoformat()}"
            )

    def duration_minutes(self) -> int:
        """Calculate interval duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: 'TimeInterval') -> bool:
        """Touching endpoints do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def shifted(self, delta: timedelta) -> 'TimeInterval':
        return TimeInterval(self.start + delta, self.end + delta)

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
        }


@dataclass(frozen=True)
class DateWindow:
    """Inclusive [start, end] range of calendar dates visible on screen."""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidInterval(
                f"Window start must not be after end: {self.start} > {self.end}"
            )

    def days(self) -> Iterator[date]:
        """Yield every calendar date in the window, in order."""
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def as_interval(self, tz: pytz.BaseTzInfo) -> TimeInterval:
        """Instant span from local midnight of start to local midnight after end."""
        return TimeInterval(
            tz.localize(datetime.combine(self.start, time.min)),
            tz.localize(datetime.combine(self.end + timedelta(days=1), time.min)),
        )

    @classmethod
    def week_of(cls, anchor: date) -> 'DateWindow':
        """Sunday-to-Saturday week containing anchor."""
        start = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
        return cls(start, start + timedelta(days=6))

# File: calendar_modular/models/blocks.py
"""
Block model: recurring fixed blocks, single-occurrence flexible blocks,
and the groups fixed blocks are extracted into.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, time
from typing import FrozenSet, Iterable, Optional, Union

import pytz

from .common import parse_iso_datetime, parse_time_of_day, localize
from .enums import BlockKind, Weekday
from .errors import InvalidInterval, InvalidRecurrencePattern
from .interval import TimeInterval


@dataclass(frozen=True)
class FixedBlock:
    """One recurring, immovable commitment (e.g. a class section)."""
    id: str
    label: str
    days_of_week: FrozenSet[Weekday]
    daily_start: time
    daily_end: time
    location: Optional[str] = None
    secondary_info: Optional[str] = None
    visible: bool = True
    group_id: Optional[str] = None

    def __post_init__(self):
        """Normalize day tags and time strings, then validate."""
        object.__setattr__(self, 'days_of_week', parse_days(self.days_of_week))

        start = parse_time_of_day(self.daily_start)
        end = parse_time_of_day(self.daily_end)
        if start is None or end is None:
            raise InvalidInterval(
                f"Unparseable daily time range for '{self.label}': "
                f"{self.daily_start!r}-{self.daily_end!r}"
            )
        # Midnight-crossing ranges are not supported
        if start >= end:
            raise InvalidInterval(
                f"Daily start must be before daily end for '{self.label}': "
                f"{start.strftime('%H:%M')} >= {end.strftime('%H:%M')}"
            )
        object.__setattr__(self, 'daily_start', start)
        object.__setattr__(self, 'daily_end', end)

    @property
    def kind(self) -> BlockKind:
        return BlockKind.FIXED

    def duration_minutes(self) -> int:
        return (
            (self.daily_end.hour * 60 + self.daily_end.minute)
            - (self.daily_start.hour * 60 + self.daily_start.minute)
        )

    def occurs_on(self, weekday: Weekday) -> bool:
        return weekday in self.days_of_week

    def sorted_days(self) -> list:
        return sorted(self.days_of_week, key=lambda d: d.index)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and debugging."""
        return {
            'id': self.id,
            'label': self.label,
            'days_of_week': [d.value for d in self.sorted_days()],
            'daily_start': self.daily_start.strftime('%H:%M'),
            'daily_end': self.daily_end.strftime('%H:%M'),
            'location': self.location,
            'secondary_info': self.secondary_info,
            'visible': self.visible,
            'group_id': self.group_id,
        }


@dataclass(frozen=True)
class FlexibleBlock:
    """One concrete, user-movable personal event."""
    id: str
    label: str
    occurrence: TimeInterval
    notes: Optional[str] = None
    location_text: Optional[str] = None
    category_tag: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.occurrence, TimeInterval):
            raise InvalidInterval(f"Flexible block '{self.label}' needs a TimeInterval")

    @property
    def kind(self) -> BlockKind:
        return BlockKind.FLEXIBLE

    def moved_to(self, interval: TimeInterval) -> 'FlexibleBlock':
        """Return a copy at the new interval; the original is left untouched."""
        return replace(self, occurrence=interval)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'label': self.label,
            'start': self.occurrence.start.isoformat(),
            'end': self.occurrence.end.isoformat(),
            'notes': self.notes,
            'location_text': self.location_text,
            'category_tag': self.category_tag,
        }


Block = Union[FixedBlock, FlexibleBlock]


@dataclass
class BlockGroup:
    """All fixed blocks extracted from one upload (a "schedule track")."""
    id: str
    name: str
    source_filename: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)


def parse_days(raw: Union[str, Iterable, None]) -> FrozenSet[Weekday]:
    """
    Parse a day pattern into a non-empty set of Weekday tags.

    Accepts a list of tags/names, a comma separated string, or a compact
    tag string such as "MWF" or "TR".
    """
    if raw is None:
        raise InvalidRecurrencePattern("Day pattern is missing")
    if isinstance(raw, str):
        text = raw.strip()
        if ',' in text:
            items = [part for part in text.split(',') if part.strip()]
        elif text and all(ch in 'UMTWRFS' for ch in text):
            items = list(text)
        else:
            items = [text] if text else []
    else:
        items = list(raw)

    days = frozenset(Weekday.parse(item) for item in items)
    if not days:
        raise InvalidRecurrencePattern("Day pattern must contain at least one weekday")
    return days


def _parse_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ['yes', 'true', '1', 'y', 't']


def fixed_block_from_dict(data: dict, group_id: Optional[str] = None) -> FixedBlock:
    """
    Create FixedBlock from an extraction or store record.

    Understands both the canonical field names and the extraction shape
    (course_name/course_code/section/instructor/days/start_time/end_time).
    Raises ScheduleValidationError subclasses for invalid records.
    """
    label = data.get('label')
    if not label:
        name = str(data.get('course_name') or 'Untitled Class').strip()
        code = data.get('course_code')
        label = f"{code}: {name}" if code else name

    secondary_info = data.get('secondary_info')
    if secondary_info is None:
        parts = []
        if data.get('section'):
            parts.append(f"Section: {data['section']}")
        if data.get('instructor'):
            parts.append(f"Instructor: {data['instructor']}")
        secondary_info = '\n'.join(parts) or None

    if 'visible' in data:
        visible = _parse_bool(data.get('visible'), True)
    else:
        visible = not _parse_bool(data.get('is_hidden'), False)

    return FixedBlock(
        id=str(data.get('id') or uuid.uuid4()),
        label=str(label),
        days_of_week=data.get('days_of_week', data.get('days')),
        daily_start=data.get('daily_start', data.get('start_time')),
        daily_end=data.get('daily_end', data.get('end_time')),
        location=data.get('location') or None,
        secondary_info=secondary_info,
        visible=visible,
        group_id=data.get('group_id', data.get('track_id')) or group_id,
    )


def flexible_block_from_dict(data: dict, tz: Optional[pytz.BaseTzInfo] = None) -> FlexibleBlock:
    """
    Create FlexibleBlock from a store or form record.

    Naive timestamps are read as wall-clock time in tz (UTC when omitted).
    """
    tz = tz or pytz.utc
    raw_start = data.get('start', data.get('start_time'))
    raw_end = data.get('end', data.get('end_time'))
    start = raw_start if isinstance(raw_start, datetime) else parse_iso_datetime(raw_start)
    end = raw_end if isinstance(raw_end, datetime) else parse_iso_datetime(raw_end)
    if start is None or end is None:
        raise InvalidInterval(
            f"Unparseable event times for '{data.get('label', data.get('title'))}': {raw_start!r}-{raw_end!r}"
        )

    return FlexibleBlock(
        id=str(data.get('id') or uuid.uuid4()),
        label=str(data.get('label', data.get('title')) or 'Untitled Event'),
        occurrence=TimeInterval(localize(start, tz), localize(end, tz)),
        notes=data.get('notes', data.get('description')) or None,
        location_text=data.get('location_text', data.get('location')) or None,
        category_tag=data.get('category_tag', data.get('category')) or None,
    )

# File: calendar_modular/services/ics_serializer.py
"""
iCalendar (RFC 5545) export and import.

Export renders concrete occurrences as one VEVENT each, with instants
stamped in UTC. Fixed-block recurrences are collapsed to one event per
weekday, so the document describes a typical week rather than repeating it.
"""

import datetime
import re
import uuid
from typing import Iterable, List, Optional

import pytz
from icalendar import Calendar, Event

from calendar_modular.core.config_manager import Config
from calendar_modular.models import (
    BlockKind,
    ConcreteOccurrence,
    FixedBlock,
    FlexibleBlock,
    ImportResult,
    InvalidInterval,
    RecordError,
    ScheduleValidationError,
    TimeInterval,
    localize,
)
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)

# Control characters other than tab and newline
_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b-\x1f\x7f]')


def clean_text(value: Optional[str], field: str = "text") -> Optional[str]:
    """
    Best-effort correction of text that cannot be represented in the document.

    Unencodable code points are replaced and control characters stripped;
    export carries on with the corrected value. Escaping of backslashes,
    semicolons, commas and newlines is left to icalendar's vText.
    """
    if value is None:
        return None
    text = str(value).replace('\r\n', '\n').replace('\r', '\n')
    cleaned = text.encode('utf-8', errors='replace').decode('utf-8')
    cleaned = _CONTROL_CHARS.sub('', cleaned)
    if cleaned != text:
        logger.warning(f"Corrected unencodable characters in {field}: {cleaned!r}")
    return cleaned


def collapse_recurrences(occurrences: Iterable[ConcreteOccurrence]) -> List[ConcreteOccurrence]:
    """Keep the earliest fixed occurrence per (block, weekday); flexible ones pass through."""
    kept: List[ConcreteOccurrence] = []
    seen = set()
    for occurrence in sorted(occurrences, key=lambda o: (o.interval.start, o.occurrence_id)):
        if occurrence.source_kind == BlockKind.FIXED:
            key = (occurrence.source_id, occurrence.weekday)
            if key in seen:
                continue
            seen.add(key)
        kept.append(occurrence)
    return kept


def _to_utc(moment: datetime.datetime) -> datetime.datetime:
    if moment.tzinfo is None:
        moment = Config.tz().localize(moment)
    return moment.astimezone(pytz.utc)


def _build_event(occurrence: ConcreteOccurrence, stamp: datetime.datetime) -> Event:
    event = Event()
    event.add('uid', f"{occurrence.occurrence_id}@{Config.UID_DOMAIN}")
    event.add('dtstamp', stamp)
    event.add('dtstart', _to_utc(occurrence.interval.start))
    event.add('dtend', _to_utc(occurrence.interval.end))
    event.add('summary', clean_text(occurrence.label, 'summary'))

    location = occurrence.metadata.get('location')
    if location:
        event.add('location', clean_text(location, 'location'))

    description = occurrence.metadata.get('notes') or occurrence.metadata.get('secondary_info')
    if description:
        event.add('description', clean_text(description, 'description'))

    category = occurrence.metadata.get('category')
    if category:
        event.add('categories', [clean_text(category, 'category')])

    event.add('status', 'CONFIRMED')
    event.add('sequence', 0)
    return event


def serialize(
    occurrences: Iterable[ConcreteOccurrence],
    calendar_name: str,
    timezone_name: Optional[str] = None,
    now: Optional[datetime.datetime] = None
) -> str:
    """
    Render occurrences as an iCalendar document.

    Args:
        occurrences: Visible occurrences (hidden blocks already excluded)
        calendar_name: X-WR-CALNAME shown by the importing client
        timezone_name: X-WR-TIMEZONE hint (default: Config.TARGET_TIMEZONE)
        now: Creation timestamp for DTSTAMP (default: current UTC time)

    Returns:
        CRLF-delimited iCalendar text; an empty VCALENDAR when there is nothing to export
    """
    stamp = _to_utc(now) if now else datetime.datetime.now(pytz.utc)

    cal = Calendar()
    cal.add('prodid', Config.PRODID)
    cal.add('version', '2.0')
    cal.add('x-wr-calname', clean_text(calendar_name, 'calendar name'))
    cal.add('x-wr-timezone', timezone_name or Config.TARGET_TIMEZONE)
    cal.add('calscale', 'GREGORIAN')
    cal.add('method', 'PUBLISH')

    events = collapse_recurrences(occurrences)
    for occurrence in events:
        cal.add_component(_build_event(occurrence, stamp))

    logger.info(f"Serialized {len(events)} events into calendar '{calendar_name}'")
    return cal.to_ical().decode('utf-8')


# ==================== Import ====================

def _strip_uid(raw_uid) -> str:
    if not raw_uid:
        return str(uuid.uuid4())
    return str(raw_uid).split('@', 1)[0]


def _text(component, name: str) -> Optional[str]:
    value = component.get(name)
    return str(value) if value is not None else None


def _categories(component) -> Optional[str]:
    value = component.get('categories')
    if value is None:
        return None
    items = value if isinstance(value, list) else [value]
    cats = getattr(items[0], 'cats', None)
    if cats:
        return str(cats[0])
    return str(items[0]) or None


def _decoded(component, name: str):
    try:
        return component.decoded(name)
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidInterval(f"unreadable {name.upper()}: {e}") from e


def _as_datetime(value, tz: pytz.BaseTzInfo) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return localize(value, tz)
    # All-day DATE values start at local midnight
    if isinstance(value, datetime.date):
        return localize(datetime.datetime.combine(value, datetime.time.min), tz)
    raise InvalidInterval(f"not a date or date-time: {value!r}")


def _event_span(component, tz: pytz.BaseTzInfo):
    """Start and end of a VEVENT; DURATION stands in for a missing DTEND."""
    if component.get('dtstart') is None:
        raise ScheduleValidationError("missing DTSTART")
    start = _as_datetime(_decoded(component, 'dtstart'), tz)

    if component.get('dtend') is not None:
        return start, _as_datetime(_decoded(component, 'dtend'), tz)
    if component.get('duration') is not None:
        duration = _decoded(component, 'duration')
        if not isinstance(duration, datetime.timedelta):
            raise InvalidInterval(f"DURATION is not a length of time: {duration!r}")
        return start, tz.normalize(start + duration)
    raise ScheduleValidationError("missing DTEND or DURATION")


def _fixed_from_event(component, start, end, rrule) -> FixedBlock:
    if end.date() != start.date():
        raise InvalidInterval("weekly event crosses midnight")
    # BYDAY may carry an ordinal prefix such as "1MO"
    days = [str(code).lstrip('+-0123456789') for code in rrule.get('BYDAY', [])]
    return FixedBlock(
        id=_strip_uid(component.get('uid')),
        label=_text(component, 'summary') or 'Untitled Class',
        days_of_week=days or [start.strftime('%A')],
        daily_start=start.time(),
        daily_end=end.time(),
        location=_text(component, 'location'),
        secondary_info=_text(component, 'description'),
    )


def parse_calendar(text: str, tz: Optional[pytz.BaseTzInfo] = None) -> ImportResult:
    """
    Read an iCalendar document back into blocks.

    Weekly recurring events (RRULE FREQ=WEEKLY) become FixedBlocks whose
    BYDAY codes map through Weekday; everything else becomes a FlexibleBlock.
    Invalid events are reported in ImportResult.errors and skipped.
    """
    tz = tz or Config.tz()
    result = ImportResult()

    try:
        cal = Calendar.from_ical(text)
    except ValueError as e:
        logger.error(f"Could not parse calendar document: {e}")
        result.errors.append(RecordError(f"Unparseable document: {e}"))
        return result

    for index, component in enumerate(cal.walk('VEVENT')):
        summary = _text(component, 'summary') or 'Untitled Event'
        try:
            start, end = _event_span(component, tz)

            rrule = component.get('rrule')
            if rrule and 'WEEKLY' in [str(f).upper() for f in rrule.get('FREQ', [])]:
                result.fixed_blocks.append(_fixed_from_event(component, start, end, rrule))
            else:
                result.flexible_blocks.append(FlexibleBlock(
                    id=_strip_uid(component.get('uid')),
                    label=summary,
                    occurrence=TimeInterval(start, end),
                    notes=_text(component, 'description'),
                    location_text=_text(component, 'location'),
                    category_tag=_categories(component),
                ))
        except ScheduleValidationError as e:
            error = RecordError(f"Skipping event '{summary}': {e}", record_index=index)
            result.errors.append(error)
            logger.warning(str(error))

    logger.info(
        f"Imported {len(result.fixed_blocks)} fixed and {len(result.flexible_blocks)} "
        f"flexible blocks ({len(result.errors)} errors)"
    )
    return result

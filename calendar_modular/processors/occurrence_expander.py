# File: calendar_modular/processors/occurrence_expander.py
"""
Occurrence expansion.
Turns weekly fixed-block patterns and one-off flexible blocks into the
concrete, dated occurrences shown for a window. Nothing here is cached:
the weekly pattern is the single source of truth and is recomputed on read.
"""

import datetime
from typing import Iterable, List, Optional

import pytz

from calendar_modular.core.config_manager import Config
from calendar_modular.models import (
    BlockKind,
    ConcreteOccurrence,
    DateWindow,
    FixedBlock,
    FlexibleBlock,
    TimeInterval,
    Weekday,
)
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)


def _fixed_occurrence(
    block: FixedBlock,
    day: datetime.date,
    tz: pytz.BaseTzInfo
) -> ConcreteOccurrence:
    weekday = Weekday.from_date(day)
    start = tz.localize(datetime.datetime.combine(day, block.daily_start))
    end = tz.localize(datetime.datetime.combine(day, block.daily_end))
    return ConcreteOccurrence(
        occurrence_id=f"{block.id}-{weekday.value}-{day.isoformat()}",
        source_id=block.id,
        source_kind=BlockKind.FIXED,
        label=block.label,
        interval=TimeInterval(start, end),
        movable=False,
        weekday=weekday,
        metadata={
            'location': block.location,
            'secondary_info': block.secondary_info,
            'group_id': block.group_id,
        },
    )


def _flexible_occurrence(block: FlexibleBlock) -> ConcreteOccurrence:
    return ConcreteOccurrence(
        occurrence_id=block.id,
        source_id=block.id,
        source_kind=BlockKind.FLEXIBLE,
        label=block.label,
        interval=block.occurrence,
        movable=True,
        metadata={
            'location': block.location_text,
            'notes': block.notes,
            'category': block.category_tag,
        },
    )


def _sorted(occurrences: List[ConcreteOccurrence]) -> List[ConcreteOccurrence]:
    return sorted(occurrences, key=lambda o: (o.interval.start, o.occurrence_id))


def expand(
    fixed_blocks: Iterable[FixedBlock],
    window: DateWindow,
    tz: Optional[pytz.BaseTzInfo] = None
) -> List[ConcreteOccurrence]:
    """
    Expand visible fixed blocks into one occurrence per matching date.

    Args:
        fixed_blocks: Fixed blocks (hidden ones are skipped)
        window: Inclusive date window
        tz: Timezone the daily wall-clock times are read in

    Returns:
        Occurrences sorted by (start, occurrence_id)
    """
    tz = tz or Config.tz()
    occurrences: List[ConcreteOccurrence] = []
    hidden = 0

    days = list(window.days())
    for block in fixed_blocks:
        if not isinstance(block, FixedBlock):
            raise TypeError(f"expand() takes FixedBlock, got {type(block).__name__}")
        if not block.visible:
            hidden += 1
            continue
        for day in days:
            if block.occurs_on(Weekday.from_date(day)):
                occurrences.append(_fixed_occurrence(block, day, tz))

    logger.debug(
        f"Expanded fixed blocks over {window.start}..{window.end}: "
        f"{len(occurrences)} occurrences ({hidden} hidden blocks skipped)"
    )
    return _sorted(occurrences)


def expand_flexible(
    flexible_blocks: Iterable[FlexibleBlock],
    window: DateWindow,
    tz: Optional[pytz.BaseTzInfo] = None
) -> List[ConcreteOccurrence]:
    """Flexible blocks contribute their own interval if it intersects the window."""
    tz = tz or Config.tz()
    span = window.as_interval(tz)
    occurrences = []
    for block in flexible_blocks:
        if not isinstance(block, FlexibleBlock):
            raise TypeError(f"expand_flexible() takes FlexibleBlock, got {type(block).__name__}")
        if block.occurrence.overlaps(span):
            occurrences.append(_flexible_occurrence(block))
    return _sorted(occurrences)


def expand_visible(
    fixed_blocks: Iterable[FixedBlock],
    flexible_blocks: Iterable[FlexibleBlock],
    window: DateWindow,
    tz: Optional[pytz.BaseTzInfo] = None
) -> List[ConcreteOccurrence]:
    """Everything visible in the window: expanded fixed plus intersecting flexible."""
    tz = tz or Config.tz()
    combined = expand(fixed_blocks, window, tz) + expand_flexible(flexible_blocks, window, tz)
    return _sorted(combined)


def next_weekday_date(today: datetime.date, weekday: Weekday) -> datetime.date:
    """Nearest date strictly after today falling on weekday (today itself maps to next week)."""
    current = Weekday.from_date(today).index
    days_to_add = (weekday.index - current + 7) % 7 or 7
    return today + datetime.timedelta(days=days_to_add)


def representative_occurrences(
    fixed_blocks: Iterable[FixedBlock],
    flexible_blocks: Iterable[FlexibleBlock],
    today: Optional[datetime.date] = None,
    tz: Optional[pytz.BaseTzInfo] = None
) -> List[ConcreteOccurrence]:
    """
    Export shape: one occurrence per (visible fixed block, weekday) on the
    next upcoming date for that weekday, plus every flexible block as-is.
    """
    tz = tz or Config.tz()
    today = today or datetime.datetime.now(tz).date()

    occurrences: List[ConcreteOccurrence] = []
    for block in fixed_blocks:
        if not block.visible:
            continue
        for weekday in block.sorted_days():
            occurrences.append(_fixed_occurrence(block, next_weekday_date(today, weekday), tz))

    occurrences.extend(_flexible_occurrence(block) for block in flexible_blocks)

    logger.info(f"Prepared {len(occurrences)} representative occurrences for export")
    return _sorted(occurrences)

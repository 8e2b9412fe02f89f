# File: calendar_modular/processors/mutation_guard.py
"""
Mutation guard for drag/resize proposals.

Fixed blocks never move. Flexible blocks move anywhere as long as the
snapped interval still has a positive duration; overlapping other blocks
is allowed and only surfaces as a conflict warning.
"""

import datetime
from typing import Optional, Union

from calendar_modular.core.config_manager import Config
from calendar_modular.models import (
    Accepted,
    ConcreteOccurrence,
    FixedBlock,
    FlexibleBlock,
    InvalidInterval,
    MoveResult,
    Rejected,
    RejectionReason,
    TimeInterval,
)
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)

MoveTarget = Union[FixedBlock, FlexibleBlock, ConcreteOccurrence]


def snap_to_grid(moment: datetime.datetime, snap_minutes: int = 15) -> datetime.datetime:
    """
    Round to the nearest snap boundary counted from local midnight.

    Halves round up (09:07:30 -> 09:15 on a 15 minute grid) and the result
    carries into the next hour or day as needed.
    """
    quantum = snap_minutes * 60 * 1_000_000
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    offset = (
        (moment.hour * 3600 + moment.minute * 60 + moment.second) * 1_000_000
        + moment.microsecond
    )
    snapped = (offset + quantum // 2) // quantum * quantum
    result = midnight + datetime.timedelta(microseconds=snapped)

    normalize = getattr(moment.tzinfo, 'normalize', None)
    return normalize(result) if normalize else result


def _is_movable(block: MoveTarget) -> bool:
    if isinstance(block, FixedBlock):
        return False
    if isinstance(block, FlexibleBlock):
        return True
    if isinstance(block, ConcreteOccurrence):
        return block.movable
    raise TypeError(f"Unknown block kind: {type(block).__name__}")


def validate_move(
    block: MoveTarget,
    proposed_start: datetime.datetime,
    proposed_end: datetime.datetime,
    snap_minutes: Optional[int] = None
) -> MoveResult:
    """
    Validate a proposed move or resize.

    Args:
        block: The block (or one of its occurrences) being dragged
        proposed_start: Raw proposed start, before snapping
        proposed_end: Raw proposed end, before snapping
        snap_minutes: Grid size (default: Config.SNAP_MINUTES)

    Returns:
        Accepted(snapped interval) or Rejected(reason). Never raises for a
        bad proposal and never writes anything.
    """
    if not _is_movable(block):
        logger.debug(f"Rejected move of fixed block '{block.label}'")
        return Rejected(RejectionReason.IMMUTABLE_BLOCK, f"Cannot move fixed block '{block.label}'")

    snap_minutes = snap_minutes or Config.SNAP_MINUTES
    start = snap_to_grid(proposed_start, snap_minutes)
    end = snap_to_grid(proposed_end, snap_minutes)

    try:
        interval = TimeInterval(start, end)
    except InvalidInterval as e:
        logger.debug(f"Rejected move of '{block.label}': {e}")
        return Rejected(RejectionReason.INVALID_INTERVAL, str(e))

    return Accepted(interval)


def validate_resize(
    block: MoveTarget,
    proposed_start: datetime.datetime,
    proposed_end: datetime.datetime,
    snap_minutes: Optional[int] = None
) -> MoveResult:
    """Resizing follows exactly the same snapping and rules as moving."""
    return validate_move(block, proposed_start, proposed_end, snap_minutes)

from .errors import ScheduleValidationError, InvalidInterval, InvalidRecurrencePattern
from .enums import Weekday, BlockKind, RejectionReason
from .common import parse_iso_datetime, parse_time_of_day, localize
from .interval import TimeInterval, DateWindow
from .blocks import (
    FixedBlock,
    FlexibleBlock,
    Block,
    BlockGroup,
    parse_days,
    fixed_block_from_dict,
    flexible_block_from_dict,
)
from .occurrence import ConcreteOccurrence, ConflictPair
from .results import Accepted, Rejected, MoveResult, RecordError, ImportResult

__all__ = [
    "ScheduleValidationError",
    "InvalidInterval",
    "InvalidRecurrencePattern",
    "Weekday",
    "BlockKind",
    "RejectionReason",
    "parse_iso_datetime",
    "parse_time_of_day",
    "localize",
    "TimeInterval",
    "DateWindow",
    "FixedBlock",
    "FlexibleBlock",
    "Block",
    "BlockGroup",
    "parse_days",
    "fixed_block_from_dict",
    "flexible_block_from_dict",
    "ConcreteOccurrence",
    "ConflictPair",
    "Accepted",
    "Rejected",
    "MoveResult",
    "RecordError",
    "ImportResult",
]

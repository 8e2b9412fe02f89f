# File: calendar_modular/models/results.py
"""
Result types returned by the mutation guard and the import/ingest adapters.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .blocks import FixedBlock, FlexibleBlock
from .enums import RejectionReason
from .interval import TimeInterval


@dataclass(frozen=True)
class Accepted:
    """The move may be committed with this (snapped) interval."""
    interval: TimeInterval

    def is_accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """The move must not be committed."""
    reason: RejectionReason
    message: str = ""

    def is_accepted(self) -> bool:
        return False

    def __str__(self) -> str:
        if self.message:
            return f"{self.reason.value}: {self.message}"
        return self.reason.value


MoveResult = Union[Accepted, Rejected]


@dataclass
class RecordError:
    """A candidate record that failed validation."""
    message: str
    record_index: Optional[int] = None

    def __str__(self) -> str:
        """String representation of error."""
        if self.record_index is not None:
            return f"Record {self.record_index}: {self.message}"
        return self.message


@dataclass
class ImportResult:
    """Blocks recovered from an interchange document."""
    fixed_blocks: List[FixedBlock] = field(default_factory=list)
    flexible_blocks: List[FlexibleBlock] = field(default_factory=list)
    errors: List[RecordError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.fixed_blocks) + len(self.flexible_blocks)

# File: calendar_modular/models/occurrence.py

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .enums import BlockKind, Weekday
from .interval import TimeInterval


@dataclass(frozen=True)
class ConcreteOccurrence:
    """One dated instance of a block, produced for a specific window. Never persisted."""
    occurrence_id: str
    source_id: str
    source_kind: BlockKind
    label: str
    interval: TimeInterval
    movable: bool
    weekday: Optional[Weekday] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def sort_key(self) -> Tuple[str, str]:
        """Fixed tie-break used to order conflict pairs."""
        return (self.source_id, self.occurrence_id)

    def overlaps_with(self, other: 'ConcreteOccurrence') -> bool:
        """Check if this occurrence overlaps with another."""
        return self.interval.overlaps(other.interval)

    def to_dict(self) -> dict:
        return {
            'occurrence_id': self.occurrence_id,
            'source_id': self.source_id,
            'source_kind': self.source_kind.value,
            'label': self.label,
            'start': self.interval.start.isoformat(),
            'end': self.interval.end.isoformat(),
            'movable': self.movable,
            'weekday': self.weekday.value if self.weekday else None,
            'metadata': dict(self.metadata),
        }


@dataclass(frozen=True)
class ConflictPair:
    """Two overlapping occurrences, with a.sort_key < b.sort_key."""
    a: ConcreteOccurrence
    b: ConcreteOccurrence

    @classmethod
    def of(cls, first: ConcreteOccurrence, second: ConcreteOccurrence) -> 'ConflictPair':
        if second.sort_key < first.sort_key:
            first, second = second, first
        return cls(first, second)

    @property
    def key(self) -> Tuple[Tuple[str, str], Tuple[str, str]]:
        return (self.a.sort_key, self.b.sort_key)

    def __str__(self) -> str:
        return (
            f"'{self.a.label}' ({self.a.interval.start:%a %H:%M}-{self.a.interval.end:%H:%M}) overlaps "
            f"'{self.b.label}' ({self.b.interval.start:%a %H:%M}-{self.b.interval.end:%H:%M})"
        )

# File: calendar_modular/processors/overlap_detector.py
"""
Overlap detection between visible occurrences.
Conflicts are warnings for display; nothing here blocks a save.
"""

from typing import Dict, Iterable, List, Tuple

from calendar_modular.models import ConcreteOccurrence, ConflictPair
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)


def _collides(first: ConcreteOccurrence, second: ConcreteOccurrence) -> bool:
    # Occurrences of one block never conflict with each other
    if first.source_id == second.source_id:
        return False
    return first.overlaps_with(second)


def _ordered(pairs: Dict[tuple, ConflictPair]) -> List[ConflictPair]:
    return sorted(
        pairs.values(),
        key=lambda p: (p.a.interval.start, p.a.sort_key, p.b.sort_key)
    )


def find_conflicts_pairwise(occurrences: Iterable[ConcreteOccurrence]) -> List[ConflictPair]:
    """
    Reference O(n^2) scan over every unordered pair.

    Kept alongside the sweep so both can be checked against each other.
    """
    items = list(occurrences)
    pairs: Dict[tuple, ConflictPair] = {}
    for i, first in enumerate(items):
        for second in items[i + 1:]:
            if _collides(first, second):
                pair = ConflictPair.of(first, second)
                pairs[pair.key] = pair
    return _ordered(pairs)


def find_conflicts(occurrences: Iterable[ConcreteOccurrence]) -> List[ConflictPair]:
    """
    Find every pair of overlapping occurrences with an interval sweep.

    Occurrences are sorted by start; an active list holds everything whose
    end is still after the current start. Each pair is reported once, with
    a ordered before b by (source_id, occurrence_id), and the result order
    does not depend on input order.

    Args:
        occurrences: Expanded fixed plus flexible occurrences

    Returns:
        Deduplicated, sorted list of ConflictPair
    """
    ordered = sorted(occurrences, key=lambda o: (o.interval.start, o.sort_key))
    active: List[ConcreteOccurrence] = []
    pairs: Dict[Tuple, ConflictPair] = {}

    for current in ordered:
        # Half-open: anything ending at or before this start is finished
        active = [o for o in active if o.interval.end > current.interval.start]
        for other in active:
            if _collides(other, current):
                pair = ConflictPair.of(other, current)
                pairs[pair.key] = pair
        active.append(current)

    result = _ordered(pairs)
    if result:
        logger.info(f"Detected {len(result)} overlapping pair(s) among {len(ordered)} occurrences")
    return result


def conflicts_for(
    occurrence: ConcreteOccurrence,
    others: Iterable[ConcreteOccurrence]
) -> List[ConcreteOccurrence]:
    """Everything that overlaps one occurrence, e.g. while it is being dragged."""
    return sorted(
        (other for other in others if _collides(occurrence, other)),
        key=lambda o: (o.interval.start, o.sort_key)
    )

# File: calendar_modular/core/planner.py
"""
Schedule planner module for Calendar Modular.
Wires the store, expander, detector, guard and serializer into the
end-to-end flows: show a window, move a block, import a schedule, export.

The engine components stay pure; this is the only place that reads from
and writes to the store.
"""

import datetime
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pytz

from calendar_modular.core.config_manager import Config
from calendar_modular.models import (
    Accepted,
    BlockGroup,
    ConcreteOccurrence,
    ConflictPair,
    DateWindow,
    FixedBlock,
    ImportResult,
    MoveResult,
    RecordError,
    localize,
)
from calendar_modular.processors.extraction_processor import ExtractionProcessor
from calendar_modular.processors.mutation_guard import validate_move
from calendar_modular.processors.occurrence_expander import (
    expand_visible,
    representative_occurrences,
)
from calendar_modular.processors.overlap_detector import find_conflicts
from calendar_modular.services.block_store import BlockStore
from calendar_modular.services.ics_serializer import parse_calendar, serialize
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)


class SchedulePlanner:
    """
    Per-user facade over the schedule engine.

    All collaborators are passed in; nothing here reaches for globals
    beyond Config defaults.
    """

    def __init__(
        self,
        store: BlockStore,
        user_id: str,
        tz: Optional[pytz.BaseTzInfo] = None,
        snap_minutes: Optional[int] = None
    ):
        self.store = store
        self.user_id = user_id
        self.tz = tz or Config.tz()
        self.snap_minutes = snap_minutes or Config.SNAP_MINUTES
        self.extraction_processor = ExtractionProcessor()

    # ==================== Reading ====================

    def visible_occurrences(self, window: DateWindow) -> List[ConcreteOccurrence]:
        """Expanded visible fixed blocks plus flexible blocks inside the window."""
        fixed = self.store.get_fixed_blocks(self.user_id, visible_only=True)
        flexible = self.store.get_flexible_blocks(self.user_id, self.tz)
        return expand_visible(fixed, flexible, window, self.tz)

    def conflicts(self, window: DateWindow) -> List[ConflictPair]:
        """Overlap warnings for the window. Never blocks anything."""
        pairs = find_conflicts(self.visible_occurrences(window))
        if pairs:
            logger.info(f"{len(pairs)} conflicts between {window.start} and {window.end}")
        return pairs

    # ==================== Mutations ====================

    def move_block(
        self,
        block_id: str,
        proposed_start: datetime.datetime,
        proposed_end: datetime.datetime
    ) -> MoveResult:
        """
        Validate a drag or resize and persist it only when accepted.

        Raises:
            KeyError: If the user has no block with this id
        """
        block = self.store.get_block(self.user_id, block_id, self.tz)
        if block is None:
            raise KeyError(f"No block '{block_id}' for user '{self.user_id}'")

        # Naive proposals are wall-clock time in the planner timezone
        proposed_start = localize(proposed_start, self.tz)
        proposed_end = localize(proposed_end, self.tz)
        result = validate_move(block, proposed_start, proposed_end, self.snap_minutes)

        if isinstance(result, Accepted):
            self.store.upsert_flexible(self.user_id, block.moved_to(result.interval), self.tz)
            logger.info(
                f"Moved '{block.label}' to {result.interval.start.isoformat()} - "
                f"{result.interval.end.isoformat()}"
            )
        else:
            logger.info(f"Move of '{block.label}' rejected: {result}")

        return result

    def ingest_extracted(
        self,
        records: Optional[Iterable[Dict[str, Any]]],
        group_name: str,
        source_filename: Optional[str] = None
    ) -> Tuple[List[FixedBlock], List[RecordError]]:
        """
        Validate extracted class records and save the valid ones as a new group.

        No group is created when nothing valid came out of the extraction.
        """
        group = BlockGroup(id=str(uuid.uuid4()), name=group_name, source_filename=source_filename)
        blocks, errors = self.extraction_processor.build_fixed_blocks(records, group_id=group.id)

        if blocks:
            self.store.add_group(self.user_id, group)
            self.store.upsert_fixed_many(self.user_id, blocks)
        else:
            logger.warning(f"No valid classes found for '{group_name}'")

        return blocks, errors

    def import_calendar(self, text: str) -> ImportResult:
        """Import an iCalendar document and save every block that parsed."""
        result = parse_calendar(text, self.tz)
        for block in result.fixed_blocks:
            self.store.upsert_fixed(self.user_id, block)
        for block in result.flexible_blocks:
            self.store.upsert_flexible(self.user_id, block, self.tz)
        return result

    def set_group_visibility(self, group_id: str, visible: bool) -> int:
        return self.store.set_group_visibility(self.user_id, group_id, visible)

    def delete_group(self, group_id: str) -> int:
        return self.store.delete_group(self.user_id, group_id)

    def list_groups(self) -> List[BlockGroup]:
        return self.store.list_groups(self.user_id)

    # ==================== Export ====================

    def export_occurrences(self, today: Optional[datetime.date] = None) -> List[ConcreteOccurrence]:
        """Representative occurrences for export: one per visible class day, plus flexible blocks."""
        fixed = self.store.get_fixed_blocks(self.user_id, visible_only=True)
        flexible = self.store.get_flexible_blocks(self.user_id, self.tz)
        return representative_occurrences(fixed, flexible, today, self.tz)

    def export_calendar(
        self,
        calendar_name: Optional[str] = None,
        today: Optional[datetime.date] = None
    ) -> str:
        """Render the user's visible schedule as iCalendar text."""
        return serialize(
            self.export_occurrences(today),
            calendar_name or Config.CALENDAR_NAME,
            self.tz.zone,
        )

    def export_to_file(
        self,
        path: Optional[Union[str, Path]] = None,
        calendar_name: Optional[str] = None,
        today: Optional[datetime.date] = None
    ) -> Path:
        """Write the exported document as UTF-8. Returns the path written."""
        path = Path(path or Config.EXPORT_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        document = self.export_calendar(calendar_name, today)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(document)
        logger.info(f"Exported schedule to {path}")
        return path

    def push_to_sink(
        self,
        sink,
        today: Optional[datetime.date] = None,
        clear_previous: bool = True
    ) -> int:
        """
        Deliver the export shape to an external calendar sink.

        Args:
            sink: Object with push(occurrences) and clear_previous_exports(time_min, time_max)
            today: Reference date for representative occurrences
            clear_previous: Remove this app's earlier pushes in the same span first

        Returns:
            Number of events created
        """
        occurrences = self.export_occurrences(today)
        if not occurrences:
            logger.info("Nothing to push")
            return 0

        if clear_previous:
            time_min = min(o.interval.start for o in occurrences)
            time_max = max(o.interval.end for o in occurrences)
            sink.clear_previous_exports(time_min, time_max)

        return sink.push(occurrences)


class PlannerFactory:
    """Factory for creating SchedulePlanner instances with dependency injection."""

    @staticmethod
    def create(
        user_id: Optional[str] = None,
        db_path: Optional[Union[str, Path]] = None
    ) -> SchedulePlanner:
        """
        Create a planner backed by the configured SQLite store.

        Raises:
            ValueError: If configuration is invalid
        """
        logger.info("Creating SchedulePlanner via factory")

        if not Config.validate():
            raise ValueError("Configuration validation failed. Check your .env settings.")

        store = BlockStore(db_path or Config.DB_FILE)
        return SchedulePlanner(store, user_id or Config.DEFAULT_USER_ID)

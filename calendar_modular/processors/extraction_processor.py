# File: calendar_modular/processors/extraction_processor.py
"""
Extraction record processing module.
Turns candidate class records from the document extractor into validated
FixedBlocks. The block constructors are the validation gate; a bad record
is reported and skipped, never allowed into the block model.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from calendar_modular.models import (
    FixedBlock,
    RecordError,
    ScheduleValidationError,
    fixed_block_from_dict,
)
from calendar_modular.utils.logger import setup_logger


class ExtractionProcessor:
    """Validates extracted candidate records into fixed blocks."""

    def __init__(self):
        self.logger = setup_logger(__name__)

    def build_fixed_blocks(
        self,
        records: Optional[Iterable[Dict[str, Any]]],
        group_id: Optional[str] = None
    ) -> Tuple[List[FixedBlock], List[RecordError]]:
        """
        Validate raw extraction records.

        Args:
            records: Candidate records (may be None or empty after a failed extraction)
            group_id: Group every accepted block is assigned to

        Returns:
            Tuple of (valid blocks, per-record errors)
        """
        blocks: List[FixedBlock] = []
        errors: List[RecordError] = []

        records = list(records or [])
        self.logger.info(f"Validating {len(records)} extracted records")

        for i, record in enumerate(records):
            title = (record.get('course_name') or record.get('label')) if isinstance(record, dict) else None
            try:
                if not isinstance(record, dict):
                    raise TypeError(f"expected a mapping, got {type(record).__name__}")
                blocks.append(fixed_block_from_dict(record, group_id=group_id))
            except (ScheduleValidationError, TypeError) as e:
                error = RecordError(f"Skipping '{title or 'unnamed'}': {e}", record_index=i)
                errors.append(error)
                self.logger.warning(str(error))

        self.logger.info(
            f"Validation complete: {len(blocks)} valid blocks "
            f"({len(errors)} errors)"
        )
        return blocks, errors

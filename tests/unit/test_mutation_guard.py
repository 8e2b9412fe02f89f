# File: tests/unit/test_mutation_guard.py
"""
Unit tests for the move/resize guard and grid snapping.
"""

from datetime import date, datetime

import pytest

from calendar_modular.models import Accepted, Rejected, RejectionReason, TimeInterval
from calendar_modular.processors.mutation_guard import snap_to_grid, validate_move, validate_resize
from calendar_modular.processors.occurrence_expander import expand


class TestSnapToGrid:
    """Tests for snap_to_grid."""

    @pytest.mark.parametrize("minute,second,expected", [
        (7, 0, (9, 0)),
        (7, 29, (9, 0)),
        (7, 30, (9, 15)),
        (8, 0, (9, 15)),
        (22, 30, (9, 30)),
        (53, 0, (10, 0)),
    ])
    def test_round_half_up(self, at, minute, second, expected):
        """Test rounding to the nearest quarter hour with halves going up."""
        snapped = snap_to_grid(at(9, minute, second=second), 15)

        assert (snapped.hour, snapped.minute, snapped.second) == expected + (0,)

    def test_carries_into_next_day(self, at):
        """Test 23:55 snaps to midnight of the following day."""
        snapped = snap_to_grid(at(23, 55), 15)

        assert snapped.date() == date(2025, 11, 18)
        assert (snapped.hour, snapped.minute) == (0, 0)

    def test_naive_datetimes(self):
        """Test snapping works without a timezone."""
        assert snap_to_grid(datetime(2025, 11, 17, 9, 7), 15) == datetime(2025, 11, 17, 9, 0)

    def test_other_grid_sizes(self, at):
        """Test a 30 minute grid."""
        snapped = snap_to_grid(at(9, 16), 30)

        assert (snapped.hour, snapped.minute) == (9, 30)


class TestValidateMove:
    """Tests for validate_move."""

    def test_flexible_move_snaps_down(self, study_block, at):
        """Test 9:07-10:07 is accepted as 9:00-10:00."""
        result = validate_move(study_block, at(9, 7), at(10, 7), 15)

        assert isinstance(result, Accepted)
        assert result.interval == TimeInterval(at(9), at(10))

    def test_flexible_move_snaps_up(self, study_block, at):
        """Test 9:08 rounds to 9:15."""
        result = validate_move(study_block, at(9, 8), at(10, 8), 15)

        assert result.is_accepted()
        assert result.interval.start == at(9, 15)
        assert result.interval.end == at(10, 15)

    def test_fixed_block_is_always_rejected(self, calculus_block, at):
        """Test fixed blocks are immutable whatever the proposal."""
        valid = validate_move(calculus_block, at(14), at(15), 15)
        invalid = validate_move(calculus_block, at(15), at(14), 15)

        assert isinstance(valid, Rejected)
        assert valid.reason == RejectionReason.IMMUTABLE_BLOCK
        assert invalid.reason == RejectionReason.IMMUTABLE_BLOCK

    def test_fixed_occurrence_is_rejected(self, calculus_block, two_week_window, tz, at):
        """Test dragging an expanded fixed occurrence is rejected too."""
        occurrence = expand([calculus_block], two_week_window, tz)[0]

        result = validate_move(occurrence, at(14), at(15), 15)

        assert result.reason == RejectionReason.IMMUTABLE_BLOCK

    def test_collapsed_by_snapping_is_rejected(self, study_block, at):
        """Test a proposal that snaps to zero length is invalid."""
        result = validate_move(study_block, at(9, 1), at(9, 6), 15)

        assert isinstance(result, Rejected)
        assert result.reason == RejectionReason.INVALID_INTERVAL

    def test_reversed_proposal_is_rejected(self, study_block, at):
        """Test end before start is invalid."""
        result = validate_move(study_block, at(11), at(10), 15)

        assert result.reason == RejectionReason.INVALID_INTERVAL

    def test_guard_does_not_mutate_block(self, study_block, at):
        """Test validation never changes the block."""
        original = study_block.occurrence

        validate_move(study_block, at(14), at(15), 15)

        assert study_block.occurrence == original

    def test_resize_uses_same_rules(self, study_block, at):
        """Test resize snaps exactly like move."""
        assert validate_resize(study_block, at(9, 30), at(11, 7), 15) == \
            validate_move(study_block, at(9, 30), at(11, 7), 15)

    def test_unknown_block_kind_raises_type_error(self, at):
        """Test anything that is not a block is refused."""
        with pytest.raises(TypeError):
            validate_move("not a block", at(9), at(10), 15)

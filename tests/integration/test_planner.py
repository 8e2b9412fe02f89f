# File: tests/integration/test_planner.py
"""
Integration tests for the SchedulePlanner.
Runs the full flow against a real SQLite store with mocked Google services.
"""

import pytest
from datetime import date, datetime
from unittest.mock import Mock, patch

from icalendar import Calendar

from calendar_modular.core.planner import PlannerFactory, SchedulePlanner
from calendar_modular.models import (
    Accepted,
    DateWindow,
    FlexibleBlock,
    Rejected,
    RejectionReason,
    TimeInterval,
)
from calendar_modular.services.calendar_sink import GoogleCalendarSink

pytestmark = pytest.mark.integration


@pytest.fixture
def extracted_records():
    """Fall schedule as returned by the document extractor."""
    return [
        {
            'course_code': 'MATH 101',
            'course_name': 'Calculus I',
            'section': '001',
            'instructor': 'Dr. Smith',
            'days': ['M', 'W'],
            'start_time': '09:00',
            'end_time': '10:15',
            'location': 'Hall 2',
        },
        {
            'course_code': 'CHEM 110',
            'course_name': 'General Chemistry',
            'days': ['T', 'R'],
            'start_time': '13:00',
            'end_time': '14:30',
        },
        {
            'course_name': 'Broken',
            'days': ['F'],
            'start_time': '10:00',
            'end_time': '09:00',
        },
    ]


@pytest.fixture
def planner(block_store, tz):
    return SchedulePlanner(block_store, "student-1", tz=tz, snap_minutes=15)


@pytest.fixture
def loaded_planner(planner, extracted_records, study_block):
    planner.ingest_extracted(extracted_records, "Fall 2025", "fall.pdf")
    planner.store.upsert_flexible(planner.user_id, study_block)
    return planner


class TestIngest:
    """Tests for importing extracted class records."""

    def test_ingest_saves_valid_blocks_in_a_group(self, planner, extracted_records):
        """Test valid records are stored under one new group."""
        blocks, errors = planner.ingest_extracted(extracted_records, "Fall 2025", "fall.pdf")

        groups = planner.list_groups()
        assert len(blocks) == 2
        assert len(errors) == 1
        assert [g.name for g in groups] == ["Fall 2025"]
        assert {b.group_id for b in planner.store.get_fixed_blocks("student-1")} == {groups[0].id}

    def test_ingest_nothing_valid_creates_no_group(self, planner):
        """Test an empty extraction leaves the store untouched."""
        blocks, errors = planner.ingest_extracted([], "Empty upload")

        assert blocks == []
        assert planner.list_groups() == []


class TestWindowAndConflicts:
    """Tests for reading a visible window."""

    def test_visible_occurrences(self, loaded_planner, two_week_window):
        """Test two weeks of classes plus the study session."""
        occurrences = loaded_planner.visible_occurrences(two_week_window)

        assert len(occurrences) == 9

    def test_conflicts_warn_about_study_over_class(self, loaded_planner, two_week_window):
        """Test the overlap is reported but nothing is blocked."""
        pairs = loaded_planner.conflicts(two_week_window)

        assert len(pairs) == 1
        assert {pairs[0].a.label, pairs[0].b.label} == {"Study session", "MATH 101: Calculus I"}

    def test_hiding_a_group_hides_its_occurrences(self, loaded_planner, two_week_window):
        """Test group visibility flows through expansion."""
        group_id = loaded_planner.list_groups()[0].id

        assert loaded_planner.set_group_visibility(group_id, False) == 2
        assert [o.source_id for o in loaded_planner.visible_occurrences(two_week_window)] == ["study"]
        assert loaded_planner.conflicts(two_week_window) == []

    def test_delete_group_removes_classes(self, loaded_planner, two_week_window):
        """Test deleting a group cascades to its blocks."""
        group_id = loaded_planner.list_groups()[0].id

        assert loaded_planner.delete_group(group_id) == 2
        assert loaded_planner.list_groups() == []
        assert len(loaded_planner.visible_occurrences(two_week_window)) == 1


class TestMoveBlock:
    """Tests for moving blocks through the planner."""

    def test_accepted_move_is_persisted_snapped(self, loaded_planner, at, tz):
        """Test the stored interval is the snapped one."""
        result = loaded_planner.move_block("study", at(14, 7), at(15, 8))

        stored = loaded_planner.store.get_block("student-1", "study", tz)
        assert isinstance(result, Accepted)
        assert stored.occurrence == TimeInterval(at(14), at(15, 15))

    def test_naive_proposal_is_planner_wall_clock(self, loaded_planner, at, tz):
        """Test naive drag times are read in the planner timezone and stored as such."""
        result = loaded_planner.move_block(
            "study", datetime(2025, 11, 17, 14, 7), datetime(2025, 11, 17, 15, 8)
        )

        stored = loaded_planner.store.get_block("student-1", "study", tz)
        assert isinstance(result, Accepted)
        assert stored.occurrence == TimeInterval(at(14), at(15, 15))
        assert stored.occurrence.start.hour == 14

    def test_moving_clears_the_conflict(self, loaded_planner, at, two_week_window):
        """Test a move away from the class removes the warning."""
        loaded_planner.move_block("study", at(11), at(12))

        assert loaded_planner.conflicts(two_week_window) == []

    def test_rejected_move_leaves_store_unchanged(self, loaded_planner, at, tz, study_block):
        """Test an invalid proposal writes nothing."""
        result = loaded_planner.move_block("study", at(12), at(11))

        assert isinstance(result, Rejected)
        assert result.reason == RejectionReason.INVALID_INTERVAL
        assert loaded_planner.store.get_block("student-1", "study", tz) == study_block

    def test_fixed_block_cannot_move(self, loaded_planner, at):
        """Test class blocks are immutable through the planner too."""
        class_id = loaded_planner.store.get_fixed_blocks("student-1")[0].id

        result = loaded_planner.move_block(class_id, at(14), at(15))

        assert result.reason == RejectionReason.IMMUTABLE_BLOCK

    def test_unknown_block(self, loaded_planner, at):
        """Test moving a missing block raises KeyError."""
        with pytest.raises(KeyError):
            loaded_planner.move_block("nope", at(9), at(10))


class TestExport:
    """Tests for export and push."""

    def test_export_calendar(self, loaded_planner):
        """Test the export has one event per class day plus the study session."""
        document = loaded_planner.export_calendar(today=date(2025, 11, 16))
        cal = Calendar.from_ical(document)

        summaries = sorted(str(e.get('summary')) for e in cal.walk('VEVENT'))
        assert summaries == [
            "CHEM 110: General Chemistry",
            "CHEM 110: General Chemistry",
            "MATH 101: Calculus I",
            "MATH 101: Calculus I",
            "Study session",
        ]
        assert str(cal.get('x-wr-calname')) == "My Class Schedule"
        assert str(cal.get('x-wr-timezone')) == "America/New_York"

    def test_export_to_file(self, loaded_planner, tmp_path):
        """Test the document is written as UTF-8."""
        path = loaded_planner.export_to_file(tmp_path / "out" / "schedule.ics", today=date(2025, 11, 16))

        assert path.exists()
        assert path.read_bytes().startswith(b"BEGIN:VCALENDAR\r\n")

    def test_round_trip_through_import(self, loaded_planner, block_store, tz):
        """Test an exported document re-imports into a fresh user with the same labels."""
        document = loaded_planner.export_calendar(today=date(2025, 11, 16))
        other = SchedulePlanner(block_store, "student-2", tz=tz)

        result = other.import_calendar(document)

        assert result.errors == []
        assert result.total == 5
        study = other.store.get_block("student-2", "study", tz)
        assert isinstance(study, FlexibleBlock)
        assert study.occurrence.start == tz.localize(datetime(2025, 11, 17, 9, 30))

    def test_push_to_sink(self, loaded_planner, mock_calendar_service):
        """Test previous pushes are cleared and the export shape is pushed."""
        sink = GoogleCalendarSink(mock_calendar_service, calendar_id="cal-1")

        created = loaded_planner.push_to_sink(sink, today=date(2025, 11, 16))

        assert created == 5
        mock_calendar_service.events.return_value.list.assert_called_once()

    def test_push_to_sink_without_clearing(self, loaded_planner):
        """Test clear_previous=False skips the cleanup."""
        sink = Mock()
        sink.push.return_value = 5

        loaded_planner.push_to_sink(sink, today=date(2025, 11, 16), clear_previous=False)

        sink.clear_previous_exports.assert_not_called()
        assert len(sink.push.call_args.args[0]) == 5


class TestPlannerFactory:
    """Tests for PlannerFactory."""

    def test_create_uses_configured_store(self, tmp_path):
        """Test the factory builds a planner on the given database."""
        with patch('calendar_modular.core.planner.Config.validate', return_value=True):
            planner = PlannerFactory.create("student-9", tmp_path / "db.sqlite")

        assert planner.user_id == "student-9"
        assert (tmp_path / "db.sqlite").exists()

    def test_create_with_invalid_config_raises(self, tmp_path):
        """Test invalid configuration stops planner creation."""
        with patch('calendar_modular.core.planner.Config.validate', return_value=False):
            with pytest.raises(ValueError):
                PlannerFactory.create("student-9", tmp_path / "db.sqlite")

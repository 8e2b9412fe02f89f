# File: tests/conftest.py
"""
Pytest configuration and shared fixtures.
Provides reusable blocks, occurrences and mocks for all tests.
"""

import os
import sys
from datetime import date, datetime, time
from pathlib import Path
from unittest.mock import Mock

import pytest
import pytz

# Keep test runs from writing daily log files
os.environ.setdefault("LOG_DIR", "")

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from calendar_modular.models import (
    BlockKind,
    ConcreteOccurrence,
    DateWindow,
    FixedBlock,
    FlexibleBlock,
    TimeInterval,
    Weekday,
)
from calendar_modular.services.block_store import BlockStore


# ==================== Time Fixtures ====================

@pytest.fixture
def tz():
    """Timezone used across the tests (no DST change in late November)."""
    return pytz.timezone("America/New_York")


@pytest.fixture
def at(tz):
    """Factory for aware datetimes on Monday 2025-11-17 (or another day)."""
    def _at(hour: int, minute: int = 0, day: date = date(2025, 11, 17), second: int = 0) -> datetime:
        return tz.localize(datetime.combine(day, time(hour, minute, second)))

    return _at


@pytest.fixture
def two_week_window():
    """Monday 2025-11-17 through Sunday 2025-11-30."""
    return DateWindow(date(2025, 11, 17), date(2025, 11, 30))


# ==================== Block Fixtures ====================

@pytest.fixture
def calculus_block():
    """Mon/Wed 09:00-10:15 class."""
    return FixedBlock(
        id="calc",
        label="MATH 101: Calculus I",
        days_of_week=[Weekday.MONDAY, Weekday.WEDNESDAY],
        daily_start="09:00",
        daily_end="10:15",
        location="Hall 2",
        secondary_info="Section: 001\nInstructor: Dr. Smith",
    )


@pytest.fixture
def chemistry_block():
    """Tue/Thu 13:00-14:30 class."""
    return FixedBlock(
        id="chem",
        label="CHEM 110: General Chemistry",
        days_of_week="TR",
        daily_start="13:00",
        daily_end="14:30",
    )


@pytest.fixture
def hidden_block():
    """Friday class that the user has hidden."""
    return FixedBlock(
        id="hidden",
        label="ART 200: Drawing",
        days_of_week=["F"],
        daily_start="10:00",
        daily_end="12:00",
        visible=False,
    )


@pytest.fixture
def study_block(at):
    """Flexible study session overlapping the Monday calculus class."""
    return FlexibleBlock(
        id="study",
        label="Study session",
        occurrence=TimeInterval(at(9, 30), at(10, 30)),
        notes="Chapter 5",
        category_tag="study",
    )


@pytest.fixture
def make_occurrence(at):
    """Factory for standalone occurrences."""
    def _make(
        occurrence_id: str,
        start: datetime,
        end: datetime,
        source_id: str = None,
        movable: bool = True
    ) -> ConcreteOccurrence:
        return ConcreteOccurrence(
            occurrence_id=occurrence_id,
            source_id=source_id or occurrence_id,
            source_kind=BlockKind.FLEXIBLE if movable else BlockKind.FIXED,
            label=occurrence_id.upper(),
            interval=TimeInterval(start, end),
            movable=movable,
        )

    return _make


# ==================== Store Fixtures ====================

@pytest.fixture
def block_store(tmp_path):
    """Empty SQLite store in a temporary directory."""
    return BlockStore(tmp_path / "calendar.db")


# ==================== Mock Service Fixtures ====================

@pytest.fixture
def mock_calendar_service():
    """Mock Google Calendar service whose batches run their callbacks."""
    mock = Mock()
    batches = []

    def new_batch():
        requests = []
        batch = Mock()
        batch.add.side_effect = lambda request, callback: requests.append((request, callback))

        def execute():
            for i, (request, callback) in enumerate(requests):
                callback(str(i), {}, None)

        batch.execute.side_effect = execute
        batch.requests = requests
        batches.append(batch)
        return batch

    mock.new_batch_http_request.side_effect = new_batch
    mock.events.return_value.list.return_value.execute.return_value = {'items': []}
    mock.batches = batches
    return mock


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )

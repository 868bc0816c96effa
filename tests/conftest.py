"""
Pytest configuration: make sure `import cadence` and `import api` work
regardless of where pytest is invoked.

It prepends the project root (one directory above *tests/*) to
``sys.path`` **before** any tests are collected, and provides the sample
portfolio shared by the engine, reconciler and service tests.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# /path/to/project/tests -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cadence.dispatch import LogDispatcher  # noqa: E402
from cadence.engine import EscalationEngine  # noqa: E402
from cadence.models import Record, Role, Status  # noqa: E402
from cadence.service import TrackerContext  # noqa: E402
from cadence.store import MemoryRecordStore  # noqa: E402

NOW = datetime(2026, 10, 16, 19, 0, tzinfo=timezone.utc)
BASE_URL = "http://tracker.test"


def sample_records():
    """Three owners (one complete), one of each distribution role."""
    return [
        Record("acme", "Acme Robotics", "Ann Lee", "ann@example.com"),
        Record(
            "widget", "Widget Industries", "Matt/Shiju",
            ["matt@example.com", "shiju@example.com"],
        ),
        Record(
            "sunrise", "Sunrise Ventures", "Karl Weiss", "karl@example.com",
            status=Status.COMPLETE, last_updated=NOW - timedelta(days=1),
        ),
        Record("chase-1", "Chase Team", "Ivan", "ivan@example.com", role=Role.CHASE),
        Record("review-1", "Review Team", "Neil", "neil@example.com", role=Role.REVIEWER),
        Record("final-1", "Final Report", "Rick", "rick@example.com", role=Role.FINAL),
    ]


@pytest.fixture
def records():
    return sample_records()


@pytest.fixture
def engine():
    return EscalationEngine(BASE_URL)


@pytest.fixture
def store(records):
    return MemoryRecordStore(records)


@pytest.fixture
def dispatcher():
    return LogDispatcher()


@pytest.fixture
def ctx(store, dispatcher, engine):
    context = TrackerContext(
        store,
        dispatcher,
        engine,
        completion_address="coordinator@example.com",
        clock=lambda: NOW,
    )
    context.load()
    return context

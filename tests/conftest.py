"""Shared pytest fixtures."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from carescribe import config
from carescribe.calendar_service import CalendarService
from carescribe.health_records.database import MemoryKeyValueStore
from carescribe.notifiers import PERMISSION_GRANTED

# A Monday
NOW = datetime(2026, 10, 19, 8, 0, 30)


@pytest.fixture(autouse=True)
def system_timezone(monkeypatch):
    """Run every test in the system local zone unless a test overrides it."""
    monkeypatch.setattr(config, "TIMEZONE", "")


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def clock():
    """Mutable fixed clock: set clock.now to move time."""
    class FixedClock:
        def __init__(self):
            self.now = NOW

        def __call__(self):
            return self.now

    return FixedClock()


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.permission = PERMISSION_GRANTED
    return mock


@pytest.fixture
def sound():
    return MagicMock()


@pytest.fixture
def service(kv, clock, notifier, sound):
    svc = CalendarService(kv, notifier=notifier, sound=sound, clock=clock)
    yield svc
    svc.stop_reminders()

"""
Pytest configuration and fixtures for nist-time-sync tests.
"""

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))


@pytest.fixture
def nist_reply():
    """A well-formed NIST daytime reply."""
    return "60462 24-06-01 14:23:05 50 0 0 123.4 UTC(NIST) *"


class FakeClient:
    """Stands in for DaytimeClient; returns queued replies or raises."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = 0
        self.address = "fake:13"

    def fetch(self):
        self.calls += 1
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingClockSetter:
    """Records applied instants; optionally raises on apply."""

    def __init__(self, error=None):
        self.applied = []
        self.error = error

    def apply(self, instant):
        if self.error is not None:
            raise self.error
        self.applied.append(instant)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 6, 1, 14, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, seconds):
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def fake_client_factory():
    return FakeClient


@pytest.fixture
def clock_setter():
    return RecordingClockSetter()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def clock_setter_factory():
    return RecordingClockSetter

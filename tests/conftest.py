"""
Pytest fixtures for testing
"""
from datetime import datetime, timedelta

import pytest

from pushstore.store import WebPushStore

T0 = datetime(2026, 1, 1, 12, 0, 0)


class FakeClock:
    """Manually advanced clock returning naive UTC datetimes"""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> datetime:
        self.now = self.now + delta
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    """Path of a not-yet-existing database file"""
    return str(tmp_path / "webpush.db")


@pytest.fixture
def store(db_path, clock):
    """Open store on a fresh database file"""
    s = WebPushStore(db_path, clock=clock)
    try:
        yield s
    finally:
        s.close()


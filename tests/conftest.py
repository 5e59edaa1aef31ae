"""Pytest fixtures for sleep tracker tests."""

import pytest

from sleeptracker.data import SleepDatabase, SleepNight
from sleeptracker.scope import ImmediateScope
from sleeptracker.session_manager import SessionTrackerController


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> int:
        self.now += millis
        return self.now


@pytest.fixture
def database(tmp_path) -> SleepDatabase:
    """A fresh database file per test."""
    return SleepDatabase(str(tmp_path / "sleep.db"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def controller(database, clock) -> SessionTrackerController:
    """Tracker controller running its work inline."""
    ctl = SessionTrackerController(database, ImmediateScope(), clock=clock)
    yield ctl
    ctl.on_cleared()


@pytest.fixture
def closed_night(database) -> SleepNight:
    night = SleepNight(start_time_milli=1_000, end_time_milli=1_000 + 8 * 3_600_000, sleep_quality=4)
    database.insert(night)
    return night

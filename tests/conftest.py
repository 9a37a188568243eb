"""Shared fixtures for the Health Insights test suite."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from health_insights.config import Settings


class FakeClock:
    """A settable clock for services; call it to read the current time."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield db_path
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def settings(temp_db_path) -> Settings:
    """Settings pointing at the temporary database."""
    return Settings(database_path=temp_db_path)


@pytest.fixture
def clock() -> FakeClock:
    """A clock fixed at a known instant."""
    return FakeClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))

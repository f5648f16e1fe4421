"""Shared pytest fixtures and configuration."""

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta

import pytest

from studentdir.directory.backends import LocalBackend


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


class StepClock:
    """Clock that advances one minute on every call."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        return current


@pytest.fixture
def clock() -> StepClock:
    """A clock starting mid-month so every added student is 'this month'."""
    return StepClock(datetime(2026, 3, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def month_start() -> Callable[[], datetime]:
    """Start of the month matching the clock fixture."""
    return lambda: datetime(2026, 3, 1, tzinfo=UTC)


@pytest.fixture
def backend(clock: StepClock) -> Iterator[LocalBackend]:
    """Create an in-memory LocalBackend for testing."""
    b = LocalBackend(":memory:", clock=clock)
    yield b
    b.close()

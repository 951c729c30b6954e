"""
SettleWatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

from pathlib import Path

import pytest

from utils.config import WatcherSettings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at an arbitrary instant."""
    return FakeClock()


@pytest.fixture
def watched_dir(tmp_path: Path) -> Path:
    """Empty directory to watch."""
    directory = tmp_path / "incoming"
    directory.mkdir()
    return directory


@pytest.fixture
def fast_settings() -> WatcherSettings:
    """Watcher settings short enough for real-time tests."""
    return WatcherSettings(
        quiescence_seconds=0.4,
        poll_interval_seconds=0.05,
        recursive=True,
        queue_size=0,
        stop_timeout_seconds=5.0,
    )


@pytest.fixture
def slow_settings() -> WatcherSettings:
    """Default timing, for tests driven by a fake clock."""
    return WatcherSettings(
        quiescence_seconds=15.0,
        poll_interval_seconds=15.0,
    )

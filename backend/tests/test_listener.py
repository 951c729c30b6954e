"""
Tests for the Change Listener.

Requires Python 3.11+.
"""

from pathlib import Path

import pytest
from watchdog.events import (
    DirCreatedEvent,
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from watcher.errors import WatchError
from watcher.listener import ChangeListener, TouchHandler
from watcher.scanner import DirectoryScanner
from watcher.tracker import FileSignatures, StabilityTracker


class TestTouchHandler:
    """Test cases for TouchHandler with synthetic events."""

    @pytest.fixture
    def tracker(self, clock) -> StabilityTracker:
        return StabilityTracker(clock=clock)

    @pytest.fixture
    def handler(self, tracker: StabilityTracker) -> TouchHandler:
        return TouchHandler(tracker)

    def test_created_touches(self, handler, tracker, clock):
        """Test a create event inserts a record."""
        handler.dispatch(FileCreatedEvent("/data/a.cr3"))

        assert tracker.get(Path("/data/a.cr3")).last_touch == clock.now

    def test_modified_extends(self, handler, tracker, clock, tmp_path: Path):
        """Test a write event moves last_touch forward."""
        path = tmp_path / "a.cr3"
        path.write_bytes(b"first")
        handler.dispatch(FileCreatedEvent(str(path)))
        clock.advance(3)
        with open(path, "ab") as f:
            f.write(b"more")
        handler.dispatch(FileModifiedEvent(str(path)))

        assert len(tracker) == 1
        assert tracker.get(path).last_touch == clock.now

    def test_attribute_change_ignored(self, handler, tracker, tmp_path: Path):
        """Test a chmod reported as a modification does not touch the file."""
        path = tmp_path / "a.cr3"
        path.write_bytes(b"payload")
        handler.dispatch(FileCreatedEvent(str(path)))
        tracker.discard(path)

        path.chmod(0o600)
        handler.dispatch(FileModifiedEvent(str(path)))

        assert path not in tracker

    def test_attribute_change_on_scanned_file_ignored(self, tracker, tmp_path: Path):
        """Test signatures recorded by the scanner suppress a later chmod."""
        path = tmp_path / "a.cr3"
        path.write_bytes(b"payload")
        signatures = FileSignatures()
        DirectoryScanner([tmp_path], signatures).scan(tracker)
        tracker.discard(path)

        path.chmod(0o600)
        TouchHandler(tracker, signatures).dispatch(FileModifiedEvent(str(path)))

        assert len(tracker) == 0

    def test_modified_vanished_file_ignored(self, handler, tracker):
        """Test a modification of a file that no longer exists is dropped."""
        handler.dispatch(FileModifiedEvent("/data/missing.cr3"))

        assert len(tracker) == 0

    def test_directory_events_ignored(self, handler, tracker):
        """Test directory events do not create records."""
        handler.dispatch(DirCreatedEvent("/data/sub"))
        handler.dispatch(DirModifiedEvent("/data"))

        assert len(tracker) == 0

    def test_other_events_ignored(self, handler, tracker):
        """Test events other than create/write/delete/move are ignored."""
        handler.dispatch(FileClosedEvent("/data/a.cr3"))

        assert len(tracker) == 0

    def test_deleted_discards(self, handler, tracker):
        """Test a delete event forgets the pending record."""
        handler.dispatch(FileCreatedEvent("/data/a.cr3"))
        handler.dispatch(FileDeletedEvent("/data/a.cr3"))

        assert len(tracker) == 0

    def test_moved_retargets(self, handler, tracker):
        """Test a move forgets the source and touches the destination."""
        handler.dispatch(FileCreatedEvent("/data/a.tmp"))
        handler.dispatch(FileMovedEvent("/data/a.tmp", "/data/a.cr3"))

        assert tracker.pending_paths == [Path("/data/a.cr3")]

    def test_handler_error_logged_not_raised(self):
        """Test a failure while handling one event does not escape."""

        class BrokenTracker(StabilityTracker):
            def touch(self, path, at=None):
                raise RuntimeError("boom")

        handler = TouchHandler(BrokenTracker())
        handler.dispatch(FileCreatedEvent("/data/a.cr3"))


class TestChangeListener:
    """Test cases for ChangeListener with a real observer."""

    def test_start_stop(self, watched_dir: Path):
        """Test the observer starts and its thread ends on stop."""
        listener = ChangeListener([watched_dir], StabilityTracker())
        listener.start()
        assert listener.is_running is True

        listener.stop()
        assert listener.is_running is False

    def test_missing_root_is_fatal(self, tmp_path: Path):
        """Test scheduling a missing directory raises WatchError."""
        listener = ChangeListener([tmp_path / "missing"], StabilityTracker())

        with pytest.raises(WatchError):
            listener.start()
        assert listener.is_running is False

"""
SettleWatch Change Listener.

Cross-platform file system monitoring using watchdog.
Requires Python 3.11+.
"""

import os
from collections.abc import Sequence
from pathlib import Path

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from utils.logger import LoggerMixin
from watcher.errors import WatchError
from watcher.tracker import FileSignatures, StabilityTracker, file_signature


def _event_path(raw: str | bytes) -> Path:
    return Path(os.fsdecode(raw))


class TouchHandler(FileSystemEventHandler, LoggerMixin):
    """
    Turns file system events into tracker updates.

    Created files are touched. A modified file is touched only when its
    size or mtime changed, so attribute-only changes (chmod, chown) do
    not count as writes. Deleted files are forgotten. A move forgets
    the source and touches the destination. Directory events are ignored.
    """

    def __init__(
        self,
        tracker: StabilityTracker,
        signatures: FileSignatures | None = None,
    ) -> None:
        """
        Initialize the handler.

        Args:
            tracker: Tracker receiving the touches
            signatures: Content signatures shared with the scanner
        """
        super().__init__()
        self._tracker = tracker
        self._signatures = signatures if signatures is not None else FileSignatures()

    def dispatch(self, event: FileSystemEvent) -> None:
        """Dispatch one event, logging rather than raising on failure."""
        try:
            super().dispatch(event)
        except Exception as e:
            self.log.error(
                "event_handling_failed",
                event_type=event.event_type,
                path=os.fsdecode(event.src_path),
                error=str(e),
            )

    def _record_signature(self, path: Path) -> bool:
        signature = file_signature(path)
        if signature is None:
            return False
        return self._signatures.update(path, signature)

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file/directory creation."""
        if isinstance(event, DirCreatedEvent):
            return

        path = _event_path(event.src_path)
        self._record_signature(path)
        self.log.debug("file_created", path=str(path))
        self._tracker.touch(path)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file/directory modification."""
        if isinstance(event, DirModifiedEvent):
            return

        path = _event_path(event.src_path)
        if not self._record_signature(path):
            self.log.debug("attribute_change_ignored", path=str(path))
            return

        self.log.debug("file_modified", path=str(path))
        self._tracker.touch(path)

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle file/directory deletion."""
        if isinstance(event, DirDeletedEvent):
            return

        path = _event_path(event.src_path)
        self._signatures.forget(path)
        if self._tracker.discard(path):
            self.log.debug("pending_file_deleted", path=str(path))

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle file/directory move/rename."""
        if isinstance(event, DirMovedEvent):
            return

        src_path = _event_path(event.src_path)
        dest_path = _event_path(event.dest_path)

        # Handle source as deleted
        self._signatures.forget(src_path)
        if self._tracker.discard(src_path):
            self.log.debug("pending_file_moved_from", path=str(src_path))

        # Handle destination as created
        self._record_signature(dest_path)
        self.log.debug("file_moved_to", path=str(dest_path))
        self._tracker.touch(dest_path)


class ChangeListener(LoggerMixin):
    """
    Subscribes to native change notifications for every watched root.

    One watchdog observer thread serves all roots.
    """

    def __init__(
        self,
        roots: Sequence[Path],
        tracker: StabilityTracker,
        recursive: bool = True,
        join_timeout: float = 5.0,
        signatures: FileSignatures | None = None,
    ) -> None:
        """
        Initialize the listener.

        Args:
            roots: Absolute root directories to watch
            tracker: Tracker receiving the touches
            recursive: Whether to watch subdirectories, including new ones
            join_timeout: Seconds to wait for the observer thread on stop
            signatures: Content signatures shared with the scanner
        """
        self._roots = tuple(roots)
        self._recursive = recursive
        self._join_timeout = join_timeout
        self._handler = TouchHandler(tracker, signatures)
        self._observer: Observer | None = None

    def start(self) -> None:
        """
        Start watching.

        Raises:
            WatchError: If the notification backend cannot be set up
        """
        if self._observer is not None:
            return

        observer = Observer()
        try:
            for root in self._roots:
                observer.schedule(self._handler, str(root), recursive=self._recursive)
            observer.start()
        except Exception as e:
            # Scheduling can fail after some roots were registered
            observer.unschedule_all()
            raise WatchError(f"cannot start change notifications ({e})") from e

        self._observer = observer
        self.log.info(
            "change_listener_started",
            roots=[str(r) for r in self._roots],
            recursive=self._recursive,
        )

    def stop(self) -> None:
        """Stop watching and release the OS watch handles."""
        if self._observer is None:
            return

        observer = self._observer
        self._observer = None
        observer.stop()
        observer.join(timeout=self._join_timeout)
        if observer.is_alive():
            self.log.warning("change_listener_join_timeout", timeout=self._join_timeout)
        self.log.info("change_listener_stopped")

    @property
    def is_running(self) -> bool:
        """Check if the observer thread is alive."""
        return self._observer is not None and self._observer.is_alive()

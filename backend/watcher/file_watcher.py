"""
SettleWatch File Watcher.

Wires the scanner, change listener, tracker, settle detector and
subscriber hub together behind a start/stop lifecycle.
Requires Python 3.11+.
"""

import os
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from utils.config import WatcherSettings, get_settings
from utils.logger import LoggerMixin
from watcher.hub import SubscriberHub, Subscription
from watcher.listener import ChangeListener
from watcher.scanner import DirectoryScanner
from watcher.settle import SettleDetector
from watcher.tracker import Clock, FileSignatures, StabilityTracker


class FileWatcher(LoggerMixin):
    """
    Watches directory trees and reports each file once it stops changing.

    Existing files are seeded by a startup scan, live changes come
    from watchdog, and a settle detector publishes files that have
    been quiet for the quiescence period to every subscriber.
    """

    def __init__(
        self,
        directories: Iterable[str | Path],
        settings: WatcherSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            directories: Root directories to watch
            settings: Watch timing and delivery settings
            clock: Monotonic time source, injectable for tests
        """
        self._settings = settings or get_settings().watcher
        self._directories = tuple(
            Path(os.path.abspath(os.fspath(d))) for d in directories
        )

        self._tracker = StabilityTracker(clock=clock)
        self._hub = SubscriberHub(default_maxsize=self._settings.queue_size)
        self._signatures = FileSignatures()
        self._scanner = DirectoryScanner(self._directories, self._signatures)
        self._listener = ChangeListener(
            self._directories,
            self._tracker,
            recursive=self._settings.recursive,
            join_timeout=self._settings.stop_timeout_seconds,
            signatures=self._signatures,
        )
        self._detector = SettleDetector(
            self._tracker,
            self._hub,
            quiescence=self._settings.quiescence_seconds,
            poll_interval=self._settings.poll_interval_seconds,
        )

        self._stopped = threading.Event()
        self._lifecycle_lock = threading.Lock()
        self._running = False

    def subscribe(self, maxsize: int | None = None) -> Subscription:
        """
        Register for stable-file notifications.

        Args:
            maxsize: Buffer bound for this subscriber, defaults to settings

        Returns:
            A subscription receiving each stable path once
        """
        return self._hub.subscribe(maxsize=maxsize)

    def start(self) -> None:
        """
        Scan the roots, then start the listener and settle detector.

        Raises:
            WatchError: If a root is unreadable or notifications cannot start
        """
        with self._lifecycle_lock:
            if self._running:
                return

            seeded = self._scanner.scan(self._tracker)
            self._listener.start()
            try:
                self._detector.start()
            except Exception:
                self._listener.stop()
                raise

            self._stopped.clear()
            self._running = True

        self.log.info(
            "file_watcher_started",
            directories=[str(d) for d in self._directories],
            seeded=seeded,
            quiescence=self._settings.quiescence_seconds,
            poll_interval=self._settings.poll_interval_seconds,
        )

    def watch(self) -> None:
        """Start watching and block until stop() is called."""
        self.start()
        self._stopped.wait()

    def stop(self) -> None:
        """
        Stop all background work and close every subscription.

        Returns once the listener and detector threads have ended.
        """
        with self._lifecycle_lock:
            if not self._running:
                return

            timeout = self._settings.stop_timeout_seconds
            self._listener.stop()
            self._detector.stop(timeout=timeout)
            self._hub.close()
            self._running = False
            self._stopped.set()

        self.log.info("file_watcher_stopped", pending=len(self._tracker))

    def settle_now(self) -> list[Path]:
        """Run one settle pass immediately."""
        return self._detector.settle_once()

    @property
    def directories(self) -> tuple[Path, ...]:
        """The watched roots."""
        return self._directories

    @property
    def tracker(self) -> StabilityTracker:
        """The shared tracking table."""
        return self._tracker

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def pending_count(self) -> int:
        """Get number of files not yet stable."""
        return len(self._tracker)

    def __enter__(self) -> "FileWatcher":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()

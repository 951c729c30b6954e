"""
SettleWatch Settle Detector.

Periodically reports files that have stopped changing.
Requires Python 3.11+.
"""

import threading
from pathlib import Path

from utils.logger import LoggerMixin
from watcher.hub import SubscriberHub
from watcher.tracker import StabilityTracker


class SettleDetector(LoggerMixin):
    """
    Polls the tracker and publishes settled files.

    Every pass emits all records that have been quiet for the
    quiescence period, oldest first. A record leaves the tracker
    before it is published, so it can only be reported once per
    burst of activity.
    """

    def __init__(
        self,
        tracker: StabilityTracker,
        hub: SubscriberHub,
        quiescence: float = 15.0,
        poll_interval: float = 15.0,
    ) -> None:
        """
        Initialize the detector.

        Args:
            tracker: Tracker to poll
            hub: Hub receiving the stable paths
            quiescence: Seconds without a touch before a file is stable
            poll_interval: Seconds between passes
        """
        self._tracker = tracker
        self._hub = hub
        self._quiescence = quiescence
        self._poll_interval = poll_interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def settle_once(self) -> list[Path]:
        """
        Run a single settle pass.

        Returns:
            Paths published in this pass
        """
        settled = self._tracker.pop_settled(self._quiescence)
        published: list[Path] = []

        for record in settled:
            if not record.path.exists():
                self.log.debug("settled_file_vanished", path=str(record.path))
                continue

            delivered = self._hub.publish(record.path)
            published.append(record.path)
            self.log.info("file_stable", path=str(record.path), subscribers=delivered)

        if settled:
            self.log.debug(
                "settle_pass",
                settled=len(settled),
                published=len(published),
                pending=len(self._tracker),
            )
        return published

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.settle_once()
            except Exception as e:
                self.log.error("settle_pass_failed", error=str(e))
            self._stop_event.wait(self._poll_interval)

    def start(self) -> None:
        """Start the polling thread."""
        if self._thread is not None:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="settle-detector",
            daemon=True,
        )
        self._thread.start()
        self.log.info(
            "settle_detector_started",
            quiescence=self._quiescence,
            poll_interval=self._poll_interval,
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the polling thread and wait for it to finish.

        Args:
            timeout: Seconds to wait for the thread
        """
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            self.log.warning("settle_detector_join_timeout", timeout=timeout)
        self._thread = None
        self.log.info("settle_detector_stopped")

    @property
    def is_running(self) -> bool:
        """Check if the polling thread is alive."""
        return self._thread is not None and self._thread.is_alive()

"""
SettleWatch Stability Tracker.

Thread-safe table of files that are still being written.
Requires Python 3.11+.
"""

import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from utils.logger import LoggerMixin

Clock = Callable[[], float]


@dataclass
class FileRecord:
    """A file waiting to go quiet."""

    path: Path
    last_touch: float

    def age(self, now: float) -> float:
        """Seconds since the last touch."""
        return now - self.last_touch


class StabilityTracker(LoggerMixin):
    """
    Tracks the last observed touch time per file.

    Shared between the scanner, the change listener and the settle
    detector. Every read-modify-write on a key, and the whole
    select-and-remove step of a settle pass, runs under one lock.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        """
        Initialize the tracker.

        Args:
            clock: Monotonic time source, injectable for tests
        """
        self._clock = clock or time.monotonic
        self._records: dict[Path, FileRecord] = {}
        self._lock = threading.Lock()

    @property
    def clock(self) -> Clock:
        """The time source used for touches."""
        return self._clock

    def touch(self, path: Path, at: float | None = None) -> FileRecord:
        """
        Record activity on a file.

        Inserts a record on first sight, otherwise moves last_touch
        forward. A touch never moves last_touch backwards.

        Args:
            path: Absolute path of the file
            at: Observation time, defaults to now

        Returns:
            A copy of the record after the update
        """
        when = self._clock() if at is None else at

        with self._lock:
            record = self._records.get(path)
            if record is None:
                record = FileRecord(path=path, last_touch=when)
                self._records[path] = record
            elif when > record.last_touch:
                record.last_touch = when
            return FileRecord(path=record.path, last_touch=record.last_touch)

    def discard(self, path: Path) -> bool:
        """
        Stop tracking a file without reporting it.

        Returns:
            True if a pending record was removed
        """
        with self._lock:
            return self._records.pop(path, None) is not None

    def pop_settled(
        self, quiescence: float, now: float | None = None
    ) -> list[FileRecord]:
        """
        Remove and return every record that has been quiet long enough.

        Args:
            quiescence: Required seconds without a touch
            now: Reference time, defaults to now

        Returns:
            Settled records, oldest touch first then by path
        """
        with self._lock:
            current = self._clock() if now is None else now
            settled = [
                record
                for record in self._records.values()
                if record.age(current) >= quiescence
            ]
            for record in settled:
                del self._records[record.path]

        settled.sort(key=lambda r: (r.last_touch, str(r.path)))
        return settled

    def get(self, path: Path) -> FileRecord | None:
        """Get a copy of the pending record for a path."""
        with self._lock:
            record = self._records.get(path)
            if record is None:
                return None
            return FileRecord(path=record.path, last_touch=record.last_touch)

    def snapshot(self) -> list[FileRecord]:
        """Get copies of all pending records."""
        with self._lock:
            return [
                FileRecord(path=r.path, last_touch=r.last_touch)
                for r in self._records.values()
            ]

    def clear(self) -> None:
        """Drop all pending records."""
        with self._lock:
            self._records.clear()

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def pending_paths(self) -> list[Path]:
        """Get list of paths with pending records."""
        with self._lock:
            return list(self._records.keys())


Signature = tuple[int, int]


def file_signature(path: Path) -> Signature | None:
    """
    Content signature of a file: modification time and size.

    Returns:
        (st_mtime_ns, st_size), or None if the file cannot be stat'ed
    """
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_mtime_ns, st.st_size)


class FileSignatures:
    """
    Last seen content signature per file.

    Lets the listener tell a write apart from an attribute-only change
    such as chmod, which watchdog also reports as a modification.
    """

    def __init__(self) -> None:
        self._signatures: dict[Path, Signature] = {}
        self._lock = threading.Lock()

    def update(self, path: Path, signature: Signature) -> bool:
        """
        Record a signature.

        Returns:
            True if it differs from the one previously recorded
        """
        with self._lock:
            changed = self._signatures.get(path) != signature
            self._signatures[path] = signature
            return changed

    def forget(self, path: Path) -> None:
        """Drop the signature of a removed file."""
        with self._lock:
            self._signatures.pop(path, None)

    def get(self, path: Path) -> Signature | None:
        with self._lock:
            return self._signatures.get(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._signatures)

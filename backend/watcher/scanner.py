"""
SettleWatch Directory Scanner.

Seeds the stability tracker with files that already exist at startup.
Requires Python 3.11+.
"""

import os
from collections.abc import Sequence
from pathlib import Path

from utils.logger import LoggerMixin
from watcher.errors import WatchError
from watcher.tracker import FileSignatures, StabilityTracker, file_signature


class DirectoryScanner(LoggerMixin):
    """
    Walks each watched root once and touches every regular file.

    A root that cannot be read is fatal. An unreadable entry below a
    root is logged and skipped.
    """

    def __init__(
        self,
        roots: Sequence[Path],
        signatures: FileSignatures | None = None,
    ) -> None:
        """
        Initialize the scanner.

        Args:
            roots: Absolute root directories to walk
            signatures: Receives the content signature of every seeded file
        """
        self._roots = tuple(roots)
        self._signatures = signatures

    def _check_root(self, root: Path) -> None:
        if not root.exists():
            raise WatchError("watched directory does not exist", root)
        if not root.is_dir():
            raise WatchError("watched path is not a directory", root)
        try:
            with os.scandir(root):
                pass
        except OSError as e:
            raise WatchError(f"cannot read watched directory ({e})", root) from e

    def _on_walk_error(self, error: OSError) -> None:
        self.log.warning(
            "scan_entry_failed",
            path=error.filename,
            error=error.strerror or str(error),
        )

    def scan(self, tracker: StabilityTracker) -> int:
        """
        Seed the tracker with every file under the roots.

        All files found in one scan share the same observation time.

        Args:
            tracker: Tracker to seed

        Returns:
            Number of files seeded

        Raises:
            WatchError: If a root is missing or unreadable
        """
        for root in self._roots:
            self._check_root(root)

        now = tracker.clock()
        count = 0

        for root in self._roots:
            root_count = 0
            for dirpath, _dirnames, filenames in os.walk(root, onerror=self._on_walk_error):
                for name in filenames:
                    path = Path(dirpath) / name
                    # Skip sockets, fifos and dangling links
                    if not path.is_file():
                        continue
                    tracker.touch(path, at=now)
                    if self._signatures is not None:
                        signature = file_signature(path)
                        if signature is not None:
                            self._signatures.update(path, signature)
                    root_count += 1

            self.log.info("directory_scanned", root=str(root), files=root_count)
            count += root_count

        return count

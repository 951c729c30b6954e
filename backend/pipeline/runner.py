"""
SettleWatch Conversion Pipeline.

Consumes stable-file notifications, deduplicates them against the
file index and converts new files.
Requires Python 3.11+.
"""

from collections import Counter
from enum import StrEnum
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from pipeline.converter import ConversionError, Converter
from pipeline.filters import ExtensionFilter
from pipeline.index import FileIndex
from utils.logger import LoggerMixin
from watcher.hub import Subscription


class HandleResult(StrEnum):
    """Outcome of handling one stable file."""

    UNSUPPORTED = "unsupported"
    SKIPPED = "skipped"
    CONVERTED = "converted"
    FAILED = "failed"


class ConversionPipeline(LoggerMixin):
    """
    Handles stable files one at a time.

    The index entry and the conversion share a transaction: when the
    conversion fails the entry is rolled back, so the file is tried
    again the next time it settles.
    """

    def __init__(
        self,
        index: FileIndex,
        converter: Converter,
        extension_filter: ExtensionFilter,
        dest_dir: Path,
        dest_suffix: str = ".dng",
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            index: Dedup index
            converter: External converter
            extension_filter: Allow-list for source files
            dest_dir: Directory receiving converted files
            dest_suffix: Suffix for converted files, empty keeps the source name
        """
        self._index = index
        self._converter = converter
        self._filter = extension_filter
        self._dest_dir = dest_dir
        self._dest_suffix = dest_suffix

    def destination_for(self, source: Path) -> Path:
        """Compute the output path for a source file."""
        if not self._dest_suffix:
            return self._dest_dir / source.name
        return self._dest_dir / (source.stem + self._dest_suffix)

    def handle(self, path: Path) -> HandleResult:
        """
        Process one stable file.

        Args:
            path: Stable file reported by the watcher

        Returns:
            What happened to the file
        """
        self.log.info("file_changed", path=str(path))

        if not self._filter.matches(path):
            self.log.info("extension_not_supported", file=path.name)
            return HandleResult.UNSUPPORTED

        try:
            with self._index.transaction() as session:
                if self._index.find_by_name(session, path) is not None:
                    self.log.info("file_skipped", file=path.name)
                    return HandleResult.SKIPPED

                self._index.create(session, path)
                self._converter.convert(path, self.destination_for(path))
        except (ConversionError, SQLAlchemyError, OSError):
            self.log.exception("file_processing_failed", file=path.name)
            return HandleResult.FAILED

        return HandleResult.CONVERTED

    def run(self, subscription: Subscription) -> Counter[HandleResult]:
        """
        Handle notifications until the subscription closes.

        Returns:
            Count of results by kind
        """
        results: Counter[HandleResult] = Counter()
        for path in subscription:
            results[self.handle(path)] += 1

        self.log.info(
            "pipeline_finished",
            **{result.value: count for result, count in results.items()},
        )
        return results

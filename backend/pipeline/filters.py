"""
SettleWatch Extension Filter.

Requires Python 3.11+.
"""

from collections.abc import Iterable
from pathlib import Path


def normalize_extension(ext: str) -> str:
    """Lower-case an extension and give it a leading dot."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


class ExtensionFilter:
    """
    Case-insensitive allow-list of file extensions.

    An empty allow-list accepts every file.
    """

    def __init__(self, extensions: Iterable[str] = ()) -> None:
        self._extensions = frozenset(
            normalize_extension(e) for e in extensions if e.strip()
        )

    def matches(self, path: Path) -> bool:
        """Check if a path has an allowed extension."""
        if not self._extensions:
            return True
        return path.suffix.lower() in self._extensions

    @property
    def extensions(self) -> frozenset[str]:
        """The normalized allow-list."""
        return self._extensions

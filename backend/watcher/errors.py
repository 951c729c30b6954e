"""
SettleWatch Watcher Errors.

Requires Python 3.11+.
"""

from pathlib import Path


class WatchError(Exception):
    """Fatal failure while starting the watch subsystem."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is None:
            return message
        return f"{message}: {self.path}"

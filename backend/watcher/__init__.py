"""
SettleWatch File Watcher Package.

Detects when files have finished being written.
Requires Python 3.11+.
"""

from watcher.errors import WatchError
from watcher.file_watcher import FileWatcher
from watcher.hub import SubscriberHub, Subscription, SubscriptionClosed
from watcher.tracker import FileRecord, StabilityTracker

__all__ = [
    "FileWatcher",
    "FileRecord",
    "StabilityTracker",
    "SubscriberHub",
    "Subscription",
    "SubscriptionClosed",
    "WatchError",
]

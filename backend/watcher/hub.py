"""
SettleWatch Subscriber Hub.

Fans stable-file notifications out to independent subscriber queues.
Requires Python 3.11+.
"""

import asyncio
import queue
import threading
from collections import deque
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

from utils.logger import LoggerMixin


class SubscriptionClosed(Exception):
    """Raised by Subscription.get once the subscription is closed and drained."""


class Subscription:
    """
    A single subscriber's notification channel.

    Each subscription owns its own buffer, so a slow reader only
    delays itself. Iteration ends once the subscription is closed and
    every buffered path has been read.
    """

    # Async iteration re-checks for cancellation at this cadence
    _ASYNC_POLL_SECONDS = 0.25

    def __init__(self, maxsize: int = 0) -> None:
        """
        Initialize the subscription.

        Args:
            maxsize: Buffer bound, 0 for unbounded
        """
        self._maxsize = maxsize
        self._items: deque[Path] = deque()
        self._cond = threading.Condition()
        self._closed = False

    def deliver(self, path: Path) -> bool:
        """
        Buffer a notification without blocking.

        Returns:
            False if the subscription is closed or its buffer is full
        """
        with self._cond:
            if self._closed:
                return False
            if self._maxsize and len(self._items) >= self._maxsize:
                return False
            self._items.append(path)
            self._cond.notify()
            return True

    def get(self, timeout: float | None = None) -> Path:
        """
        Wait for the next stable path.

        Args:
            timeout: Seconds to wait, None to wait until closed

        Raises:
            queue.Empty: If nothing arrived within the timeout
            SubscriptionClosed: If closed and drained
        """
        with self._cond:
            self._cond.wait_for(lambda: self._items or self._closed, timeout)
            if self._items:
                return self._items.popleft()
            if self._closed:
                raise SubscriptionClosed()
            raise queue.Empty()

    def get_nowait(self) -> Path:
        """Get the next stable path if one is buffered."""
        return self.get(timeout=0)

    def close(self) -> None:
        """Close the subscription; buffered paths can still be read."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        """Check if the subscription has been closed."""
        with self._cond:
            return self._closed

    @property
    def pending_count(self) -> int:
        """Get number of buffered notifications."""
        with self._cond:
            return len(self._items)

    def __iter__(self) -> Iterator[Path]:
        while True:
            try:
                yield self.get()
            except SubscriptionClosed:
                return

    def _wait_ready(self, timeout: float) -> bool:
        # Never pops; the async reader takes the item on the event loop
        with self._cond:
            return bool(self._cond.wait_for(lambda: self._items or self._closed, timeout))

    def __aiter__(self) -> AsyncIterator[Path]:
        return self._aiter()

    async def _aiter(self) -> AsyncIterator[Path]:
        while True:
            await asyncio.to_thread(self._wait_ready, self._ASYNC_POLL_SECONDS)
            try:
                path = self.get_nowait()
            except queue.Empty:
                continue
            except SubscriptionClosed:
                return
            yield path


class SubscriberHub(LoggerMixin):
    """
    Registry of subscriptions.

    Publishing never blocks: a full buffer drops that subscriber's copy
    and a closed subscription is skipped.
    """

    def __init__(self, default_maxsize: int = 0) -> None:
        """
        Initialize the hub.

        Args:
            default_maxsize: Buffer bound for new subscriptions, 0 for unbounded
        """
        self._default_maxsize = default_maxsize
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, maxsize: int | None = None) -> Subscription:
        """
        Register a new subscription.

        Args:
            maxsize: Buffer bound, defaults to the hub default

        Returns:
            The new subscription
        """
        subscription = Subscription(
            maxsize=self._default_maxsize if maxsize is None else maxsize
        )
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def publish(self, path: Path) -> int:
        """
        Deliver a stable path to every subscription, in registration order.

        Returns:
            Number of subscriptions that accepted the path
        """
        with self._lock:
            subscriptions = list(self._subscriptions)

        delivered = 0
        for index, subscription in enumerate(subscriptions):
            if subscription.closed:
                continue
            if subscription.deliver(path):
                delivered += 1
            elif not subscription.closed:
                self.log.warning(
                    "subscriber_queue_full",
                    subscriber=index,
                    path=str(path),
                )
        return delivered

    def close(self) -> None:
        """Close every subscription."""
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.close()

    @property
    def subscriber_count(self) -> int:
        """Get number of registered subscriptions."""
        with self._lock:
            return len(self._subscriptions)

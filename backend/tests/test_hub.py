"""
Tests for the Subscriber Hub.

Requires Python 3.11+.
"""

import asyncio
import queue
import threading
from pathlib import Path

import pytest

from watcher.hub import SubscriberHub, Subscription, SubscriptionClosed


class TestSubscription:
    """Test cases for Subscription."""

    def test_get_in_delivery_order(self):
        """Test paths come out in the order they were delivered."""
        subscription = Subscription()
        subscription.deliver(Path("/a"))
        subscription.deliver(Path("/b"))

        assert subscription.get_nowait() == Path("/a")
        assert subscription.get_nowait() == Path("/b")

    def test_get_timeout(self):
        """Test an empty open subscription times out."""
        with pytest.raises(queue.Empty):
            Subscription().get(timeout=0.01)

    def test_close_drains_then_ends(self):
        """Test buffered paths survive close and iteration then stops."""
        subscription = Subscription()
        subscription.deliver(Path("/a"))
        subscription.close()

        assert subscription.deliver(Path("/b")) is False
        assert list(subscription) == [Path("/a")]
        with pytest.raises(SubscriptionClosed):
            subscription.get_nowait()

    def test_close_wakes_blocked_reader(self):
        """Test a reader blocked in get() returns when the subscription closes."""
        subscription = Subscription()
        results: list[object] = []

        def reader() -> None:
            results.extend(subscription)

        thread = threading.Thread(target=reader)
        thread.start()
        subscription.close()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert results == []

    def test_bounded_buffer_rejects_when_full(self):
        """Test a full bounded buffer refuses instead of blocking."""
        subscription = Subscription(maxsize=1)

        assert subscription.deliver(Path("/a")) is True
        assert subscription.deliver(Path("/b")) is False
        assert subscription.pending_count == 1

    @pytest.mark.asyncio
    async def test_async_iteration(self):
        """Test async for yields buffered paths and ends on close."""
        subscription = Subscription()
        subscription.deliver(Path("/a"))
        subscription.deliver(Path("/b"))
        subscription.close()

        received = [path async for path in subscription]

        assert received == [Path("/a"), Path("/b")]

    @pytest.mark.asyncio
    async def test_cancelled_async_read_keeps_path(self):
        """Test a path delivered after an async read timed out is still readable."""
        subscription = Subscription()
        iterator = subscription.__aiter__()

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(iterator.__anext__(), 0.05)

        await asyncio.sleep(0.1)
        subscription.deliver(Path("/a"))
        await asyncio.sleep(0.4)
        subscription.close()

        assert list(subscription) == [Path("/a")]


class TestSubscriberHub:
    """Test cases for SubscriberHub."""

    @pytest.fixture
    def hub(self) -> SubscriberHub:
        return SubscriberHub()

    def test_fan_out_to_every_subscriber(self, hub: SubscriberHub):
        """Test two subscribers both receive the same path once."""
        first = hub.subscribe()
        second = hub.subscribe()

        assert hub.publish(Path("/data/a.txt")) == 2
        assert first.get_nowait() == Path("/data/a.txt")
        assert second.get_nowait() == Path("/data/a.txt")
        assert first.pending_count == 0
        assert second.pending_count == 0

    def test_slow_subscriber_does_not_block_others(self, hub: SubscriberHub):
        """Test a full subscriber is skipped while others keep receiving."""
        slow = hub.subscribe(maxsize=1)
        fast = hub.subscribe()

        hub.publish(Path("/1"))
        delivered = hub.publish(Path("/2"))

        assert delivered == 1
        assert slow.pending_count == 1
        assert [fast.get_nowait(), fast.get_nowait()] == [Path("/1"), Path("/2")]

    def test_closed_subscriber_skipped(self, hub: SubscriberHub):
        """Test publishing skips closed subscriptions."""
        closed = hub.subscribe()
        open_ = hub.subscribe()
        closed.close()

        assert hub.publish(Path("/a")) == 1
        assert open_.get_nowait() == Path("/a")

    def test_default_maxsize_applies(self):
        """Test the hub default bounds new subscriptions."""
        hub = SubscriberHub(default_maxsize=1)
        subscription = hub.subscribe()
        hub.publish(Path("/a"))
        hub.publish(Path("/b"))

        assert subscription.pending_count == 1

    def test_close_closes_all(self, hub: SubscriberHub):
        """Test closing the hub closes every subscription."""
        subscriptions = [hub.subscribe() for _ in range(3)]
        hub.close()

        assert hub.subscriber_count == 3
        assert all(s.closed for s in subscriptions)
        assert hub.publish(Path("/a")) == 0

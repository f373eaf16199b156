"""Event Bus Implementation.

This module provides the ``EventBus`` registry and the ``Subscriber`` handles
it hands out. A publisher pushes a payload onto a topic; every subscriber
registered on that topic at that moment gets the payload on its own queue and
consumes it lazily by iterating the handle.

## Key Features

- **Non-blocking publish**: ``publish`` only enqueues, it never awaits a consumer
- **Independent delivery**: one bounded FIFO queue per subscriber (drop-oldest)
- **Explicit lifecycle**: ``unsubscribe`` is idempotent and safe from any task or thread
- **Error containment**: a dead subscriber is dropped, the publisher never sees the error
- **Singleton Pattern**: Global instance via @lru_cache

## Usage

```python
from library_server.event_bus import get_event_bus

bus = get_event_bus()

async with bus.subscribe("BOOK_ADDED") as subscriber:
    async for book in subscriber:
        print(book.title)

# elsewhere, e.g. in a mutation
bus.publish("BOOK_ADDED", book)
```

No events are buffered for topics without subscribers, and nothing is
replayed: a subscriber only sees events published after it registered.
"""

import asyncio
import threading
from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Any

from loguru import logger
from pydantic import BaseModel

from .core import SubscriberClosedError, SubscriberState, SubscriptionError

DEFAULT_QUEUE_SIZE = 100

# Queue marker that ends a consumer's iteration after cancellation
_CLOSED = object()


class Subscriber:
    """Handle for one consumer's interest in a topic.

    Created by ``EventBus.subscribe`` and bound to the event loop that was
    running at that moment. Iterate it with ``async for`` to receive payloads;
    use it as an async context manager to unsubscribe on exit.
    """

    def __init__(self, bus: "EventBus", topic: str, loop: asyncio.AbstractEventLoop, queue_size: int):
        self._bus = bus
        self._topic = topic
        self._loop = loop
        self._queue_size = queue_size
        # Unbounded on purpose: the bound is enforced in _enqueue so the close marker always fits
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._state = SubscriberState.REGISTERED
        self._dropped = 0

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def state(self) -> SubscriberState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is not SubscriberState.CANCELLED

    @property
    def dropped(self) -> int:
        """Number of events discarded because the queue was full."""
        return self._dropped

    @property
    def pending(self) -> int:
        """Number of events queued but not yet consumed."""
        return self._queue.qsize()

    def deliver(self, payload: Any) -> None:
        """Queue a payload for this subscriber without blocking.

        Safe to call from any thread: deliveries from outside the subscriber's
        loop are handed over with ``call_soon_threadsafe``, which keeps them
        in call order.

        Raises:
            SubscriberClosedError: If the subscriber's event loop is closed
        """
        if self._loop.is_closed():
            raise SubscriberClosedError(f"Event loop of subscriber on {self._topic} is closed")

        if _running_loop() is self._loop:
            self._enqueue(payload)
            return

        try:
            self._loop.call_soon_threadsafe(self._enqueue, payload)
        except RuntimeError as e:
            raise SubscriberClosedError(f"Event loop of subscriber on {self._topic} is closed") from e

    def close(self) -> None:
        """Mark the subscriber cancelled and wake a waiting consumer.

        Idempotent. Normally called through ``EventBus.unsubscribe``.
        """
        if self._state is SubscriberState.CANCELLED:
            return
        self._state = SubscriberState.CANCELLED

        if _running_loop() is self._loop:
            self._wake()
        elif not self._loop.is_closed():
            try:
                self._loop.call_soon_threadsafe(self._wake)
            except RuntimeError:
                # Loop shut down meanwhile; nobody is left waiting on the queue
                pass

    def unsubscribe(self) -> bool:
        """Remove this subscriber from its bus. See ``EventBus.unsubscribe``."""
        return self._bus.unsubscribe(self)

    def _enqueue(self, payload: Any) -> None:
        if self._state is SubscriberState.CANCELLED:
            return
        if self._queue.qsize() >= self._queue_size:
            self._queue.get_nowait()
            self._dropped += 1
            logger.warning(f"Subscriber queue for {self._topic} full, dropped oldest event ({self._dropped} dropped so far)")
        self._queue.put_nowait(payload)

    def _wake(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscriber":
        return self

    async def __anext__(self) -> Any:
        if self._state is SubscriberState.CANCELLED:
            raise StopAsyncIteration
        if self._state is SubscriberState.REGISTERED:
            self._state = SubscriberState.DELIVERING

        payload = await self._queue.get()
        if payload is _CLOSED or self._state is SubscriberState.CANCELLED:
            raise StopAsyncIteration
        return payload

    async def __aenter__(self) -> "Subscriber":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"<Subscriber topic={self._topic!r} state={self._state.value} pending={self.pending}>"


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class EventBus:
    """In-process publish/subscribe registry keyed by topic.

    The registry (topic -> set of subscribers) is guarded by a lock. Publishing
    iterates over a snapshot taken under the lock, so subscribers removed while
    a publish is in flight neither break the iteration nor cause other live
    subscribers to be skipped or served twice.

    Example:
        ```python
        bus = get_event_bus()
        subscriber = bus.subscribe("BOOK_ADDED")
        bus.publish("BOOK_ADDED", book)
        book = await anext(subscriber)
        bus.unsubscribe(subscriber)
        ```
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE, isolate_events: bool = False) -> None:
        """Initialize a new EventBus instance.

        Args:
            queue_size: Maximum number of undelivered events kept per subscriber.
                        When exceeded, the oldest queued event is dropped.
            isolate_events: If True, each subscriber receives a deep copy of
                            pydantic payloads. Can be overridden per publish() call.
        """
        if queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got: {queue_size}")
        self._subscribers: dict[str, set[Subscriber]] = {}
        self._lock = threading.Lock()
        self._queue_size = queue_size
        self._isolate_events = isolate_events
        logger.debug(f"EventBus initialized (queue_size={queue_size}, isolate_events={isolate_events})")

    def subscribe(self, topic: str) -> Subscriber:
        """Register a new subscriber on a topic.

        Must be called from the event loop that will consume the events.

        Args:
            topic: Name of the topic

        Returns:
            A fresh subscriber handle with an empty backlog

        Raises:
            SubscriptionError: If the topic is invalid or no event loop is running
        """
        if not isinstance(topic, str) or not topic:
            raise SubscriptionError(f"Topic must be a non-empty string, got: {topic!r}")

        loop = _running_loop()
        if loop is None:
            raise SubscriptionError("subscribe() must be called from a running event loop")

        subscriber = Subscriber(self, topic, loop, self._queue_size)
        with self._lock:
            self._subscribers.setdefault(topic, set()).add(subscriber)
            count = len(self._subscribers[topic])

        logger.debug(f"Subscriber registered on {topic} ({count} active)")
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber and end its iteration.

        Idempotent and safe to call from any task or thread, including while a
        publish to the same topic is in progress.

        Args:
            subscriber: The handle returned by ``subscribe``

        Returns:
            True if the subscriber was registered, False if it was already gone
        """
        with self._lock:
            subscribers = self._subscribers.get(subscriber.topic)
            removed = subscribers is not None and subscriber in subscribers
            if removed:
                subscribers.discard(subscriber)
                if not subscribers:
                    del self._subscribers[subscriber.topic]

        subscriber.close()
        if removed:
            logger.debug(f"Subscriber removed from {subscriber.topic}")
        return removed

    def publish(self, topic: str, payload: Any, isolate: bool | None = None) -> int:
        """Queue a payload for every subscriber currently registered on a topic.

        Never blocks and never raises: a subscriber that cannot take the
        payload is treated as cancelled and dropped from the registry.

        Args:
            topic: Name of the topic
            payload: The event payload
            isolate: If True, each subscriber receives a deep copy of a pydantic payload.
                     If None (default), uses the bus-level setting.

        Returns:
            Number of subscribers the payload was queued for
        """
        with self._lock:
            subscribers = list(self._subscribers.get(topic, ()))

        if not subscribers:
            logger.debug(f"No subscribers on {topic}, event dropped")
            return 0

        should_isolate = (isolate if isolate is not None else self._isolate_events) and isinstance(payload, BaseModel)
        logger.trace(f"Publishing to {len(subscribers)} subscribers on {topic} (isolate={should_isolate})")

        delivered = 0
        for subscriber in subscribers:
            try:
                subscriber.deliver(payload.model_copy(deep=True) if should_isolate else payload)
                delivered += 1
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Dropping subscriber on {topic} after failed delivery: {e}")
                self.unsubscribe(subscriber)

        logger.debug(f"Published event on {topic} to {delivered}/{len(subscribers)} subscribers")
        return delivered

    async def listen(self, topic: str) -> AsyncIterator[Any]:
        """Yield events published on a topic until the consumer stops.

        Convenience wrapper around subscribe / iterate / unsubscribe. Closing or
        cancelling the generator unregisters the subscriber.
        """
        async with self.subscribe(topic) as subscriber:
            async for payload in subscriber:
                yield payload

    def subscriber_count(self, topic: str | None = None) -> int:
        """Get the number of active subscribers on a topic, or on all topics."""
        with self._lock:
            if topic is not None:
                return len(self._subscribers.get(topic, ()))
            return sum(len(subscribers) for subscribers in self._subscribers.values())

    def get_topics(self) -> list[str]:
        """Get all topics that currently have subscribers."""
        with self._lock:
            return list(self._subscribers.keys())

    def shutdown(self) -> None:
        """Cancel every subscriber and clear the registry.

        Call this during application shutdown so open subscription streams end.
        """
        with self._lock:
            subscribers = [s for topic_subscribers in self._subscribers.values() for s in topic_subscribers]
            self._subscribers.clear()

        for subscriber in subscribers:
            subscriber.close()
        logger.debug(f"EventBus shutdown complete ({len(subscribers)} subscribers cancelled)")


@lru_cache
def get_event_bus() -> EventBus:
    """Get or create the singleton EventBus instance.

    The per-subscriber queue bound comes from ``LIBRARY_SERVER_EVENT_QUEUE_SIZE``.

    Returns:
        The EventBus instance
    """
    from library_server.settings import get_settings

    return EventBus(queue_size=get_settings().event_queue_size)

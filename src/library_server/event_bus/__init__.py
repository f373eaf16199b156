"""Event Bus for live-update notifications.

This package provides the in-process publish/subscribe mechanism that links a
mutation's side effect to any number of long-lived subscription streams. It
supports:

- **Topics**: Events are published on named topics (e.g. ``BOOK_ADDED``)
- **Subscriber Handles**: Each consumer owns an independent, lazily consumed queue
- **Explicit Unsubscribe**: Handles are removed from the registry on request, not on GC
- **At-most-once Delivery**: No buffering without subscribers, no replay, no retry
- **Singleton Pattern**: Global event bus instance via @lru_cache

## Quick Start

```python
from library_server.event_bus import get_event_bus

bus = get_event_bus()

async def watch() -> None:
    async for book in bus.listen("BOOK_ADDED"):
        print(f"New book: {book.title}")

bus.publish("BOOK_ADDED", book)
```

For the lifecycle states and the exception hierarchy, see `core.py`.
For the registry and subscriber implementation, see `bus.py`.
"""

from .bus import EventBus, Subscriber, get_event_bus
from .core import EventBusError, SubscriberState, SubscriptionError

__all__ = [
    "EventBus",
    "EventBusError",
    "Subscriber",
    "SubscriberState",
    "SubscriptionError",
    "get_event_bus",
]

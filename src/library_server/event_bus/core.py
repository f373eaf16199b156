"""Core Event Bus Components.

This module contains the fundamental abstractions for the event bus system.
These components are framework-agnostic and can be used in any asyncio
application.

## Key Components

- **SubscriberState**: Lifecycle of a subscriber handle
- **EventBusError**: Base exception for all event bus related errors
- **SubscriptionError**: Raised when a subscription cannot be registered
- **SubscriberClosedError**: Raised internally when delivery hits a dead subscriber

## Subscriber Lifecycle

```
REGISTERED --(first read)--> DELIVERING --(unsubscribe / close)--> CANCELLED
     \\___________________________(unsubscribe)___________________/
```

``CANCELLED`` is terminal: a cancelled handle is never registered again and
receives no further deliveries. Re-subscribing creates a new handle with an
empty backlog.
"""

from enum import Enum


class SubscriberState(str, Enum):
    """Lifecycle state of a subscriber handle."""

    REGISTERED = "registered"
    DELIVERING = "delivering"
    CANCELLED = "cancelled"


class EventBusError(Exception):
    """Base exception for all event bus related errors.

    Use this for catching any event bus related error:
        ```python
        try:
            subscriber = bus.subscribe("BOOK_ADDED")
        except EventBusError as e:
            logger.error(f"Event bus error: {e}")
        ```
    """


class SubscriptionError(EventBusError):
    """Raised when a subscription cannot be registered.

    This occurs when:
    - The topic is empty or not a string
    - ``subscribe`` is called outside a running event loop
    """


class SubscriberClosedError(EventBusError):
    """Raised when delivering to a subscriber whose event loop has gone away.

    The bus catches it, treats the subscriber as cancelled and drops it; it
    never reaches a publisher.
    """

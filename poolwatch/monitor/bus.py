"""Best-effort broadcast of MonitorEvents to any number of subscribers.

Each subscription owns a bounded queue. A subscriber that falls behind
loses its oldest buffered events; the publisher never waits.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import structlog

from poolwatch.core.types import MonitorEvent

logger = structlog.stdlib.get_logger()

DEFAULT_CAPACITY = 100

# Queued after the last event when a subscription is closed.
_CLOSED = object()


class Subscription:
    """Receiving handle returned by :meth:`EventBus.subscribe`.

    Usage::

        sub = bus.subscribe()
        async for event in sub:
            handle(event)
    """

    def __init__(self, bus: EventBus, capacity: int) -> None:
        self._bus = bus
        self._capacity = capacity
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._buffered = 0
        self._dropped = 0
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def dropped(self) -> int:
        """Events discarded because this subscription's buffer was full."""
        return self._dropped

    @property
    def pending(self) -> int:
        """Events buffered and not yet received."""
        return self._buffered

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: MonitorEvent) -> None:
        if self._closed:
            return
        if self._buffered >= self._capacity:
            self._queue.get_nowait()
            self._buffered -= 1
            self._dropped += 1
        self._queue.put_nowait(event)
        self._buffered += 1

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def close(self) -> None:
        """Stop receiving events. Buffered events remain readable."""
        self._bus.unsubscribe(self)

    async def get(self) -> MonitorEvent | None:
        """Wait for the next event. Returns None once closed and drained."""
        item = await self._queue.get()
        return self._take(item)

    def get_nowait(self) -> MonitorEvent | None:
        """Return the next buffered event, or None if nothing is buffered."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        return self._take(item)

    def drain(self) -> list[MonitorEvent]:
        """Return every currently buffered event."""
        events: list[MonitorEvent] = []
        while (event := self.get_nowait()) is not None:
            events.append(event)
        return events

    def _take(self, item: object) -> MonitorEvent | None:
        if item is _CLOSED:
            # Keep the marker so later readers also see the end.
            self._queue.put_nowait(_CLOSED)
            return None
        self._buffered -= 1
        return item  # type: ignore[return-value]

    def __aiter__(self) -> AsyncIterator[MonitorEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[MonitorEvent]:
        while (event := await self.get()) is not None:
            yield event


class EventBus:
    """Publish/subscribe channel for MonitorEvents.

    ``publish`` is synchronous and never blocks. New subscribers only see
    events published after they subscribed.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._subscribers: list[Subscription] = []
        self._published = 0
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def published_count(self) -> int:
        return self._published

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, capacity: int | None = None) -> Subscription:
        """Create a subscription receiving all subsequently published events."""
        if capacity is not None and capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        sub = Subscription(self, capacity if capacity is not None else self._capacity)
        if self._closed:
            sub._close()
            return sub
        self._subscribers.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)
        sub._close()

    def publish(self, event: MonitorEvent) -> int:
        """Deliver *event* to every current subscriber.

        Returns the number of subscribers it was delivered to; 0 means the
        event was not seen by anyone.
        """
        if self._closed:
            return 0
        self._published += 1
        for sub in self._subscribers:
            before = sub.dropped
            sub._deliver(event)
            if sub.dropped > before:
                logger.debug(
                    "event_dropped",
                    item=event.item_name,
                    sequence=event.sequence,
                    dropped_total=sub.dropped,
                )
        return len(self._subscribers)

    def close(self) -> None:
        """End every subscription; later publishes are ignored."""
        self._closed = True
        for sub in self._subscribers:
            sub._close()
        self._subscribers.clear()

"""Change-feed abstraction.

A subscription is a cancellable async stream of `ChangeNotification`s.
Delivery is at-least-once and carries no ordering promise relative to other
reads or writes; consumers must be idempotent.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import AsyncIterator, Callable, Optional, Protocol

from .model import ChangeNotification

logger = logging.getLogger(__name__)

Predicate = Callable[[ChangeNotification], bool]

_CLOSED = object()


class Subscription(Protocol):
    @property
    def closed(self) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        """Stop delivery and release resources. Safe to call more than once."""

        raise NotImplementedError

    def __aiter__(self) -> AsyncIterator[ChangeNotification]:
        raise NotImplementedError


class ChangeFeed(Protocol):
    def subscribe(self, table: str, *, predicate: Optional[Predicate] = None) -> Subscription:
        """Open a subscription. Must be called from a running event loop."""

        raise NotImplementedError


class QueueSubscription:
    """Subscription backed by an asyncio queue bound to the subscriber's loop.

    `push()` may be called from any thread.
    """

    def __init__(self, table: str, predicate: Optional[Predicate], on_close: Callable[["QueueSubscription"], None]):
        self.table = table
        self._predicate = predicate
        self._on_close = on_close
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def wants(self, note: ChangeNotification) -> bool:
        if self._closed or note.table != self.table:
            return False
        return self._predicate is None or self._predicate(note)

    def push(self, item) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Subscriber loop already shut down; nothing left to deliver to.
            logger.debug("Dropping notification for a subscription whose loop is closed")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close(self)
        self.push(_CLOSED)

    def __aiter__(self) -> AsyncIterator[ChangeNotification]:
        return self

    async def __anext__(self) -> ChangeNotification:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item


class InMemoryChangeFeed(ChangeFeed):
    """Process-local broadcast hub.

    Repositories (or tests) call `publish()` after a write; every open
    subscription on the same table whose predicate accepts the notification
    receives it.
    """

    def __init__(self):
        self._subscriptions: list[QueueSubscription] = []
        self._lock = threading.Lock()

    def subscribe(self, table: str, *, predicate: Optional[Predicate] = None) -> Subscription:
        sub = QueueSubscription(table, predicate, self._discard)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def publish(self, note: ChangeNotification) -> int:
        """Deliver `note`; returns how many subscriptions received it."""

        with self._lock:
            targets = [s for s in self._subscriptions if s.wants(note)]
        for sub in targets:
            sub.push(note)
        return len(targets)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _discard(self, sub: QueueSubscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

"""Observable event streams backed by blinker signals."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from types import TracebackType
from typing import Any

from blinker import Signal

from tandem.errors import StreamClosedError

type EventHandler[T] = Callable[[T], None]
type EventFilter[T] = Callable[[T], bool]

_CLOSED = object()


class Subscription:
    """Handle returned by ``EventStream.subscribe``; cancel to stop delivery."""

    def __init__(self, stream: EventStream[Any], receiver: Callable[..., None]) -> None:
        self._stream = stream
        self._receiver = receiver
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._stream._disconnect(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()


class EventListener[T]:
    """Async iterator over a stream, subscribed from the moment it is created."""

    def __init__(self, stream: EventStream[T]) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._subscription = stream.subscribe(self._queue.put_nowait)
        self._stream = stream
        stream._listeners.add(self)

    def __aiter__(self) -> EventListener[T]:
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def close(self) -> None:
        self._subscription.cancel()
        self._stream._listeners.discard(self)
        self._queue.put_nowait(_CLOSED)


class EventStream[T]:
    """Ordered, synchronous fan-out of events to explicit subscriptions.

    Events are delivered in publish order. Exceptions raised by a
    subscriber propagate to the publisher.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._signal = Signal(name)
        self._subscriptions: dict[Subscription, Callable[..., None]] = {}
        self._listeners: set[EventListener[T]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, handler: EventHandler[T], *, where: EventFilter[T] | None = None) -> Subscription:
        if self._closed:
            raise StreamClosedError(self.name)

        def _receiver(sender: Any, *, event: T) -> None:
            if where is None or where(event):
                handler(event)

        self._signal.connect(_receiver, weak=False)
        subscription = Subscription(self, _receiver)
        self._subscriptions[subscription] = _receiver
        return subscription

    def listen(self) -> EventListener[T]:
        if self._closed:
            raise StreamClosedError(self.name)
        return EventListener(self)

    def publish(self, event: T) -> None:
        if self._closed:
            raise StreamClosedError(self.name)
        self._signal.send(self, event=event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for listener in list(self._listeners):
            listener.close()
        for subscription in list(self._subscriptions):
            subscription.cancel()

    def _disconnect(self, subscription: Subscription) -> None:
        receiver = self._subscriptions.pop(subscription, None)
        if receiver is not None:
            self._signal.disconnect(receiver)

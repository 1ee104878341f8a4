from __future__ import annotations

import asyncio

import pytest

from tandem.errors import StreamClosedError
from tandem.streams import EventStream


def test_subscribe_receives_events_in_publish_order() -> None:
    stream: EventStream[int] = EventStream("numbers")
    seen: list[int] = []

    stream.subscribe(seen.append)
    for value in [3, 1, 2]:
        stream.publish(value)

    assert seen == [3, 1, 2]


def test_where_filters_events() -> None:
    stream: EventStream[int] = EventStream("numbers")
    evens: list[int] = []

    stream.subscribe(evens.append, where=lambda value: value % 2 == 0)
    for value in range(6):
        stream.publish(value)

    assert evens == [0, 2, 4]


def test_cancel_stops_delivery_and_is_idempotent() -> None:
    stream: EventStream[str] = EventStream("words")
    seen: list[str] = []
    subscription = stream.subscribe(seen.append)

    stream.publish("one")
    subscription.cancel()
    subscription.cancel()
    stream.publish("two")

    assert seen == ["one"]
    assert not subscription.active
    assert stream.subscriber_count == 0


def test_subscription_as_context_manager() -> None:
    stream: EventStream[str] = EventStream("words")
    seen: list[str] = []

    with stream.subscribe(seen.append):
        stream.publish("inside")
    stream.publish("outside")

    assert seen == ["inside"]


def test_subscriber_errors_propagate_to_publisher() -> None:
    stream: EventStream[str] = EventStream("words")

    def _boom(event: str) -> None:
        raise RuntimeError(event)

    stream.subscribe(_boom)

    with pytest.raises(RuntimeError, match="bad"):
        stream.publish("bad")


def test_publish_after_close_fails() -> None:
    stream: EventStream[str] = EventStream("words")
    subscription = stream.subscribe(lambda _: None)

    stream.close()

    assert stream.closed
    assert not subscription.active
    with pytest.raises(StreamClosedError):
        stream.publish("late")
    with pytest.raises(StreamClosedError):
        stream.subscribe(lambda _: None)


@pytest.mark.asyncio
async def test_listen_yields_events_until_close() -> None:
    stream: EventStream[int] = EventStream("numbers")
    listener = stream.listen()

    stream.publish(1)
    stream.publish(2)
    stream.close()

    received = [value async for value in listener]
    assert received == [1, 2]


@pytest.mark.asyncio
async def test_listen_waits_for_later_events() -> None:
    stream: EventStream[str] = EventStream("words")
    listener = stream.listen()

    async def _first() -> str:
        async for value in listener:
            return value
        return ""

    task = asyncio.create_task(_first())
    await asyncio.sleep(0)
    stream.publish("hello")

    assert await asyncio.wait_for(task, timeout=1) == "hello"

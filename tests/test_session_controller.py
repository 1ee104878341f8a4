from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from tandem.core.session import SessionController, SessionState
from tandem.errors import ProtocolError, RealtimeSessionError, SessionClosedError, SessionNotReadyError
from tandem.models.items import FunctionCall, FunctionCallOutput
from tandem.realtime.events import (
    ConversationItemCreateEvent,
    RealtimeClientEvent,
    RealtimeErrorEvent,
    RealtimeOutputItemDone,
    RealtimeServerEvent,
    ResponseCreateEvent,
    SessionCreated,
    SessionUpdated,
    SessionUpdateEvent,
)
from tandem.realtime.models import RealtimeErrorInfo, RealtimeSession, RealtimeSessionUpdate
from tandem.tools.handlers import FunctionToolDelegate


class _FakeRealtimeTransport:
    def __init__(self) -> None:
        self.incoming: asyncio.Queue[RealtimeServerEvent | None] = asyncio.Queue()
        self.sent: list[RealtimeClientEvent] = []
        self.closed = False

    def push(self, event: RealtimeServerEvent) -> None:
        self.incoming.put_nowait(event)

    async def send(self, event: RealtimeClientEvent) -> None:
        if self.closed:
            raise RuntimeError("transport is closed")
        self.sent.append(event)

    async def receive(self) -> AsyncIterator[RealtimeServerEvent]:
        while True:
            event = await self.incoming.get()
            if event is None:
                return
            yield event

    async def close(self) -> None:
        self.closed = True
        self.incoming.put_nowait(None)


async def _until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0)


def _created(session_id: str = "sess_1") -> SessionCreated:
    return SessionCreated(session=RealtimeSession(id=session_id, model="realtime-test"))


def _echo(name: str) -> FunctionToolDelegate:
    return FunctionToolDelegate(name, lambda arguments: arguments)


def _tool_updates(transport: _FakeRealtimeTransport) -> list[list[str]]:
    return [
        [tool.name for tool in event.session.tools or []]
        for event in transport.sent
        if isinstance(event, SessionUpdateEvent)
    ]


@pytest.mark.asyncio
async def test_ready_only_after_session_created() -> None:
    transport = _FakeRealtimeTransport()
    controller = SessionController(transport)
    await controller.start()

    transport.push(SessionUpdated(session=RealtimeSession(id="early")))
    await asyncio.sleep(0.01)
    assert controller.state is SessionState.UNINITIALIZED
    assert controller.session is None

    transport.push(_created())
    await asyncio.wait_for(controller.wait_ready(), timeout=1)

    assert controller.state is SessionState.READY
    assert controller.session is not None
    assert controller.session.id == "sess_1"

    transport.push(SessionUpdated(session=RealtimeSession(id="sess_1", instructions="be brief")))
    await _until(lambda: controller.session is not None and controller.session.instructions == "be brief")
    assert controller.state is SessionState.READY
    await controller.dispose()


@pytest.mark.asyncio
async def test_send_before_ready_fails() -> None:
    controller = SessionController(_FakeRealtimeTransport())

    with pytest.raises(SessionNotReadyError):
        await controller.send(ResponseCreateEvent())


@pytest.mark.asyncio
async def test_tool_changes_before_ready_sync_once() -> None:
    transport = _FakeRealtimeTransport()
    controller = SessionController(transport, initial_tools=[_echo("first")])
    await controller.add_tools([_echo("second")])
    await controller.add_tools([_echo("third")])
    assert transport.sent == []

    await controller.start()
    transport.push(_created())
    await _until(lambda: len(transport.sent) >= 1)
    await asyncio.sleep(0.01)

    assert _tool_updates(transport) == [["first", "second", "third"]]
    await controller.dispose()


@pytest.mark.asyncio
async def test_tool_changes_after_ready_sync_immediately() -> None:
    transport = _FakeRealtimeTransport()
    async with SessionController(transport) as controller:
        transport.push(_created())
        await controller.wait_ready()
        second = _echo("second")

        await controller.add_tools([_echo("first"), second])
        await controller.remove_tools([second])

    assert _tool_updates(transport) == [["first", "second"], ["first"]]
    assert controller.state is SessionState.CLOSED


@pytest.mark.asyncio
async def test_completed_call_sends_output_then_response_create() -> None:
    transport = _FakeRealtimeTransport()
    weather = FunctionToolDelegate("get_weather", lambda arguments: '{"temp_c":22}')
    controller = SessionController(transport, initial_tools=[weather])
    sent_by_controller: list[RealtimeClientEvent] = []
    controller.client_events.subscribe(sent_by_controller.append)
    await controller.start()
    transport.push(_created())
    await controller.wait_ready()

    call = FunctionCall(id="item_1", call_id="call_1", name="get_weather", arguments='{"city":"Paris"}')
    transport.push(RealtimeOutputItemDone(response_id="resp_1", output_index=0, item=call))
    await _until(lambda: len(transport.sent) >= 3)

    assert isinstance(transport.sent[0], SessionUpdateEvent)
    assert transport.sent[1] == ConversationItemCreateEvent(
        item=FunctionCallOutput(call_id="call_1", output='{"temp_c":22}'),
        previous_item_id="item_1",
    )
    assert isinstance(transport.sent[2], ResponseCreateEvent)
    assert sent_by_controller == transport.sent
    await controller.dispose()


@pytest.mark.asyncio
async def test_dispose_during_tool_execution_sends_nothing_afterwards() -> None:
    transport = _FakeRealtimeTransport()
    started = asyncio.Event()
    release = asyncio.Event()

    async def _slow(arguments: dict[str, Any]) -> str:
        started.set()
        await release.wait()
        return "late"

    slow = FunctionToolDelegate("slow", _slow)
    controller = SessionController(transport, initial_tools=[slow])
    await controller.start()
    transport.push(_created())
    await controller.wait_ready()
    transport.push(RealtimeOutputItemDone(item=FunctionCall(id="item_1", call_id="call_1", name="slow")))
    await asyncio.wait_for(started.wait(), timeout=1)

    await controller.dispose()
    sent_at_dispose = list(transport.sent)
    release.set()
    await controller.wait_tool_calls()

    assert transport.sent == sent_at_dispose
    assert controller.state is SessionState.CLOSED
    assert transport.closed
    assert not slow.is_attached_to(controller)
    assert controller.tools == []


@pytest.mark.asyncio
async def test_server_error_is_surfaced_without_closing() -> None:
    transport = _FakeRealtimeTransport()
    controller = SessionController(transport)
    errors: list[RealtimeSessionError] = []
    controller.errors.subscribe(errors.append)
    await controller.start()
    transport.push(_created())
    await controller.wait_ready()

    transport.push(
        RealtimeErrorEvent(
            error=RealtimeErrorInfo(type="invalid_request_error", code="bad_field", message="nope", param="x")
        )
    )
    await _until(lambda: len(errors) == 1)

    assert errors[0].code == "bad_field"
    assert errors[0].error_type == "invalid_request_error"
    assert str(errors[0]) == "bad_field: nope"
    assert controller.state is SessionState.READY
    await controller.dispose()


@pytest.mark.asyncio
async def test_dispose_is_idempotent_and_blocks_further_use() -> None:
    transport = _FakeRealtimeTransport()
    controller = SessionController(transport, initial_tools=[_echo("tool")])
    await controller.start()
    transport.push(_created())
    await controller.wait_ready()

    await controller.dispose()
    await controller.dispose()

    assert controller.client_events.closed
    assert controller.server_events.closed
    with pytest.raises(SessionClosedError):
        await controller.send(ResponseCreateEvent())
    with pytest.raises(SessionClosedError):
        await controller.add_tools([_echo("other")])
    with pytest.raises(SessionClosedError):
        await controller.update_session(RealtimeSessionUpdate(instructions="x"))


class _FailingRealtimeTransport(_FakeRealtimeTransport):
    def __init__(self, error: Exception, before: list[RealtimeServerEvent] | None = None) -> None:
        super().__init__()
        self.error = error
        self.before = list(before or [])

    async def receive(self) -> AsyncIterator[RealtimeServerEvent]:
        for event in self.before:
            yield event
        raise self.error


@pytest.mark.asyncio
async def test_transport_error_before_ready_is_raised_from_wait_ready() -> None:
    error = ConnectionError("socket reset")
    controller = SessionController(_FailingRealtimeTransport(error))
    await controller.start()

    with pytest.raises(ConnectionError) as excinfo:
        await asyncio.wait_for(controller.wait_ready(), timeout=1)

    assert excinfo.value is error
    assert controller.state is SessionState.UNINITIALIZED
    await controller.dispose()


@pytest.mark.asyncio
async def test_stream_ending_before_ready_is_a_protocol_error() -> None:
    transport = _FakeRealtimeTransport()
    controller = SessionController(transport)
    await controller.start()
    transport.incoming.put_nowait(None)

    with pytest.raises(ProtocolError, match="session.created"):
        await asyncio.wait_for(controller.wait_ready(), timeout=1)
    await controller.dispose()


@pytest.mark.asyncio
async def test_transport_error_after_ready_is_raised_from_wait_closed() -> None:
    error = ConnectionError("socket reset")
    controller = SessionController(_FailingRealtimeTransport(error, before=[_created()]))
    await controller.start()
    await asyncio.wait_for(controller.wait_ready(), timeout=1)

    with pytest.raises(ConnectionError) as excinfo:
        await asyncio.wait_for(controller.wait_closed(), timeout=1)

    assert excinfo.value is error
    await controller.dispose()


@pytest.mark.asyncio
async def test_removed_tool_result_is_not_sent() -> None:
    transport = _FakeRealtimeTransport()
    started = asyncio.Event()
    release = asyncio.Event()

    async def _slow(arguments: dict[str, Any]) -> str:
        started.set()
        await release.wait()
        return "late"

    slow = FunctionToolDelegate("slow", _slow)
    controller = SessionController(transport, initial_tools=[slow])
    await controller.start()
    transport.push(_created())
    await controller.wait_ready()
    transport.push(RealtimeOutputItemDone(item=FunctionCall(id="item_1", call_id="call_1", name="slow")))
    await asyncio.wait_for(started.wait(), timeout=1)

    await controller.remove_tools([slow])
    sent_at_removal = list(transport.sent)
    release.set()
    await controller.wait_tool_calls()

    assert isinstance(sent_at_removal[-1], SessionUpdateEvent)
    assert sent_at_removal[-1].session.tools == []
    assert transport.sent == sent_at_removal
    assert not any(isinstance(event, (ConversationItemCreateEvent, ResponseCreateEvent)) for event in transport.sent)
    assert controller.state is SessionState.READY
    await controller.dispose()


class _GatedSendTransport(_FakeRealtimeTransport):
    def __init__(self) -> None:
        super().__init__()
        self.sending = asyncio.Event()
        self.gate = asyncio.Event()

    async def send(self, event: RealtimeClientEvent) -> None:
        self.sending.set()
        await self.gate.wait()
        self.sent.append(event)


@pytest.mark.asyncio
async def test_send_interrupted_by_dispose_does_not_republish() -> None:
    transport = _GatedSendTransport()
    controller = SessionController(transport)
    published: list[RealtimeClientEvent] = []
    controller.client_events.subscribe(published.append)
    await controller.start()
    transport.push(_created())
    await controller.wait_ready()

    sending = asyncio.create_task(controller.send(ResponseCreateEvent()))
    await asyncio.wait_for(transport.sending.wait(), timeout=1)
    await controller.dispose()
    transport.gate.set()
    await asyncio.wait_for(sending, timeout=1)

    assert transport.sent == [ResponseCreateEvent()]
    assert published == []

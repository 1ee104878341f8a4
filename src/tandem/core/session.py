"""Lifecycle and tool dispatch for persistent duplex sessions."""

from __future__ import annotations

import asyncio
import builtins
import contextlib
from collections.abc import Iterable
from enum import StrEnum
from types import TracebackType

from loguru import logger

from tandem.errors import ProtocolError, RealtimeSessionError, SessionClosedError, SessionNotReadyError
from tandem.models.items import ConversationItem, FunctionCall
from tandem.realtime.events import (
    ConversationItemCreateEvent,
    RealtimeClientEvent,
    RealtimeErrorEvent,
    RealtimeServerEvent,
    ResponseCreateEvent,
    SessionCreated,
    SessionUpdated,
    SessionUpdateEvent,
    completed_item,
)
from tandem.realtime.models import RealtimeSession, RealtimeSessionUpdate
from tandem.streams import EventStream
from tandem.tools.handlers import ToolHandler
from tandem.tools.registry import ToolRegistry
from tandem.transport.base import RealtimeTransport


class SessionState(StrEnum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class SessionController:
    """Owns one realtime connection, its tools and its event streams.

    The controller becomes ready on ``session.created``. Tool changes made
    before that are synced to the server with a single ``session.update``
    once it is ready. Every completed function call is executed in its own
    task and answered with ``conversation.item.create`` followed by
    ``response.create``.
    """

    def __init__(
        self,
        transport: RealtimeTransport,
        *,
        session: RealtimeSession | None = None,
        initial_tools: Iterable[ToolHandler] | None = None,
    ) -> None:
        self._transport = transport
        self._session = session
        self._state = SessionState.UNINITIALIZED
        self._ready = asyncio.Event()
        self._server_events: EventStream[RealtimeServerEvent] = EventStream("tandem.realtime.server_events")
        self._client_events: EventStream[RealtimeClientEvent] = EventStream("tandem.realtime.client_events")
        self._errors: EventStream[RealtimeSessionError] = EventStream("tandem.realtime.errors")
        self._tools = ToolRegistry()
        self._tool_sync_pending = False
        self._reader: asyncio.Task[None] | None = None
        self._reader_error: BaseException | None = None
        self._tool_tasks: set[asyncio.Task[None]] = set()
        self._subscription = self._server_events.subscribe(self._handle_session_event)
        if initial_tools:
            self._tools.attach(initial_tools, self)
            self._tool_sync_pending = True

    async def __aenter__(self) -> SessionController:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> RealtimeSession | None:
        """Last configuration reported by the server; None before ready."""
        if self._state is SessionState.UNINITIALIZED:
            return None
        return self._session

    @property
    def server_events(self) -> EventStream[RealtimeServerEvent]:
        return self._server_events

    @property
    def client_events(self) -> EventStream[RealtimeClientEvent]:
        return self._client_events

    @property
    def errors(self) -> EventStream[RealtimeSessionError]:
        return self._errors

    @property
    def tools(self) -> builtins.list[ToolHandler]:
        return self._tools.list()

    async def start(self) -> None:
        if self._state is SessionState.CLOSED:
            raise SessionClosedError("session controller is disposed")
        if self._reader is not None:
            return
        self._reader = asyncio.create_task(self._read_events(), name="tandem.session.reader")
        logger.info("session.start tools={}", len(self._tools))

    async def wait_ready(self) -> None:
        """Wait for ``session.created``; re-raises the error that stopped the reader."""
        await self._ready.wait()
        if self._state is SessionState.READY:
            return
        if self._reader_error is not None:
            raise self._reader_error
        raise SessionClosedError("session controller is disposed")

    async def wait_closed(self) -> None:
        """Wait until the server stream ends; re-raises the error that stopped it."""
        if self._reader is not None:
            await asyncio.wait({self._reader})
        if self._reader_error is not None:
            raise self._reader_error

    async def send(self, event: RealtimeClientEvent) -> None:
        if self._state is SessionState.CLOSED:
            raise SessionClosedError("session controller is disposed")
        if self._state is SessionState.UNINITIALIZED:
            raise SessionNotReadyError(f"cannot send {event.type} before session.created")
        await self._transport.send(event)
        logger.debug("session.send type={}", event.type)
        if self._state is SessionState.CLOSED:
            return
        self._client_events.publish(event)

    async def update_session(self, update: RealtimeSessionUpdate) -> None:
        await self.send(SessionUpdateEvent(session=update))

    async def add_tools(self, handlers: Iterable[ToolHandler]) -> None:
        self._ensure_open()
        self._tools.attach(handlers, self)
        await self._sync_tools()

    async def remove_tools(self, handlers: Iterable[ToolHandler]) -> None:
        self._ensure_open()
        self._tools.detach(handlers, self)
        await self._sync_tools()

    @staticmethod
    def completed_item(event: RealtimeServerEvent) -> ConversationItem | None:
        return completed_item(event)

    def dispatch_tool_call(self, handler: ToolHandler, call: FunctionCall) -> None:
        task = asyncio.create_task(self._run_tool(handler, call), name=f"tandem.tool.{handler.name}")
        self._tool_tasks.add(task)
        task.add_done_callback(self._tool_tasks.discard)

    async def wait_tool_calls(self) -> None:
        """Wait until every tool call dispatched so far has finished."""
        while self._tool_tasks:
            await asyncio.gather(*self._tool_tasks, return_exceptions=True)

    async def dispose(self) -> None:
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        self._subscription.cancel()
        self._client_events.close()
        self._tools.detach_all(self)

        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader
        self._server_events.close()
        self._errors.close()
        # Unblock anyone still waiting for ready; wait_ready reports the close.
        self._ready.set()
        await self._transport.close()
        logger.info("session.disposed in_flight_tools={}", len(self._tool_tasks))

    def _ensure_open(self) -> None:
        if self._state is SessionState.CLOSED:
            raise SessionClosedError("session controller is disposed")

    async def _sync_tools(self) -> None:
        if self._state is SessionState.READY:
            await self.update_session(RealtimeSessionUpdate(tools=self._tools.descriptors()))
        else:
            self._tool_sync_pending = True

    def _handle_session_event(self, event: RealtimeServerEvent) -> None:
        if isinstance(event, SessionCreated):
            self._session = event.session
            if self._state is SessionState.UNINITIALIZED:
                self._state = SessionState.READY
                self._ready.set()
                logger.info("session.ready id={} model={}", event.session.id, event.session.model)
        elif isinstance(event, SessionUpdated):
            self._session = event.session
            logger.debug("session.updated id={}", event.session.id)
        elif isinstance(event, RealtimeErrorEvent):
            error = event.error
            logger.warning("session.error type={} code={} message={}", error.type, error.code, error.message)
            self._errors.publish(
                RealtimeSessionError(
                    error.message,
                    code=error.code,
                    param=error.param,
                    error_type=error.type,
                    event_id=error.event_id,
                )
            )

    async def _read_events(self) -> None:
        try:
            async for event in self._transport.receive():
                self._server_events.publish(event)
                if self._tool_sync_pending and self._state is SessionState.READY:
                    self._tool_sync_pending = False
                    await self._sync_tools()
            if self._state is SessionState.UNINITIALIZED:
                raise ProtocolError("server stream ended before session.created")
        except asyncio.CancelledError:
            return
        except Exception as exc:
            self._reader_error = exc
            logger.exception("session.reader.error")
            return
        finally:
            self._ready.set()
        logger.info("session.reader.end")

    async def _run_tool(self, handler: ToolHandler, call: FunctionCall) -> None:
        try:
            output = await self._tools.execute(handler, call)
        except Exception:
            # Already logged by the registry with its traceback.
            return
        if self._state is SessionState.CLOSED or self._tools.get(handler.name) is not handler:
            logger.info("session.tool.dropped name={} call_id={}", handler.name, call.call_id)
            return
        try:
            await self.send(ConversationItemCreateEvent(item=output, previous_item_id=call.id))
            await self.send(ResponseCreateEvent())
        except SessionClosedError:
            logger.info("session.tool.dropped name={} call_id={}", handler.name, call.call_id)
        except Exception:
            logger.exception("session.tool.send.error name={} call_id={}", handler.name, call.call_id)

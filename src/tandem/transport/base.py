"""Transport protocols consumed by the orchestration layer."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from tandem.realtime.events import RealtimeClientEvent, RealtimeServerEvent
from tandem.responses.events import ResponseEvent
from tandem.responses.models import Response, ResponseRequest


@runtime_checkable
class ResponsesTransport(Protocol):
    """One request per turn, answered in full or as an event stream."""

    async def create_response(self, request: ResponseRequest) -> Response: ...

    def stream_response(self, request: ResponseRequest) -> AsyncIterator[ResponseEvent]: ...


@runtime_checkable
class RealtimeTransport(Protocol):
    """A connected duplex session; connecting is the handshake."""

    async def send(self, event: RealtimeClientEvent) -> None: ...

    def receive(self) -> AsyncIterator[RealtimeServerEvent]: ...

    async def close(self) -> None: ...

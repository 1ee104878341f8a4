"""WebSocket transport for persistent realtime sessions."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from urllib.parse import urlencode

import websockets
from loguru import logger
from pydantic import ValidationError
from websockets import ClientConnection

from tandem.realtime.events import RealtimeClientEvent, RealtimeServerEvent, parse_server_event

DEFAULT_REALTIME_URL = "wss://api.openai.com/v1/realtime"


def realtime_url(base_url: str, model: str | None) -> str:
    if not model:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'model': model})}"


class WebSocketRealtimeTransport:
    """Sends client events as JSON text frames and decodes server frames."""

    def __init__(self, connection: ClientConnection) -> None:
        self._connection = connection

    @classmethod
    async def connect(
        cls,
        api_key: str,
        *,
        url: str = DEFAULT_REALTIME_URL,
        model: str | None = None,
    ) -> WebSocketRealtimeTransport:
        target = realtime_url(url, model)
        connection = await websockets.connect(
            target,
            additional_headers={"Authorization": f"Bearer {api_key}"},
        )
        logger.info("realtime.connect url={}", target)
        return cls(connection)

    async def send(self, event: RealtimeClientEvent) -> None:
        await self._connection.send(json.dumps(event.to_wire()))

    async def receive(self) -> AsyncIterator[RealtimeServerEvent]:
        async for message in self._connection:
            if isinstance(message, bytes):
                message = message.decode("utf-8", errors="replace")
            try:
                event = parse_server_event(json.loads(message))
            except (json.JSONDecodeError, ValidationError, TypeError):
                logger.warning("realtime.frame.invalid data={}", message[:300])
                continue
            yield event

    async def close(self) -> None:
        await self._connection.close()
        logger.info("realtime.closed")

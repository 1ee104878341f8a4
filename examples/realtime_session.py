"""Persistent realtime session with a tool attached at runtime."""

from __future__ import annotations

import asyncio
from typing import Any

from tandem import FunctionToolDelegate, SessionController
from tandem.config import get_settings
from tandem.models.items import InputTextContent, Message
from tandem.realtime.events import ConversationItemCreateEvent, RealtimeServerEvent, ResponseCreateEvent
from tandem.transport.websocket import WebSocketRealtimeTransport


def roll_dice(arguments: dict[str, Any]) -> str:
    return "4"


async def main() -> None:
    settings = get_settings()
    transport = await WebSocketRealtimeTransport.connect(
        settings.require_api_key(),
        url=settings.realtime_url,
        model=settings.realtime_model,
    )
    dice = FunctionToolDelegate("roll_dice", roll_dice, description="Roll a fair six-sided die")

    async with SessionController(transport) as controller:
        await controller.add_tools([dice])

        def _show(event: RealtimeServerEvent) -> None:
            print(event.type)

        controller.server_events.subscribe(_show)
        await controller.wait_ready()
        question = Message(role="user", content=[InputTextContent(text="Roll a die for me.")])
        await controller.send(ConversationItemCreateEvent(item=question))
        await controller.send(ResponseCreateEvent())
        await asyncio.sleep(10)


if __name__ == "__main__":
    asyncio.run(main())

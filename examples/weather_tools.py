"""Tool-calling conversation over request/response turns.

Run with ``TANDEM_API_KEY`` set:

    python examples/weather_tools.py "What's the weather in Paris and Rome?"
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

from tandem import TurnOrchestrator, function_tool
from tandem.config import get_settings
from tandem.responses.events import ResponseEvent, ResponseOutputTextDelta
from tandem.transport.http import ResponsesClient

FAKE_TEMPERATURES = {"paris": 22, "rome": 27, "oslo": 9}


@function_tool(
    parameters={
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"],
    }
)
async def get_weather(arguments: dict[str, Any]) -> dict[str, Any]:
    """Current temperature in Celsius for a city."""
    await asyncio.sleep(0.1)
    return {"temp_c": FAKE_TEMPERATURES.get(arguments["city"].lower(), 15)}


def print_delta(event: ResponseEvent) -> None:
    if isinstance(event, ResponseOutputTextDelta):
        print(event.delta, end="", flush=True)


async def main(prompt: str) -> None:
    settings = get_settings()
    async with ResponsesClient(settings.require_api_key(), base_url=settings.base_url) as client:
        orchestrator = TurnOrchestrator(
            client,
            input=prompt,
            model=settings.model,
            tools=[get_weather],
            max_turns=settings.max_turns,
        )
        with orchestrator.server_events.subscribe(print_delta):
            await orchestrator.next_response()
    print()


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "What's the weather in Paris?"))

"""Command line entry point for tandem."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console

from tandem.config import Settings, get_settings
from tandem.core.orchestrator import TurnOrchestrator
from tandem.errors import TandemError
from tandem.responses.events import ResponseEvent
from tandem.responses.models import Response
from tandem.transport.base import ResponsesTransport
from tandem.transport.http import ResponsesClient

app = typer.Typer(
    name="tandem",
    help="Drive multi-turn model conversations from the terminal.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


@app.callback()
def main_callback() -> None:
    """tandem command line."""


def create_transport(settings: Settings) -> ResponsesTransport:
    return ResponsesClient(
        settings.require_api_key(),
        base_url=settings.base_url,
        timeout=settings.request_timeout_seconds,
    )


async def _run_turns(
    settings: Settings,
    prompt: str,
    *,
    model: str,
    stream: bool,
    store: bool,
    show_events: bool,
) -> Response:
    transport = create_transport(settings)
    orchestrator = TurnOrchestrator(
        transport,
        input=prompt,
        model=model,
        stream=stream,
        store=store,
        max_turns=settings.max_turns,
    )

    def _print_event(event: ResponseEvent) -> None:
        console.print(f"[dim]{event.type}[/dim]", highlight=False)

    subscription = orchestrator.server_events.subscribe(_print_event) if show_events else None
    try:
        return await orchestrator.next_response()
    finally:
        if subscription is not None:
            subscription.cancel()
        aclose = getattr(transport, "aclose", None)
        if aclose is not None:
            await aclose()


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Text sent as the first user message"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name (defaults to TANDEM_MODEL)"),
    stream: Optional[bool] = typer.Option(None, "--stream/--no-stream", help="Stream server events"),
    store: Optional[bool] = typer.Option(None, "--store/--no-store", help="Use server-side conversation state"),
    events: bool = typer.Option(False, "--events", help="Print every server event type"),
) -> None:
    """Ask one question and print the final answer."""
    settings = get_settings()
    try:
        response = asyncio.run(
            _run_turns(
                settings,
                prompt,
                model=model or settings.model,
                stream=settings.stream if stream is None else stream,
                store=settings.store if store is None else store,
                show_events=events,
            )
        )
    except TandemError as exc:
        console.print(f"[red]error:[/red] {exc}", highlight=False)
        raise typer.Exit(1) from exc

    console.print(response.output_text or "", highlight=False, markup=False)


if __name__ == "__main__":
    app()

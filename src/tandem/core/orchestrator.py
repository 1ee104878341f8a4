"""Multi-turn driver for request/response exchanges."""

from __future__ import annotations

import asyncio
import builtins
import itertools
from collections.abc import Iterable
from typing import Any

from loguru import logger

from tandem.core.barrier import PendingOutputBarrier
from tandem.errors import (
    MaxTurnsExceededError,
    MissingTerminalEventError,
    RequestError,
    ResponseFailedError,
    ToolExecutionError,
)
from tandem.models.items import ConversationItem, FunctionCall, FunctionCallOutput, Message
from tandem.responses.events import (
    TERMINAL_EVENTS,
    ResponseCompleted,
    ResponseErrorEvent,
    ResponseEvent,
    ResponseFailed,
    ResponseOutputItemAdded,
    ResponseOutputItemDone,
    completed_item,
)
from tandem.responses.models import Response, ResponseError, ResponseRequest
from tandem.streams import EventStream
from tandem.tools.handlers import ToolHandler
from tandem.tools.registry import ToolRegistry
from tandem.transport.base import ResponsesTransport

type TurnInput = str | builtins.list[ConversationItem]


class TurnOrchestrator:
    """Drives one conversation through as many turns as its tools require.

    Each turn sends one request, dispatches every completed function call
    to the matching handler, waits for all of their outputs and then
    builds the next input. Iteration stops on a final text answer, on a
    failure, or after ``max_turns`` requests.
    """

    def __init__(
        self,
        transport: ResponsesTransport,
        *,
        input: TurnInput | None = None,
        model: str | None = None,
        tools: Iterable[ToolHandler] | None = None,
        stream: bool = True,
        store: bool | None = False,
        instructions: str | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        max_output_tokens: int | None = None,
        parallel_tool_calls: bool | None = None,
        previous_response_id: str | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        reasoning: dict[str, Any] | None = None,
        text: dict[str, Any] | None = None,
        truncation: str | None = None,
        user: str | None = None,
        include: builtins.list[str] | None = None,
        background: bool | None = None,
        max_turns: int | None = 10,
    ) -> None:
        self._transport = transport
        self.input = input
        self.model = model
        self.stream = stream
        self.store = store
        self.instructions = instructions
        self.temperature = temperature
        self.top_p = top_p
        self.max_output_tokens = max_output_tokens
        self.parallel_tool_calls = parallel_tool_calls
        self.previous_response_id = previous_response_id
        self.tool_choice = tool_choice
        self.metadata = metadata
        self.reasoning = reasoning
        self.text = text
        self.truncation = truncation
        self.user = user
        self.include = include
        self.background = background
        self.max_turns = max_turns

        self._server_events: EventStream[ResponseEvent] = EventStream("tandem.responses.server_events")
        self._tools = ToolRegistry()
        self._barrier: PendingOutputBarrier[FunctionCall, FunctionCallOutput] = PendingOutputBarrier()
        self._tasks: builtins.list[tuple[ToolHandler, FunctionCall, asyncio.Task[None]]] = []
        self._sequence = itertools.count()
        if tools:
            self._tools.attach(tools, self)

    @property
    def server_events(self) -> EventStream[ResponseEvent]:
        return self._server_events

    @property
    def tools(self) -> builtins.list[ToolHandler]:
        return self._tools.list()

    async def add_tools(self, handlers: Iterable[ToolHandler]) -> None:
        self._tools.attach(handlers, self)

    async def remove_tools(self, handlers: Iterable[ToolHandler]) -> None:
        self._tools.detach(handlers, self)

    @staticmethod
    def completed_item(event: ResponseEvent) -> ConversationItem | None:
        return completed_item(event)

    def dispatch_tool_call(self, handler: ToolHandler, call: FunctionCall) -> None:
        self._barrier.register(call)
        task = asyncio.create_task(self._run_tool(handler, call), name=f"tandem.tool.{handler.name}")
        self._tasks.append((handler, call, task))

    async def next_response(self, auto_iterate: bool = True) -> Response:
        """Run turns until a final answer arrives (or just one turn)."""
        turns = 0
        while True:
            if self.max_turns is not None and turns >= self.max_turns:
                raise MaxTurnsExceededError(self.max_turns)
            turns += 1
            response = await self._take_turn(turns)
            if response.output_text is not None or not auto_iterate:
                return response

    async def _take_turn(self, turn: int) -> Response:
        logger.info(
            "orchestrator.turn.start turn={} stream={} store={} tools={}",
            turn,
            self.stream,
            self.store,
            len(self._tools),
        )
        request = self._build_request()
        try:
            if self.stream:
                terminal = await self._stream_turn(request)
            else:
                terminal = await self._blocking_turn(request)
            await self._await_tools()
        finally:
            self._cancel_leftover_tasks()

        response = self._terminal_response(terminal)
        if isinstance(terminal, ResponseFailed | ResponseErrorEvent):
            self._barrier.clear()
            raise self._failure(response)

        self._carry_forward(response)
        logger.info(
            "orchestrator.turn.end turn={} response_id={} status={} has_text={}",
            turn,
            response.id,
            response.status,
            response.output_text is not None,
        )
        if response.error is not None:
            raise ResponseFailedError(
                response.error.message,
                code=response.error.code,
                param=response.error.param,
                response=response,
            )
        return response

    def _build_request(self) -> ResponseRequest:
        descriptors = self._tools.descriptors()
        return ResponseRequest(
            model=self.model,
            input=self.input,
            instructions=self.instructions,
            tools=descriptors or None,
            tool_choice=self.tool_choice,
            temperature=self.temperature,
            top_p=self.top_p,
            max_output_tokens=self.max_output_tokens,
            parallel_tool_calls=self.parallel_tool_calls,
            previous_response_id=self.previous_response_id,
            store=self.store,
            metadata=self.metadata,
            reasoning=self.reasoning,
            text=self.text,
            truncation=self.truncation,
            user=self.user,
            include=self.include,
            background=self.background,
            stream=True if self.stream else None,
        )

    async def _stream_turn(self, request: ResponseRequest) -> ResponseEvent:
        events = self._transport.stream_response(request)
        try:
            async for event in events:
                self._server_events.publish(event)
                if isinstance(event, TERMINAL_EVENTS):
                    return event
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()
        raise MissingTerminalEventError()

    async def _blocking_turn(self, request: ResponseRequest) -> ResponseEvent:
        try:
            response = await self._transport.create_response(request)
        except RequestError as exc:
            failed = Response(
                status="failed",
                error=ResponseError(code=exc.code, message=exc.message, param=exc.param),
            )
            self._server_events.publish(ResponseFailed(response=failed, sequence_number=next(self._sequence)))
            raise

        for index, item in enumerate(response.output):
            self._server_events.publish(
                ResponseOutputItemAdded(item=item, output_index=index, sequence_number=next(self._sequence))
            )
            self._server_events.publish(
                ResponseOutputItemDone(item=item, output_index=index, sequence_number=next(self._sequence))
            )
        completed = ResponseCompleted(response=response, sequence_number=next(self._sequence))
        self._server_events.publish(completed)
        return completed

    async def _run_tool(self, handler: ToolHandler, call: FunctionCall) -> None:
        output = await self._tools.execute(handler, call)
        self._barrier.resolve(call, output)

    async def _await_tools(self) -> None:
        if not self._tasks:
            return
        tasks = self._tasks
        results = await asyncio.gather(*(task for _, _, task in tasks), return_exceptions=True)
        self._tasks = []
        for (handler, call, _), result in zip(tasks, results, strict=True):
            if isinstance(result, BaseException):
                self._barrier.clear()
                raise ToolExecutionError(handler.name, call.call_id) from result
        await self._barrier.wait()

    def _cancel_leftover_tasks(self) -> None:
        if not self._tasks:
            return
        for _, _, task in self._tasks:
            task.cancel()
        self._tasks = []
        self._barrier.clear()

    @staticmethod
    def _terminal_response(event: ResponseEvent) -> Response:
        if isinstance(event, ResponseErrorEvent):
            return Response(status="failed", error=event.as_error())
        return event.response  # type: ignore[union-attr]

    @staticmethod
    def _failure(response: Response) -> ResponseFailedError:
        error = response.error
        if error is None:
            return ResponseFailedError("response failed without error details", response=response)
        logger.warning("orchestrator.turn.failed code={} message={}", error.code, error.message)
        return ResponseFailedError(error.message, code=error.code, param=error.param, response=response)

    def _carry_forward(self, response: Response) -> None:
        outputs: builtins.list[ConversationItem] = builtins.list(self._barrier.outputs())
        if self.store:
            self.previous_response_id = response.id
            self.input = outputs
        else:
            self.input = [*self._prior_input(), *response.output, *outputs]
        self._barrier.clear()

    def _prior_input(self) -> builtins.list[ConversationItem]:
        if isinstance(self.input, str):
            return [Message.user(self.input)]
        if isinstance(self.input, builtins.list):
            return builtins.list(self.input)
        raise ValueError("there was no input to carry forward")

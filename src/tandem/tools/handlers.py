"""Tool handlers that react to completed function calls."""

from __future__ import annotations

import inspect
import json
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from tandem.errors import AlreadyAttachedError, UnknownToolError
from tandem.models.items import ConversationItem, FunctionCall, FunctionCallOutput
from tandem.models.tools import FunctionTool
from tandem.streams import EventStream, Subscription

type ToolResult = str | dict[str, Any] | list[Any]
type ToolCallback = Callable[[dict[str, Any]], ToolResult | Awaitable[ToolResult]]


class ToolOwner(Protocol):
    """Anything a handler can attach to: an orchestrator or a session controller."""

    @property
    def server_events(self) -> EventStream[Any]: ...

    def completed_item(self, event: Any) -> ConversationItem | None: ...

    def dispatch_tool_call(self, handler: ToolHandler, call: FunctionCall) -> None: ...


class ToolHandler(ABC):
    """Handles function calls addressed to one tool descriptor."""

    def __init__(self, descriptor: FunctionTool) -> None:
        self.descriptor = descriptor
        self._subscriptions: dict[int, Subscription] = {}

    @property
    def name(self) -> str:
        return self.descriptor.name

    def matches(self, item: ConversationItem | None) -> bool:
        return isinstance(item, FunctionCall) and item.name == self.descriptor.name

    @abstractmethod
    async def execute(self, call: FunctionCall) -> FunctionCallOutput:
        """Run the tool for one call and return its output item."""

    def is_attached_to(self, owner: ToolOwner) -> bool:
        return id(owner) in self._subscriptions

    def on_attach(self, owner: ToolOwner) -> None:
        if self.is_attached_to(owner):
            raise AlreadyAttachedError(self.name)

        def _on_event(event: Any) -> None:
            item = owner.completed_item(event)
            if isinstance(item, FunctionCall) and self.matches(item):
                owner.dispatch_tool_call(self, item)

        self._subscriptions[id(owner)] = owner.server_events.subscribe(_on_event)

    def on_detach(self, owner: ToolOwner) -> None:
        subscription = self._subscriptions.pop(id(owner), None)
        if subscription is None:
            raise UnknownToolError(self.name)
        subscription.cancel()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionToolHandler(ToolHandler):
    """Handler for function tools whose arguments arrive as JSON text."""

    @abstractmethod
    async def run(self, arguments: dict[str, Any]) -> str:
        """Compute the output payload for decoded arguments."""

    async def execute(self, call: FunctionCall) -> FunctionCallOutput:
        payload = await self.run(call.decode_arguments())
        return call.output(payload)


class FunctionToolDelegate(FunctionToolHandler):
    """Function tool backed by a plain callback.

    The callback may be sync or async. Results that are not strings are
    encoded as JSON.
    """

    def __init__(
        self,
        name: str,
        callback: ToolCallback,
        *,
        description: str | None = None,
        parameters: dict[str, Any] | None = None,
        strict: bool | None = None,
    ) -> None:
        descriptor = FunctionTool(name=name, description=description, strict=strict)
        if parameters is not None:
            descriptor = descriptor.model_copy(update={"parameters": parameters})
        super().__init__(descriptor)
        self._callback = callback

    async def run(self, arguments: dict[str, Any]) -> str:
        result = self._callback(arguments)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, str):
            return result
        return json.dumps(result, ensure_ascii=False)


def function_tool(
    name: str | None = None,
    *,
    description: str | None = None,
    parameters: dict[str, Any] | None = None,
    strict: bool | None = None,
) -> Callable[[ToolCallback], FunctionToolDelegate]:
    """Decorator form of ``FunctionToolDelegate``."""

    def decorator(func: ToolCallback) -> FunctionToolDelegate:
        tool_name = name or func.__name__
        tool_description = description or (inspect.getdoc(func) or "").strip() or None
        return FunctionToolDelegate(
            tool_name,
            func,
            description=tool_description,
            parameters=parameters,
            strict=strict,
        )

    return decorator

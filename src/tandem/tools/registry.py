"""Registry of tool handlers attached to one owner."""

from __future__ import annotations

import builtins
import time
from collections.abc import Iterable

from loguru import logger

from tandem.errors import AlreadyAttachedError, DuplicateToolError, UnknownToolError
from tandem.models.items import FunctionCall, FunctionCallOutput
from tandem.models.tools import FunctionTool
from tandem.tools.handlers import ToolHandler, ToolOwner


def _shorten_text(text: str, width: int = 30, placeholder: str = "...") -> str:
    """Shorten text to width characters, cutting in the middle of words if needed."""
    if len(text) <= width:
        return text

    available = width - len(placeholder)
    if available <= 0:
        return placeholder

    return text[:available] + placeholder


class ToolRegistry:
    """Name-keyed set of handlers; attach and detach are all-or-nothing."""

    def __init__(self) -> None:
        self._handlers: dict[str, ToolHandler] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def get(self, name: str) -> ToolHandler | None:
        return self._handlers.get(name)

    def list(self) -> builtins.list[ToolHandler]:
        return builtins.list(self._handlers.values())

    def descriptors(self) -> builtins.list[FunctionTool]:
        return [handler.descriptor for handler in self._handlers.values()]

    def attach(self, handlers: Iterable[ToolHandler], owner: ToolOwner) -> builtins.list[ToolHandler]:
        batch = builtins.list(handlers)
        seen: set[str] = set()
        for handler in batch:
            if handler.name in self._handlers or handler.name in seen:
                raise DuplicateToolError(handler.name)
            if handler.is_attached_to(owner):
                raise AlreadyAttachedError(handler.name)
            seen.add(handler.name)

        for handler in batch:
            handler.on_attach(owner)
            self._handlers[handler.name] = handler
            logger.debug("tool.attach name={}", handler.name)
        return batch

    def detach(self, handlers: Iterable[ToolHandler], owner: ToolOwner) -> builtins.list[ToolHandler]:
        batch = builtins.list(handlers)
        seen: set[str] = set()
        for handler in batch:
            if self._handlers.get(handler.name) is not handler or handler.name in seen:
                raise UnknownToolError(handler.name)
            seen.add(handler.name)

        for handler in batch:
            del self._handlers[handler.name]
            handler.on_detach(owner)
            logger.debug("tool.detach name={}", handler.name)
        return batch

    def detach_all(self, owner: ToolOwner) -> builtins.list[ToolHandler]:
        return self.detach(self.list(), owner)

    async def execute(self, handler: ToolHandler, call: FunctionCall) -> FunctionCallOutput:
        logger.info(
            "tool.call.start name={} call_id={} {{ {} }}",
            handler.name,
            call.call_id,
            _shorten_text(call.arguments, width=60),
        )
        start = time.monotonic()
        try:
            return await handler.execute(call)
        except Exception:
            logger.exception("tool.call.error name={} call_id={}", handler.name, call.call_id)
            raise
        finally:
            duration = time.monotonic() - start
            logger.info("tool.call.end name={} duration={:.3f}ms", handler.name, duration * 1000)

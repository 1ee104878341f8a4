"""Session configuration models for persistent sessions."""

from __future__ import annotations

from typing import Any

from tandem.models.base import OpenWireModel, WireModel
from tandem.models.tools import FunctionTool


class RealtimeSession(OpenWireModel):
    """Session configuration as reported by the server.

    Only the fields the controller reads are typed; everything else the
    server sends (audio formats, voices, turn detection) is kept as extra.
    """

    id: str | None = None
    object: str | None = None
    model: str | None = None
    instructions: str | None = None
    modalities: list[str] | None = None
    tools: list[FunctionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float | None = None


class RealtimeSessionUpdate(OpenWireModel):
    """Partial session configuration sent with ``session.update``."""

    instructions: str | None = None
    modalities: list[str] | None = None
    tools: list[FunctionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float | None = None


class RealtimeResponseConfig(OpenWireModel):
    """Per-response overrides carried by ``response.create``."""

    instructions: str | None = None
    modalities: list[str] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float | None = None


class RealtimeErrorInfo(WireModel):
    type: str | None = None
    code: str | None = None
    message: str
    param: str | None = None
    event_id: str | None = None

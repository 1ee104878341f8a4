"""Response, request and error models for request/response turns."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from tandem.models.base import WireModel
from tandem.models.items import ConversationItem, Message, OutputTextContent
from tandem.models.tools import FunctionTool


class ResponseError(WireModel):
    """Error information returned when the model fails to generate a response."""

    code: str | None = None
    message: str
    param: str | None = None


class IncompleteDetails(WireModel):
    reason: str


class Usage(WireModel):
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


class Response(WireModel):
    """One model response: output items plus status and error."""

    id: str | None = None
    object: str | None = None
    status: str | None = None
    model: str | None = None
    created_at: int | None = None
    previous_response_id: str | None = None
    output: list[ConversationItem] = Field(default_factory=list)
    error: ResponseError | None = None
    incomplete_details: IncompleteDetails | None = None
    usage: Usage | None = None

    @property
    def output_text(self) -> str | None:
        """Concatenated text of every assistant output text part, or None."""
        parts: list[str] = []
        for item in self.output:
            if not isinstance(item, Message) or isinstance(item.content, str):
                continue
            parts.extend(part.text for part in item.content if isinstance(part, OutputTextContent))
        text = "".join(parts)
        return text or None


class ResponseRequest(WireModel):
    """Body of one model-invocation request."""

    model: str | None = None
    input: str | list[ConversationItem] | None = None
    instructions: str | None = None
    tools: list[FunctionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    parallel_tool_calls: bool | None = None
    previous_response_id: str | None = None
    store: bool | None = None
    metadata: dict[str, Any] | None = None
    reasoning: dict[str, Any] | None = None
    text: dict[str, Any] | None = None
    truncation: str | None = None
    user: str | None = None
    include: list[str] | None = None
    background: bool | None = None
    stream: bool | None = None

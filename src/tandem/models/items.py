"""Conversation items and content parts shared by both session styles."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import Discriminator, Field, Tag, TypeAdapter

from tandem.models.base import OTHER_TAG, OpenWireModel, WireModel, discriminate_by_type


class InputTextContent(WireModel):
    type: Literal["input_text"] = "input_text"
    text: str


class OutputTextContent(WireModel):
    type: Literal["output_text"] = "output_text"
    text: str
    annotations: list[dict[str, Any]] = Field(default_factory=list)


class RefusalContent(WireModel):
    type: Literal["refusal"] = "refusal"
    refusal: str


class InputImageContent(WireModel):
    type: Literal["input_image"] = "input_image"
    image_url: str | None = None
    file_id: str | None = None
    detail: str | None = None


class OtherContent(OpenWireModel):
    """Content part of a type this library does not model."""

    type: str


ContentPart = Annotated[
    Union[
        Annotated[InputTextContent, Tag("input_text")],
        Annotated[OutputTextContent, Tag("output_text")],
        Annotated[RefusalContent, Tag("refusal")],
        Annotated[InputImageContent, Tag("input_image")],
        Annotated[OtherContent, Tag(OTHER_TAG)],
    ],
    Discriminator(discriminate_by_type({"input_text", "output_text", "refusal", "input_image"})),
]


class Message(WireModel):
    """A role-tagged message in the conversation log."""

    type: Literal["message"] = "message"
    role: str
    content: str | list[ContentPart]
    id: str | None = None
    status: str | None = None

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role="user", content=text)

    @property
    def text(self) -> str:
        """Concatenated text of every text-bearing part."""
        if isinstance(self.content, str):
            return self.content
        return "".join(
            part.text for part in self.content if isinstance(part, InputTextContent | OutputTextContent)
        )


class FunctionCall(WireModel):
    """A model-requested invocation of an application-defined function."""

    type: Literal["function_call"] = "function_call"
    call_id: str
    name: str
    arguments: str = ""
    id: str | None = None
    status: str | None = None

    def decode_arguments(self) -> dict[str, Any]:
        if not self.arguments.strip():
            return {}
        decoded = json.loads(self.arguments)
        if not isinstance(decoded, dict):
            raise ValueError(f"function arguments must decode to an object, got {type(decoded).__name__}")
        return decoded

    def output(self, payload: str, *, status: str | None = None) -> FunctionCallOutput:
        return FunctionCallOutput(call_id=self.call_id, output=payload, status=status)


class FunctionCallOutput(WireModel):
    """The application's answer to a ``FunctionCall``, correlated by call id."""

    type: Literal["function_call_output"] = "function_call_output"
    call_id: str
    output: str
    id: str | None = None
    status: str | None = None


class ItemReference(WireModel):
    type: Literal["item_reference"] = "item_reference"
    id: str


class OtherItem(OpenWireModel):
    """Item of a type this library does not model (kept verbatim)."""

    type: str


ConversationItem = Annotated[
    Union[
        Annotated[Message, Tag("message")],
        Annotated[FunctionCall, Tag("function_call")],
        Annotated[FunctionCallOutput, Tag("function_call_output")],
        Annotated[ItemReference, Tag("item_reference")],
        Annotated[OtherItem, Tag(OTHER_TAG)],
    ],
    Discriminator(discriminate_by_type({"message", "function_call", "function_call_output", "item_reference"})),
]

_ITEM_ADAPTER: TypeAdapter[ConversationItem] = TypeAdapter(ConversationItem)


def parse_item(data: dict[str, Any]) -> ConversationItem:
    """Decode one conversation item from its JSON shape."""

    return _ITEM_ADAPTER.validate_python(data)

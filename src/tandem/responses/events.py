"""Server events emitted while a response is generated."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Discriminator, Tag, TypeAdapter

from tandem.models.base import OTHER_TAG, OpenWireModel, WireModel, discriminate_by_type
from tandem.models.items import ConversationItem
from tandem.responses.models import Response, ResponseError


class ResponseEventBase(WireModel):
    type: str
    sequence_number: int | None = None


class ResponseCreated(ResponseEventBase):
    type: Literal["response.created"] = "response.created"
    response: Response


class ResponseInProgress(ResponseEventBase):
    type: Literal["response.in_progress"] = "response.in_progress"
    response: Response


class ResponseQueued(ResponseEventBase):
    type: Literal["response.queued"] = "response.queued"
    response: Response


class ResponseCompleted(ResponseEventBase):
    type: Literal["response.completed"] = "response.completed"
    response: Response


class ResponseFailed(ResponseEventBase):
    type: Literal["response.failed"] = "response.failed"
    response: Response


class ResponseIncomplete(ResponseEventBase):
    type: Literal["response.incomplete"] = "response.incomplete"
    response: Response


class ResponseOutputItemAdded(ResponseEventBase):
    type: Literal["response.output_item.added"] = "response.output_item.added"
    output_index: int
    item: ConversationItem


class ResponseOutputItemDone(ResponseEventBase):
    type: Literal["response.output_item.done"] = "response.output_item.done"
    output_index: int
    item: ConversationItem


class ResponseOutputTextDelta(ResponseEventBase):
    type: Literal["response.output_text.delta"] = "response.output_text.delta"
    item_id: str | None = None
    output_index: int | None = None
    content_index: int | None = None
    delta: str


class ResponseOutputTextDone(ResponseEventBase):
    type: Literal["response.output_text.done"] = "response.output_text.done"
    item_id: str | None = None
    output_index: int | None = None
    content_index: int | None = None
    text: str


class ResponseFunctionCallArgumentsDelta(ResponseEventBase):
    type: Literal["response.function_call_arguments.delta"] = "response.function_call_arguments.delta"
    item_id: str | None = None
    output_index: int | None = None
    delta: str


class ResponseFunctionCallArgumentsDone(ResponseEventBase):
    type: Literal["response.function_call_arguments.done"] = "response.function_call_arguments.done"
    item_id: str | None = None
    output_index: int | None = None
    arguments: str


class ResponseErrorEvent(ResponseEventBase):
    """Generic stream-level error."""

    type: Literal["error"] = "error"
    code: str | None = None
    message: str
    param: str | None = None

    def as_error(self) -> ResponseError:
        return ResponseError(code=self.code, message=self.message, param=self.param)


class OtherResponseEvent(OpenWireModel):
    """Event of a type this library does not model."""

    type: str
    sequence_number: int | None = None


_EVENT_CLASSES: dict[str, type[WireModel]] = {
    "response.created": ResponseCreated,
    "response.in_progress": ResponseInProgress,
    "response.queued": ResponseQueued,
    "response.completed": ResponseCompleted,
    "response.failed": ResponseFailed,
    "response.incomplete": ResponseIncomplete,
    "response.output_item.added": ResponseOutputItemAdded,
    "response.output_item.done": ResponseOutputItemDone,
    "response.output_text.delta": ResponseOutputTextDelta,
    "response.output_text.done": ResponseOutputTextDone,
    "response.function_call_arguments.delta": ResponseFunctionCallArgumentsDelta,
    "response.function_call_arguments.done": ResponseFunctionCallArgumentsDone,
    "error": ResponseErrorEvent,
}

ResponseEvent = Annotated[
    Union[
        Annotated[ResponseCreated, Tag("response.created")],
        Annotated[ResponseInProgress, Tag("response.in_progress")],
        Annotated[ResponseQueued, Tag("response.queued")],
        Annotated[ResponseCompleted, Tag("response.completed")],
        Annotated[ResponseFailed, Tag("response.failed")],
        Annotated[ResponseIncomplete, Tag("response.incomplete")],
        Annotated[ResponseOutputItemAdded, Tag("response.output_item.added")],
        Annotated[ResponseOutputItemDone, Tag("response.output_item.done")],
        Annotated[ResponseOutputTextDelta, Tag("response.output_text.delta")],
        Annotated[ResponseOutputTextDone, Tag("response.output_text.done")],
        Annotated[ResponseFunctionCallArgumentsDelta, Tag("response.function_call_arguments.delta")],
        Annotated[ResponseFunctionCallArgumentsDone, Tag("response.function_call_arguments.done")],
        Annotated[ResponseErrorEvent, Tag("error")],
        Annotated[OtherResponseEvent, Tag(OTHER_TAG)],
    ],
    Discriminator(discriminate_by_type(_EVENT_CLASSES)),
]

TERMINAL_EVENTS = (ResponseCompleted, ResponseIncomplete, ResponseFailed, ResponseErrorEvent)

_EVENT_ADAPTER: TypeAdapter[ResponseEvent] = TypeAdapter(ResponseEvent)


def parse_response_event(data: dict[str, Any]) -> ResponseEvent:
    """Decode one server event; unknown types become ``OtherResponseEvent``."""

    return _EVENT_ADAPTER.validate_python(data)


def completed_item(event: ResponseEvent) -> ConversationItem | None:
    """Return the item carried by an item-done event, else None."""

    if isinstance(event, ResponseOutputItemDone):
        return event.item
    return None

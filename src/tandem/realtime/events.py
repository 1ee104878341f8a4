"""Server and client events exchanged over a persistent session."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Discriminator, Tag, TypeAdapter

from tandem.models.base import OTHER_TAG, OpenWireModel, WireModel, discriminate_by_type
from tandem.models.items import ConversationItem
from tandem.realtime.models import (
    RealtimeErrorInfo,
    RealtimeResponseConfig,
    RealtimeSession,
    RealtimeSessionUpdate,
)


class RealtimeEventBase(WireModel):
    type: str
    event_id: str | None = None


# Server events


class SessionCreated(RealtimeEventBase):
    type: Literal["session.created"] = "session.created"
    session: RealtimeSession


class SessionUpdated(RealtimeEventBase):
    type: Literal["session.updated"] = "session.updated"
    session: RealtimeSession


class ConversationItemCreated(RealtimeEventBase):
    type: Literal["conversation.item.created"] = "conversation.item.created"
    previous_item_id: str | None = None
    item: ConversationItem


class RealtimeResponseCreated(RealtimeEventBase):
    type: Literal["response.created"] = "response.created"
    response: dict[str, Any]


class RealtimeResponseDone(RealtimeEventBase):
    type: Literal["response.done"] = "response.done"
    response: dict[str, Any]


class RealtimeOutputItemAdded(RealtimeEventBase):
    type: Literal["response.output_item.added"] = "response.output_item.added"
    response_id: str | None = None
    output_index: int | None = None
    item: ConversationItem


class RealtimeOutputItemDone(RealtimeEventBase):
    type: Literal["response.output_item.done"] = "response.output_item.done"
    response_id: str | None = None
    output_index: int | None = None
    item: ConversationItem


class RealtimeFunctionCallArgumentsDelta(RealtimeEventBase):
    type: Literal["response.function_call_arguments.delta"] = "response.function_call_arguments.delta"
    response_id: str | None = None
    item_id: str | None = None
    output_index: int | None = None
    call_id: str | None = None
    delta: str


class RealtimeFunctionCallArgumentsDone(RealtimeEventBase):
    type: Literal["response.function_call_arguments.done"] = "response.function_call_arguments.done"
    response_id: str | None = None
    item_id: str | None = None
    output_index: int | None = None
    call_id: str | None = None
    arguments: str


class RealtimeErrorEvent(RealtimeEventBase):
    type: Literal["error"] = "error"
    error: RealtimeErrorInfo


class OtherRealtimeEvent(OpenWireModel):
    """Server event of a type this library does not model."""

    type: str
    event_id: str | None = None


_SERVER_EVENT_TYPES = {
    "session.created",
    "session.updated",
    "conversation.item.created",
    "response.created",
    "response.done",
    "response.output_item.added",
    "response.output_item.done",
    "response.function_call_arguments.delta",
    "response.function_call_arguments.done",
    "error",
}

RealtimeServerEvent = Annotated[
    Union[
        Annotated[SessionCreated, Tag("session.created")],
        Annotated[SessionUpdated, Tag("session.updated")],
        Annotated[ConversationItemCreated, Tag("conversation.item.created")],
        Annotated[RealtimeResponseCreated, Tag("response.created")],
        Annotated[RealtimeResponseDone, Tag("response.done")],
        Annotated[RealtimeOutputItemAdded, Tag("response.output_item.added")],
        Annotated[RealtimeOutputItemDone, Tag("response.output_item.done")],
        Annotated[RealtimeFunctionCallArgumentsDelta, Tag("response.function_call_arguments.delta")],
        Annotated[RealtimeFunctionCallArgumentsDone, Tag("response.function_call_arguments.done")],
        Annotated[RealtimeErrorEvent, Tag("error")],
        Annotated[OtherRealtimeEvent, Tag(OTHER_TAG)],
    ],
    Discriminator(discriminate_by_type(_SERVER_EVENT_TYPES)),
]


# Client events


class SessionUpdateEvent(RealtimeEventBase):
    type: Literal["session.update"] = "session.update"
    session: RealtimeSessionUpdate


class ConversationItemCreateEvent(RealtimeEventBase):
    type: Literal["conversation.item.create"] = "conversation.item.create"
    previous_item_id: str | None = None
    item: ConversationItem


class ResponseCreateEvent(RealtimeEventBase):
    type: Literal["response.create"] = "response.create"
    response: RealtimeResponseConfig | None = None


class ResponseCancelEvent(RealtimeEventBase):
    type: Literal["response.cancel"] = "response.cancel"
    response_id: str | None = None


class OtherClientEvent(OpenWireModel):
    """Client event of a type this library does not model."""

    type: str
    event_id: str | None = None


_CLIENT_EVENT_TYPES = {"session.update", "conversation.item.create", "response.create", "response.cancel"}

RealtimeClientEvent = Annotated[
    Union[
        Annotated[SessionUpdateEvent, Tag("session.update")],
        Annotated[ConversationItemCreateEvent, Tag("conversation.item.create")],
        Annotated[ResponseCreateEvent, Tag("response.create")],
        Annotated[ResponseCancelEvent, Tag("response.cancel")],
        Annotated[OtherClientEvent, Tag(OTHER_TAG)],
    ],
    Discriminator(discriminate_by_type(_CLIENT_EVENT_TYPES)),
]

_SERVER_ADAPTER: TypeAdapter[RealtimeServerEvent] = TypeAdapter(RealtimeServerEvent)
_CLIENT_ADAPTER: TypeAdapter[RealtimeClientEvent] = TypeAdapter(RealtimeClientEvent)


def parse_server_event(data: dict[str, Any]) -> RealtimeServerEvent:
    return _SERVER_ADAPTER.validate_python(data)


def parse_client_event(data: dict[str, Any]) -> RealtimeClientEvent:
    return _CLIENT_ADAPTER.validate_python(data)


def completed_item(event: RealtimeServerEvent) -> ConversationItem | None:
    """Return the item of an output-item-done event, else None."""

    if isinstance(event, RealtimeOutputItemDone):
        return event.item
    return None

"""Persistent-session wire surface."""

from .events import (
    ConversationItemCreated,
    ConversationItemCreateEvent,
    OtherClientEvent,
    OtherRealtimeEvent,
    RealtimeClientEvent,
    RealtimeErrorEvent,
    RealtimeFunctionCallArgumentsDelta,
    RealtimeFunctionCallArgumentsDone,
    RealtimeOutputItemAdded,
    RealtimeOutputItemDone,
    RealtimeResponseCreated,
    RealtimeResponseDone,
    RealtimeServerEvent,
    ResponseCancelEvent,
    ResponseCreateEvent,
    SessionCreated,
    SessionUpdated,
    SessionUpdateEvent,
    completed_item,
    parse_client_event,
    parse_server_event,
)
from .models import RealtimeErrorInfo, RealtimeResponseConfig, RealtimeSession, RealtimeSessionUpdate

__all__ = [
    "ConversationItemCreateEvent",
    "ConversationItemCreated",
    "OtherClientEvent",
    "OtherRealtimeEvent",
    "RealtimeClientEvent",
    "RealtimeErrorEvent",
    "RealtimeErrorInfo",
    "RealtimeFunctionCallArgumentsDelta",
    "RealtimeFunctionCallArgumentsDone",
    "RealtimeOutputItemAdded",
    "RealtimeOutputItemDone",
    "RealtimeResponseConfig",
    "RealtimeResponseCreated",
    "RealtimeResponseDone",
    "RealtimeServerEvent",
    "RealtimeSession",
    "RealtimeSessionUpdate",
    "ResponseCancelEvent",
    "ResponseCreateEvent",
    "SessionCreated",
    "SessionUpdateEvent",
    "SessionUpdated",
    "completed_item",
    "parse_client_event",
    "parse_server_event",
]

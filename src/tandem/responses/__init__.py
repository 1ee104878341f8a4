"""Request/response wire surface."""

from .events import (
    TERMINAL_EVENTS,
    OtherResponseEvent,
    ResponseCompleted,
    ResponseCreated,
    ResponseErrorEvent,
    ResponseEvent,
    ResponseFailed,
    ResponseFunctionCallArgumentsDelta,
    ResponseFunctionCallArgumentsDone,
    ResponseIncomplete,
    ResponseInProgress,
    ResponseOutputItemAdded,
    ResponseOutputItemDone,
    ResponseOutputTextDelta,
    ResponseOutputTextDone,
    ResponseQueued,
    completed_item,
    parse_response_event,
)
from .models import IncompleteDetails, Response, ResponseError, ResponseRequest, Usage

__all__ = [
    "TERMINAL_EVENTS",
    "IncompleteDetails",
    "OtherResponseEvent",
    "Response",
    "ResponseCompleted",
    "ResponseCreated",
    "ResponseError",
    "ResponseErrorEvent",
    "ResponseEvent",
    "ResponseFailed",
    "ResponseFunctionCallArgumentsDelta",
    "ResponseFunctionCallArgumentsDone",
    "ResponseInProgress",
    "ResponseIncomplete",
    "ResponseOutputItemAdded",
    "ResponseOutputItemDone",
    "ResponseOutputTextDelta",
    "ResponseOutputTextDone",
    "ResponseQueued",
    "ResponseRequest",
    "Usage",
    "completed_item",
    "parse_response_event",
]

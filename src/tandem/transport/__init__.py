"""Transport protocols and adapters."""

from .base import RealtimeTransport, ResponsesTransport
from .http import ResponsesClient, SseEvent, error_for_status, iter_sse_events
from .websocket import WebSocketRealtimeTransport

__all__ = [
    "RealtimeTransport",
    "ResponsesClient",
    "ResponsesTransport",
    "SseEvent",
    "WebSocketRealtimeTransport",
    "error_for_status",
    "iter_sse_events",
]

"""tandem - multi-turn conversation orchestration with tools."""

from .core import PendingOutputBarrier, SessionController, SessionState, TurnOrchestrator
from .streams import EventStream, Subscription
from .tools import FunctionToolDelegate, FunctionToolHandler, ToolHandler, ToolRegistry, function_tool

__version__ = "0.1.0"

__all__ = [
    "EventStream",
    "FunctionToolDelegate",
    "FunctionToolHandler",
    "PendingOutputBarrier",
    "SessionController",
    "SessionState",
    "Subscription",
    "ToolHandler",
    "ToolRegistry",
    "TurnOrchestrator",
    "function_tool",
]

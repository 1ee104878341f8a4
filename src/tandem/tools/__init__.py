"""Tool handlers and registry."""

from .handlers import FunctionToolDelegate, FunctionToolHandler, ToolHandler, ToolOwner, function_tool
from .registry import ToolRegistry

__all__ = [
    "FunctionToolDelegate",
    "FunctionToolHandler",
    "ToolHandler",
    "ToolOwner",
    "ToolRegistry",
    "function_tool",
]

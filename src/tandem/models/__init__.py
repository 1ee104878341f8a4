"""Wire models shared by request/response turns and persistent sessions."""

from .base import OpenWireModel, WireModel
from .items import (
    ContentPart,
    ConversationItem,
    FunctionCall,
    FunctionCallOutput,
    InputImageContent,
    InputTextContent,
    ItemReference,
    Message,
    OtherContent,
    OtherItem,
    OutputTextContent,
    RefusalContent,
    parse_item,
)
from .tools import FunctionTool

__all__ = [
    "ContentPart",
    "ConversationItem",
    "FunctionCall",
    "FunctionCallOutput",
    "FunctionTool",
    "InputImageContent",
    "InputTextContent",
    "ItemReference",
    "Message",
    "OpenWireModel",
    "OtherContent",
    "OtherItem",
    "OutputTextContent",
    "RefusalContent",
    "WireModel",
    "parse_item",
]

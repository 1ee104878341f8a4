"""Function tool descriptor."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from tandem.models.base import WireModel


class FunctionTool(WireModel):
    """Name, parameter schema and description advertised to the model."""

    type: Literal["function"] = "function"
    name: str
    parameters: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})
    description: str | None = None
    strict: bool | None = None

    def matches(self, other: FunctionTool) -> bool:
        """Two descriptors denote the same tool when their names are equal."""
        return self.name == other.name

"""Base wire model and union dispatch helpers."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

OTHER_TAG = "other"


class WireModel(BaseModel):
    """Base class for every immutable wire model.

    Unknown fields are ignored on typed models; fallback models override
    this to keep the raw payload.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON shape the service expects."""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)


class OpenWireModel(WireModel):
    """Wire model that keeps unknown fields (fallback variants)."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


def type_of(value: Any) -> str | None:
    """Read the ``type`` discriminator from a mapping or a model."""

    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if isinstance(kind, str) else None


def discriminate_by_type(known: Iterable[str]) -> Callable[[Any], str]:
    """Build a pydantic callable discriminator with a fallback tag.

    Known ``type`` values map to their own tag; anything else maps to
    ``OTHER_TAG`` so new server payloads never fail validation.
    """

    tags = frozenset(known)

    def _discriminate(value: Any) -> str:
        kind = type_of(value)
        if kind in tags:
            return kind
        return OTHER_TAG

    return _discriminate

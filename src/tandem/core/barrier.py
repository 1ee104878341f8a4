"""Per-turn barrier collecting tool outputs before the next request."""

from __future__ import annotations

import asyncio
from collections.abc import Hashable

from tandem.errors import AlreadyResolvedError, DuplicateKeyError, UnknownKeyError

_PENDING = object()


class PendingOutputBarrier[K: Hashable, V]:
    """Tracks one pending output per key and releases once all are resolved.

    Outputs are returned in registration order no matter in which order
    they were resolved. The barrier is complete when every registered key
    holds an output, which is trivially true for an empty barrier.
    """

    def __init__(self) -> None:
        self._entries: dict[K, object] = {}
        self._unresolved = 0
        self._done = asyncio.Event()
        self._done.set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def register(self, key: K) -> None:
        if key in self._entries:
            raise DuplicateKeyError(key)
        self._entries[key] = _PENDING
        self._unresolved += 1
        self._done.clear()

    def resolve(self, key: K, output: V) -> bool:
        """Store the output for key; return True when this completed the barrier."""
        if key not in self._entries:
            raise UnknownKeyError(key)
        if self._entries[key] is not _PENDING:
            raise AlreadyResolvedError(key)
        self._entries[key] = output
        self._unresolved -= 1
        if self._unresolved == 0:
            self._done.set()
            return True
        return False

    def is_complete(self) -> bool:
        return self._unresolved == 0

    def pending(self) -> list[K]:
        return [key for key, value in self._entries.items() if value is _PENDING]

    def outputs(self) -> list[V]:
        return [value for value in self._entries.values() if value is not _PENDING]  # type: ignore[misc]

    async def wait(self) -> list[V]:
        await self._done.wait()
        return self.outputs()

    def clear(self) -> None:
        self._entries.clear()
        self._unresolved = 0
        self._done.set()

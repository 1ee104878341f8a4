"""Exception hierarchy for tandem."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tandem.responses.models import Response


class TandemError(Exception):
    """Base exception for tandem."""


class ConfigurationError(TandemError):
    """Raised when required configuration is missing or invalid."""


class InvariantError(TandemError):
    """Base exception for registry and barrier invariant violations."""


class DuplicateToolError(InvariantError, ValueError):
    """Raised when a tool with the same name is already attached."""

    def __init__(self, name: str) -> None:
        super().__init__(f"tool '{name}' is already attached")
        self.name = name


class UnknownToolError(InvariantError, KeyError):
    """Raised when detaching a tool that is not attached."""

    def __init__(self, name: str) -> None:
        super().__init__(f"tool '{name}' cannot be removed because it is not attached")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


class AlreadyAttachedError(InvariantError):
    """Raised when a handler is attached twice to the same owner."""

    def __init__(self, name: str) -> None:
        super().__init__(f"tool '{name}' is already listening to this owner")
        self.name = name


class DuplicateKeyError(InvariantError):
    """Raised when a barrier key is registered twice in one turn."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"pending output already registered for {key!r}")
        self.key = key


class AlreadyResolvedError(InvariantError):
    """Raised when a barrier key receives a second output."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"the output was already sent for {key!r}")
        self.key = key


class UnknownKeyError(InvariantError, KeyError):
    """Raised when resolving a barrier key that was never registered."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"no pending output registered for {key!r}")
        self.key = key

    def __str__(self) -> str:
        return str(self.args[0])


class ProtocolError(TandemError):
    """Base exception for event-stream protocol violations."""


class MissingTerminalEventError(ProtocolError):
    """Raised when an event stream ends without a terminal event."""

    def __init__(self) -> None:
        super().__init__("stream did not return a response completed event")


class ServiceError(TandemError):
    """Error reported by the model service inside an event."""

    def __init__(self, message: str, *, code: str | None = None, param: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.param = param

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class ResponseFailedError(ServiceError):
    """Raised when a turn ends with a failure or error event."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        param: str | None = None,
        response: Response | None = None,
    ) -> None:
        super().__init__(message, code=code, param=param)
        self.response = response


class RealtimeSessionError(ServiceError):
    """Error event pushed by the server on a persistent session."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        param: str | None = None,
        error_type: str | None = None,
        event_id: str | None = None,
    ) -> None:
        super().__init__(message, code=code, param=param)
        self.error_type = error_type
        self.event_id = event_id


class RequestError(TandemError):
    """HTTP or request-level failure (non-2xx)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: str | None = None,
        param: str | None = None,
        body_preview: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.param = param
        self.body_preview = body_preview

    def __str__(self) -> str:
        parts = [f"status_code={self.status_code}", f"message={self.message}"]
        if self.code:
            parts.append(f"code={self.code}")
        if self.param:
            parts.append(f"param={self.param}")
        if self.body_preview:
            parts.append(f"body={self.body_preview}")
        return " ".join(parts)


class AuthenticationError(RequestError):
    """Raised for 401 responses or invalid API keys."""


class RateLimitError(RequestError):
    """Raised for 429 responses or rate limit error codes."""


class ServiceUnavailableError(RequestError):
    """Raised for 5xx responses."""


class SessionStateError(TandemError):
    """Base exception for session lifecycle violations."""


class SessionNotReadyError(SessionStateError):
    """Raised when sending before the session was created."""


class SessionClosedError(SessionStateError):
    """Raised when using a disposed session."""


class StreamClosedError(TandemError):
    """Raised when publishing to a closed event stream."""

    def __init__(self, name: str) -> None:
        super().__init__(f"event stream '{name}' is closed")
        self.name = name


class ToolExecutionError(TandemError):
    """Raised when a tool handler fails while executing a call."""

    def __init__(self, name: str, call_id: str) -> None:
        super().__init__(f"tool '{name}' failed for call {call_id}")
        self.name = name
        self.call_id = call_id


class MaxTurnsExceededError(TandemError):
    """Raised when auto-iteration exceeds the configured turn limit."""

    def __init__(self, max_turns: int) -> None:
        super().__init__(f"max_turns_reached={max_turns}")
        self.max_turns = max_turns

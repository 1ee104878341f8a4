"""HTTP transport for request/response turns, with SSE streaming."""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import httpx
from loguru import logger

from tandem.errors import AuthenticationError, RateLimitError, RequestError, ServiceUnavailableError
from tandem.responses.events import ResponseEvent, parse_response_event
from tandem.responses.models import Response, ResponseRequest

DEFAULT_BASE_URL = "https://api.openai.com/v1"
BODY_PREVIEW_LIMIT = 300


@dataclass(frozen=True)
class SseEvent:
    event: str
    data: str


async def iter_sse_events(lines: AsyncIterable[str]) -> AsyncIterator[SseEvent]:
    """Group ``event:``/``data:`` lines into events, dispatching on blank lines."""

    event: str | None = None
    data_lines: list[str] = []
    async for raw in lines:
        line = raw.rstrip("\r\n")
        if not line.strip():
            if data_lines:
                yield SseEvent(event or "message", "\n".join(data_lines))
            event = None
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        if line.startswith("event:"):
            event = line[6:].strip()
        elif line.startswith("data:"):
            data_lines.append(line[5:].strip())
    if data_lines:
        yield SseEvent(event or "message", "\n".join(data_lines))


def error_for_status(status_code: int, body: str) -> RequestError:
    """Build the request error matching an HTTP status and error body."""

    code: str | None = None
    param: str | None = None
    preview: str | None = None
    message = f"HTTP {status_code}"
    try:
        payload = json.loads(body)
    except ValueError:
        payload = None
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        code = error.get("code")
        param = error.get("param")
        message = error.get("message") or "Unknown service error"
    else:
        preview = body if len(body) <= BODY_PREVIEW_LIMIT else body[:BODY_PREVIEW_LIMIT] + "..."

    if status_code == 401 or code == "invalid_api_key":
        return AuthenticationError(message, status_code=status_code, code=code, param=param)
    if status_code == 429 or code == "rate_limit_exceeded":
        return RateLimitError(message, status_code=status_code, code=code, param=param)
    if status_code >= 500:
        return ServiceUnavailableError(message, status_code=status_code, code=code, param=param)
    return RequestError(message, status_code=status_code, code=code, param=param, body_preview=preview)


class ResponsesClient:
    """Creates responses over HTTP, either in one piece or as an SSE stream."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> ResponsesClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def create_response(self, request: ResponseRequest) -> Response:
        body = request.model_copy(update={"stream": None}).to_wire()
        logger.debug("http.responses.create model={}", request.model)
        response = await self._client.post(self._url("responses"), json=body, headers=self._headers)
        if not response.is_success:
            raise error_for_status(response.status_code, response.text)
        return Response.model_validate(response.json())

    async def stream_response(self, request: ResponseRequest) -> AsyncIterator[ResponseEvent]:
        body = request.model_copy(update={"stream": True}).to_wire()
        headers = {**self._headers, "Accept": "text/event-stream"}
        logger.debug("http.responses.stream model={}", request.model)
        async with self._client.stream("POST", self._url("responses"), json=body, headers=headers) as response:
            if not response.is_success:
                await response.aread()
                raise error_for_status(response.status_code, response.text)
            async for sse in iter_sse_events(response.aiter_lines()):
                if sse.data == "[DONE]":
                    continue
                payload = self._decode(sse)
                if payload is not None:
                    yield parse_response_event(payload)

    @staticmethod
    def _decode(sse: SseEvent) -> dict[str, Any] | None:
        try:
            payload = json.loads(sse.data)
        except ValueError:
            logger.warning("http.sse.invalid event={} data={}", sse.event, sse.data[:BODY_PREVIEW_LIMIT])
            return None
        if not isinstance(payload, dict):
            logger.warning("http.sse.invalid event={} data={}", sse.event, sse.data[:BODY_PREVIEW_LIMIT])
            return None
        if "type" not in payload and sse.event != "message":
            payload["type"] = sse.event
        return payload

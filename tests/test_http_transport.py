from __future__ import annotations

import json

import httpx
import pytest

from tandem.errors import AuthenticationError, RateLimitError, RequestError, ServiceUnavailableError
from tandem.models.items import FunctionCall
from tandem.responses.events import (
    OtherResponseEvent,
    ResponseCompleted,
    ResponseCreated,
    ResponseOutputItemDone,
    ResponseOutputTextDelta,
)
from tandem.responses.models import ResponseRequest
from tandem.transport.http import ResponsesClient, error_for_status, iter_sse_events

SSE_BODY = (
    'event: response.created\ndata: {"type":"response.created","sequence_number":0,'
    '"response":{"id":"resp_1","status":"in_progress","output":[]}}\n\n'
    ": keep-alive\n\n"
    'event: response.output_text.delta\ndata: {"type":"response.output_text.delta",'
    '"sequence_number":1,"item_id":"msg_1","output_index":0,"content_index":0,"delta":"4"}\n\n'
    'event: response.output_item.done\ndata: {"type":"response.output_item.done","sequence_number":2,'
    '"output_index":1,"item":{"type":"function_call","call_id":"c1","name":"calc","arguments":"{}"}}\n\n'
    'event: response.reasoning.delta\ndata: {"type":"response.reasoning.delta","sequence_number":3}\n\n'
    'event: response.completed\ndata: {"type":"response.completed","sequence_number":4,'
    '"response":{"id":"resp_1","status":"completed","output":[]}}\n\n'
    "data: [DONE]\n\n"
)


async def _lines(*lines: str):
    for line in lines:
        yield line


@pytest.mark.asyncio
async def test_iter_sse_events_groups_lines() -> None:
    events = [
        event
        async for event in iter_sse_events(
            _lines("event: first", "data: a", "data: b", "", ": comment", "data: tail")
        )
    ]

    assert [(event.event, event.data) for event in events] == [("first", "a\nb"), ("message", "tail")]


@pytest.mark.asyncio
async def test_stream_response_decodes_typed_events() -> None:
    captured: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, text=SSE_BODY, headers={"content-type": "text/event-stream"})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = ResponsesClient("sk-test", base_url="https://example.test/v1/", http_client=http_client)

    events = [event async for event in client.stream_response(ResponseRequest(model="m", input="2+2?"))]

    assert [type(event) for event in events] == [
        ResponseCreated,
        ResponseOutputTextDelta,
        ResponseOutputItemDone,
        OtherResponseEvent,
        ResponseCompleted,
    ]
    assert isinstance(events[2].item, FunctionCall)
    assert events[3].type == "response.reasoning.delta"

    request = captured[0]
    assert str(request.url) == "https://example.test/v1/responses"
    assert request.headers["authorization"] == "Bearer sk-test"
    assert request.headers["accept"] == "text/event-stream"
    assert json.loads(request.content) == {"model": "m", "input": "2+2?", "stream": True}
    await http_client.aclose()


@pytest.mark.asyncio
async def test_create_response_parses_body() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert "stream" not in body
        return httpx.Response(
            200,
            json={
                "id": "resp_1",
                "object": "response",
                "status": "completed",
                "output": [
                    {
                        "type": "message",
                        "role": "assistant",
                        "id": "msg_1",
                        "content": [{"type": "output_text", "text": "4", "annotations": []}],
                    }
                ],
                "usage": {"input_tokens": 3, "output_tokens": 1, "total_tokens": 4},
            },
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as http_client:
        client = ResponsesClient("sk-test", http_client=http_client)
        response = await client.create_response(ResponseRequest(model="m", input="2+2?", stream=True))

    assert response.output_text == "4"
    assert response.usage is not None
    assert response.usage.total_tokens == 4


@pytest.mark.asyncio
async def test_stream_error_status_raises_request_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"code": "invalid_api_key", "message": "bad key"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as http_client:
        client = ResponsesClient("sk-bad", http_client=http_client)
        with pytest.raises(AuthenticationError) as exc_info:
            async for _ in client.stream_response(ResponseRequest(input="hi")):
                pass

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "bad key"


@pytest.mark.parametrize(
    ("status", "body", "expected"),
    [
        (401, '{"error": {"message": "no"}}', AuthenticationError),
        (400, '{"error": {"code": "invalid_api_key", "message": "no"}}', AuthenticationError),
        (429, '{"error": {"message": "slow"}}', RateLimitError),
        (400, '{"error": {"code": "rate_limit_exceeded", "message": "slow"}}', RateLimitError),
        (503, "upstream down", ServiceUnavailableError),
        (404, '{"error": {"code": "not_found", "message": "missing", "param": "model"}}', RequestError),
    ],
)
def test_error_for_status_picks_subclass(status: int, body: str, expected: type[RequestError]) -> None:
    error = error_for_status(status, body)

    assert type(error) is expected
    assert error.status_code == status


def test_error_for_status_keeps_short_preview_of_non_json_body() -> None:
    error = error_for_status(400, "x" * 1000)

    assert error.message == "HTTP 400"
    assert error.code is None
    assert error.body_preview is not None
    assert error.body_preview.startswith("x" * 300)
    assert len(error.body_preview) == 303


def test_error_for_status_reads_code_and_param() -> None:
    error = error_for_status(404, '{"error": {"code": "not_found", "message": "missing", "param": "model"}}')

    assert error.code == "not_found"
    assert error.param == "model"
    assert "status_code=404" in str(error)

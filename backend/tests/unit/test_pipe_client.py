"""
Unit tests for PipeClient (httpx transport mocked).
"""

from __future__ import annotations

import json

import httpx
import pytest

from codebase_agent.services.pipe_client import PipeClient
from codebase_agent.utils.exceptions import PipeError


def _client(handler) -> PipeClient:
    return PipeClient(
        base_url="https://pipe.test",
        api_key="pk-test",
        timeout=5,
        max_retries=1,
        transport=httpx.MockTransport(handler),
    )


class TestPipeRun:
    async def test_json_envelope_returns_completion(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"completion": '{"plan": "x"}', "threadId": "t1"})

        text = await _client(handler).run("hello")
        assert text == '{"plan": "x"}'
        assert seen["path"] == "/v1/pipes/run"
        assert seen["auth"] == "Bearer pk-test"
        assert seen["body"] == {"messages": [{"role": "user", "content": "hello"}], "stream": False}

    async def test_streamed_text_is_returned_raw(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, text='data: {"isValid": true}\n\n', headers={"content-type": "text/event-stream"}
            )

        assert await _client(handler).run("x") == 'data: {"isValid": true}\n\n'

    async def test_error_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "unauthorized"})

        with pytest.raises(PipeError, match="401"):
            await _client(handler).run("x")

    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PipeError, match="Pipe request failed"):
            await _client(handler).run("x")

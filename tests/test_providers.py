"""Tests for the DeepSeek chat-completion client."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from cloze_trainer.config import GenerationConfig
from cloze_trainer.errors import (
    ConfigurationError,
    EmptyResponseError,
    GenerationTimeoutError,
    UpstreamError,
)
from cloze_trainer.providers.llm_deepseek import DeepSeekProvider, strip_code_fences


def _config(api_key: str = "sk-test", timeout: float = 60.0) -> GenerationConfig:
    return GenerationConfig(
        api_key=api_key,
        endpoint="https://api.example.test/v1/chat/completions",
        model="deepseek-chat",
        temperature=0.7,
        timeout=timeout,
    )


def _envelope(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers the requests it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_uppercase_tag(self):
        assert strip_code_fences('```JSON\n{"a": 1}```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}\n') == '{"a": 1}'

    def test_inner_fence_untouched(self):
        text = 'Here:\n```json\n{"a": 1}\n```\nBye'
        assert strip_code_fences(text) == text


class TestDeepSeekProvider:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        transport = RecordingTransport(lambda r: httpx.Response(200, json=_envelope('{"a": 1}')))
        llm = DeepSeekProvider(_config(), transport=transport)

        text = await llm.generate("PROMPT")

        assert text == '{"a": 1}'
        req = transport.requests[0]
        assert req.method == "POST"
        assert str(req.url) == "https://api.example.test/v1/chat/completions"
        assert req.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(req.content)
        assert body == {
            "model": "deepseek-chat",
            "messages": [{"role": "user", "content": "PROMPT"}],
            "temperature": 0.7,
        }

    @pytest.mark.asyncio
    async def test_temperature_override(self):
        transport = RecordingTransport(lambda r: httpx.Response(200, json=_envelope("ok")))
        await DeepSeekProvider(_config(), transport=transport).generate("p", temperature=0.2)
        assert json.loads(transport.requests[0].content)["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_fences_stripped(self):
        transport = httpx.MockTransport(
            lambda r: httpx.Response(200, json=_envelope('```json\n{"a": 1}\n```'))
        )
        text = await DeepSeekProvider(_config(), transport=transport).generate("p")
        assert text == '{"a": 1}'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key", ["", "   "])
    async def test_missing_key_fails_before_network(self, api_key):
        transport = RecordingTransport(lambda r: httpx.Response(200, json=_envelope("x")))
        llm = DeepSeekProvider(_config(api_key=api_key), transport=transport)
        with pytest.raises(ConfigurationError) as exc:
            await llm.generate("p")
        assert "DEEPSEEK_API_KEY" in exc.value.message
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_upstream_json_error_message(self):
        transport = httpx.MockTransport(
            lambda r: httpx.Response(401, json={"error": {"message": "Authentication Fails"}})
        )
        with pytest.raises(UpstreamError) as exc:
            await DeepSeekProvider(_config(), transport=transport).generate("p")
        assert exc.value.message == "Authentication Fails"
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_upstream_text_error_truncated(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(502, text="Bad gateway " * 100))
        with pytest.raises(UpstreamError) as exc:
            await DeepSeekProvider(_config(), transport=transport).generate("p")
        assert exc.value.message.startswith("API error: 502: Bad gateway")
        assert len(exc.value.message) <= len("API error: 502: ") + 200

    @pytest.mark.asyncio
    async def test_upstream_empty_body(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(500))
        with pytest.raises(UpstreamError) as exc:
            await DeepSeekProvider(_config(), transport=transport).generate("p")
        assert exc.value.message == "API error: 500"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError):
            await DeepSeekProvider(_config(), transport=httpx.MockTransport(handler)).generate("p")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        _envelope(""),
        _envelope("   \n"),
        _envelope(None),
        {"choices": []},
        {"result": "text"},
    ])
    async def test_empty_content(self, payload):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json=payload))
        with pytest.raises(EmptyResponseError):
            await DeepSeekProvider(_config(), transport=transport).generate("p")

    @pytest.mark.asyncio
    async def test_non_json_envelope_is_empty(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, text="<html></html>"))
        with pytest.raises(EmptyResponseError):
            await DeepSeekProvider(_config(), transport=transport).generate("p")

    @pytest.mark.asyncio
    async def test_timeout_cancels_pending_request(self):
        state = {"cancelled": False}

        async def never_responds(request):
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                state["cancelled"] = True
                raise
            return httpx.Response(200, json=_envelope("late"))

        llm = DeepSeekProvider(_config(timeout=0.05), transport=httpx.MockTransport(never_responds))
        with pytest.raises(GenerationTimeoutError) as exc:
            await llm.generate("p")
        assert state["cancelled"] is True
        assert exc.value.kind == "timeout"

    def test_name(self):
        assert DeepSeekProvider(_config()).name() == "deepseek/deepseek-chat"

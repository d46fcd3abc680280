"""Tests for the provider-agnostic streaming client."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from llm_gateway.client import LLMClient, api_key_placeholder, expand_template
from llm_gateway.models import (
    ApiError,
    ApiSuccess,
    Message,
    Provider,
    StreamError,
    StreamFailed,
    TextComplete,
)

HELLO = [Message(role="user", text="Hello")]


class RecordingTransport:
    """MockTransport handler that records requests and answers with a fixed body."""

    def __init__(self, response: Callable[[], httpx.Response]) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response()


def _provider(providers: list[Provider], provider_id: str) -> Provider:
    return next(p for p in providers if p.provider == provider_id)


class Collector:
    """StreamingCallback that records what it is told."""

    def __init__(self) -> None:
        self.partials: list[str] = []
        self.completed: str | None = None
        self.error: str | None = None
        self.thinking: list[str] = []

    def on_partial(self, text: str) -> None:
        self.partials.append(text)

    def on_complete(self, text: str) -> None:
        self.completed = text

    def on_error(self, message: str) -> None:
        self.error = message

    def on_thinking(self, text: str) -> None:
        self.thinking.append(text)


class TestTemplates:
    """Tests for descriptor template expansion."""

    def test_placeholder(self) -> None:
        assert api_key_placeholder("openai") == "{OPENAI_API_KEY_HERE}"

    def test_expand(self) -> None:
        template = "https://api.poe.com/bot/{model_name}?k={POE_API_KEY_HERE}"
        assert expand_template(template, "poe", "GPT-4o", "secret") == (
            "https://api.poe.com/bot/GPT-4o?k=secret"
        )


class TestLLMClientStream:
    """Tests for LLMClient.stream."""

    async def test_openai_request_shape(
        self,
        default_providers: list[Provider],
        openai_text_stream: Callable[[str], str],
        make_sse_response: Callable[..., httpx.Response],
        recorder,
    ) -> None:
        transport = RecordingTransport(lambda: make_sse_response(openai_text_stream("Hi!")))
        client = LLMClient(transport=httpx.MockTransport(transport))

        result = await client.stream(
            _provider(default_providers, "openai"), "gpt-4o", HELLO, "sk-1", recorder, "Be nice"
        )

        assert result == TextComplete(full_text="Hi!")
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.openai.com/v1/responses"
        assert request.headers["Authorization"] == "Bearer sk-1"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4o"
        assert body["stream"] is True
        assert body["input"][0] == {"role": "system", "content": "Be nice"}

    async def test_google_streaming_url(
        self,
        default_providers: list[Provider],
        make_sse_response: Callable[..., httpx.Response],
        recorder,
    ) -> None:
        """Test that Gemini calls go to streamGenerateContent with alt=sse and the key param."""
        chunk = {"candidates": [{"content": {"parts": [{"text": "Salut"}]}}]}
        transport = RecordingTransport(
            lambda: make_sse_response(f"data: {json.dumps(chunk)}\n\n")
        )
        client = LLMClient(transport=httpx.MockTransport(transport))

        result = await client.stream(
            _provider(default_providers, "google"), "gemini-2.5-flash", HELLO, "g-key", recorder
        )

        assert result == TextComplete(full_text="Salut")
        url = transport.requests[0].url
        assert url.path == "/v1beta/models/gemini-2.5-flash:streamGenerateContent"
        assert url.params["key"] == "g-key"
        assert url.params["alt"] == "sse"

    async def test_anthropic_headers(
        self,
        default_providers: list[Provider],
        make_sse_response: Callable[..., httpx.Response],
        recorder,
    ) -> None:
        body = (
            "event: content_block_delta\n"
            'data: {"delta": {"type": "text_delta", "text": "Yo"}}\n\n'
            "event: message_stop\n"
            'data: {"type": "message_stop"}\n\n'
        )
        transport = RecordingTransport(lambda: make_sse_response(body))
        client = LLMClient(transport=httpx.MockTransport(transport))

        await client.stream(
            _provider(default_providers, "anthropic"), "claude-3-haiku-20240307", HELLO, "ak", recorder
        )

        headers = transport.requests[0].headers
        assert headers["x-api-key"] == "ak"
        assert headers["anthropic-version"] == "2023-06-01"

    async def test_poe_model_in_url(
        self,
        default_providers: list[Provider],
        make_sse_response: Callable[..., httpx.Response],
        recorder,
    ) -> None:
        body = 'event: text\ndata: {"text": "ok"}\n\nevent: done\ndata: {}\n\n'
        transport = RecordingTransport(lambda: make_sse_response(body))
        client = LLMClient(transport=httpx.MockTransport(transport))

        await client.stream(_provider(default_providers, "poe"), "GPT-4o", HELLO, "pk", recorder)

        assert str(transport.requests[0].url) == "https://api.poe.com/bot/GPT-4o"

    @pytest.mark.parametrize("api_key", [None, ""])
    async def test_missing_key(
        self, default_providers: list[Provider], recorder, api_key: str | None
    ) -> None:
        """Test that a missing key fails without touching the network."""
        transport = RecordingTransport(lambda: httpx.Response(500))
        client = LLMClient(transport=httpx.MockTransport(transport))

        result = await client.stream(
            _provider(default_providers, "cohere"), "command-a-03-2025", HELLO, api_key, recorder
        )

        assert result == StreamError(message="Cohere API key is required")
        assert recorder.events == [StreamFailed(message="Cohere API key is required")]
        assert transport.requests == []

    async def test_connection_failure(self, default_providers: list[Provider], recorder) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        client = LLMClient(transport=httpx.MockTransport(refuse))

        result = await client.stream(
            _provider(default_providers, "openai"), "gpt-4o", HELLO, "sk", recorder
        )

        assert result == StreamError(
            message="Failed to make OpenAI streaming request: connection refused"
        )
        assert len(recorder.terminal) == 1

    async def test_http_error(self, default_providers: list[Provider], recorder) -> None:
        transport = RecordingTransport(
            lambda: httpx.Response(429, json={"error": {"message": "Too many requests"}})
        )
        client = LLMClient(transport=httpx.MockTransport(transport))

        result = await client.stream(
            _provider(default_providers, "openrouter"), "openai/gpt-4o", HELLO, "or", recorder
        )

        assert result == StreamError(message="OpenRouter API error (429): Too many requests")

    async def test_wrong_shaped_frame(
        self,
        default_providers: list[Provider],
        make_sse_response: Callable[..., httpx.Response],
        recorder,
    ) -> None:
        """Test that a JSON frame of the wrong shape still yields one terminal event."""
        transport = RecordingTransport(
            lambda: make_sse_response('data: {"choices": [{"delta": "oops"}]}\n\n')
        )
        client = LLMClient(transport=httpx.MockTransport(transport))

        result = await client.stream(
            _provider(default_providers, "openrouter"), "openai/gpt-4o", HELLO, "or", recorder
        )

        assert isinstance(result, StreamError)
        assert recorder.events == [StreamFailed(message=result.message)]


class TestLLMClientCallbacks:
    """Tests for the callback and non-streaming entry points."""

    async def test_stream_message_callback(
        self,
        default_providers: list[Provider],
        make_sse_response: Callable[..., httpx.Response],
    ) -> None:
        body = (
            'data: {"choices": [{"delta": {"reasoning": "hm"}}]}\n\n'
            'data: {"choices": [{"delta": {"content": "A"}}]}\n\n'
            'data: {"choices": [{"delta": {"content": "B"}}]}\n\n'
            "data: [DONE]\n\n"
        )
        client = LLMClient(transport=httpx.MockTransport(lambda r: make_sse_response(body)))
        callback = Collector()

        await client.stream_message(
            _provider(default_providers, "openrouter"),
            "openai/gpt-4o",
            HELLO,
            {"openrouter": "or-key"},
            callback,
        )

        assert callback.partials == ["A", "B"]
        assert callback.thinking == ["hm"]
        assert callback.completed == "AB"
        assert callback.error is None

    async def test_stream_message_error_callback(self, default_providers: list[Provider]) -> None:
        client = LLMClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        callback = Collector()

        await client.stream_message(
            _provider(default_providers, "openai"), "gpt-4o", HELLO, {}, callback
        )

        assert callback.error == "OpenAI API key is required"
        assert callback.completed is None

    async def test_complete(
        self,
        default_providers: list[Provider],
        openai_text_stream: Callable[[str], str],
        make_sse_response: Callable[..., httpx.Response],
    ) -> None:
        client = LLMClient(
            transport=httpx.MockTransport(lambda r: make_sse_response(openai_text_stream("Done")))
        )

        response = await client.complete(
            _provider(default_providers, "openai"), "gpt-4o", HELLO, {"openai": "sk"}
        )

        assert response == ApiSuccess(message="Done")

    async def test_complete_error(self, default_providers: list[Provider]) -> None:
        client = LLMClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(403, text="Forbidden"))
        )

        response = await client.complete(
            _provider(default_providers, "openai"), "gpt-4o", HELLO, {"openai": "sk"}
        )

        assert response == ApiError(message="OpenAI API error (403): Forbidden")

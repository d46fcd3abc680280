"""Provider-agnostic client that drives one streaming call end to end."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from llm_gateway.logging import get_logger
from llm_gateway.models.catalog import Provider
from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import (
    ApiError,
    ApiResponse,
    ApiSuccess,
    ProviderStreamingResult,
    StreamError,
    StreamEvent,
    StreamFailed,
    StreamSucceeded,
    TextComplete,
    TextDelta,
    ThinkingDelta,
    ToolCallDetected,
)
from llm_gateway.streaming import parser_registry
from llm_gateway.streaming.base import EventHandler

logger = get_logger(__name__)

DEFAULT_STREAM_TIMEOUT = 120.0


@runtime_checkable
class StreamingCallback(Protocol):
    """Receives the progress of one streaming call.

    ``on_thinking(text)`` and ``on_tool_call(tool_call, preceding_text)``
    are optional; callbacks that lack them simply don't see those events.
    """

    def on_partial(self, text: str) -> None: ...

    def on_complete(self, text: str) -> None: ...

    def on_error(self, message: str) -> None: ...


class CallbackHandler:
    """Adapts a StreamingCallback to the stream event handler signature."""

    def __init__(self, callback: StreamingCallback) -> None:
        self.callback = callback

    async def __call__(self, event: StreamEvent) -> None:
        if isinstance(event, TextDelta):
            self.callback.on_partial(event.text)
        elif isinstance(event, ThinkingDelta):
            on_thinking = getattr(self.callback, "on_thinking", None)
            if on_thinking is not None and event.text:
                on_thinking(event.text)
        elif isinstance(event, StreamSucceeded):
            result = event.result
            if isinstance(result, TextComplete):
                self.callback.on_complete(result.full_text)
            else:
                on_tool_call = getattr(self.callback, "on_tool_call", None)
                if on_tool_call is not None:
                    on_tool_call(result.tool_call, result.preceding_text)
                else:
                    self.callback.on_complete(result.preceding_text)
        elif isinstance(event, StreamFailed):
            self.callback.on_error(event.message)


async def _discard(event: StreamEvent) -> None:
    return None


def api_key_placeholder(provider_id: str) -> str:
    """Credential placeholder used in descriptor templates, e.g. ``{OPENAI_API_KEY_HERE}``."""
    return "{" + f"{provider_id.upper()}_API_KEY_HERE" + "}"


def expand_template(template: str, provider_id: str, model: str, api_key: str) -> str:
    """Fill ``{model_name}`` and the provider's key placeholder."""
    return template.replace("{model_name}", model).replace(
        api_key_placeholder(provider_id), api_key
    )


class LLMClient:
    """Sends one streaming text request to any catalog provider.

    The request shape comes from the provider's static descriptor; the body
    and the wire protocol come from the provider's stream parser.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_STREAM_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            transport: Optional httpx transport, used by tests.
            timeout: Per-request timeout in seconds.
        """
        self._transport = transport
        self.timeout = timeout

    async def stream(
        self,
        provider: Provider,
        model: str,
        messages: list[Message],
        api_key: str | None,
        handler: EventHandler,
        system_prompt: str = "",
    ) -> ProviderStreamingResult:
        """Run one streaming call, delivering normalized events to ``handler``.

        Never raises for transport or provider failures; those end the
        stream with a StreamError.

        Args:
            provider: Provider descriptor from the catalog.
            model: Model name.
            messages: Conversation so far.
            api_key: The provider's API key.
            handler: Receives text, thinking and exactly one terminal event.
            system_prompt: Optional system prompt.

        Returns:
            The terminal result.
        """
        provider_id = provider.provider
        parser = parser_registry.create(provider_id)
        if parser is None:
            message = f"Unsupported provider: {provider_id}"
            await handler(StreamFailed(message=message))
            return StreamError(message=message)

        if not api_key:
            return await parser.abort(handler, f"{parser.display_name} API key is required")

        request = provider.request
        url = parser.build_url(
            expand_template(request.base_url, provider_id, model, api_key), model
        )
        headers = {
            name: expand_template(value, provider_id, model, api_key)
            for name, value in request.headers.items()
        }
        params = {
            name: expand_template(value, provider_id, model, api_key)
            for name, value in (request.params or {}).items()
        }
        params.update(parser.extra_params())
        body = parser.build_request_body(model, messages, system_prompt)

        logger.info("Starting stream", provider=provider_id, model=model, url=url)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                http_request = client.build_request(
                    request.request_type,
                    url,
                    headers=headers,
                    params=params or None,
                    json=body,
                )
                response = await client.send(http_request, stream=True)
            except httpx.HTTPError as e:
                return await parser.abort(
                    handler, f"Failed to make {parser.display_name} streaming request: {e}"
                )

            result = await parser.consume(response, handler)

        logger.info(
            "Stream finished",
            provider=provider_id,
            model=model,
            result=result.kind,
        )
        return result

    async def stream_message(
        self,
        provider: Provider,
        model: str,
        messages: list[Message],
        api_keys: dict[str, str],
        callback: StreamingCallback,
        system_prompt: str = "",
    ) -> ProviderStreamingResult:
        """Run one streaming call and report progress to ``callback``.

        Args:
            provider: Provider descriptor from the catalog.
            model: Model name.
            messages: Conversation so far.
            api_keys: Active keys by provider id.
            callback: Receives partial text, then completion or an error.
            system_prompt: Optional system prompt.

        Returns:
            The terminal result.
        """
        return await self.stream(
            provider,
            model,
            messages,
            api_keys.get(provider.provider),
            CallbackHandler(callback),
            system_prompt=system_prompt,
        )

    async def complete(
        self,
        provider: Provider,
        model: str,
        messages: list[Message],
        api_keys: dict[str, str],
        system_prompt: str = "",
    ) -> ApiResponse:
        """Non-streaming counterpart: collect the whole stream into one response."""
        result = await self.stream(
            provider,
            model,
            messages,
            api_keys.get(provider.provider),
            _discard,
            system_prompt=system_prompt,
        )
        if isinstance(result, TextComplete):
            return ApiSuccess(message=result.full_text)
        if isinstance(result, ToolCallDetected):
            if result.preceding_text:
                return ApiSuccess(message=result.preceding_text)
            return ApiError(message=f"Unexpected tool call: {result.tool_call.tool_id}")
        return ApiError(message=result.message)

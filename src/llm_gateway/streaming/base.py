"""Shared contract for provider stream parsers.

Every provider speaks some flavour of server-sent events. The base class
owns the framing (``event:``/``data:`` fields, blank-line dispatch, comment
lines, the ``[DONE]`` sentinel), JSON decoding, thinking-phase timing and
the delivery gate that guarantees exactly one terminal event per call.
Subclasses only interpret decoded frames through the ``on_frame`` hook.
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from llm_gateway.errors import StreamDecodeError
from llm_gateway.logging import get_logger
from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import (
    ProviderStreamingResult,
    StreamError,
    StreamEvent,
    StreamFailed,
    StreamSucceeded,
    TextComplete,
    TextDelta,
    ThinkingDelta,
    ThoughtStatus,
    ToolCall,
    ToolCallDetected,
)

logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"

# Raised by on_frame when a well-formed JSON frame has the wrong shape
ENVELOPE_ERRORS = (AttributeError, TypeError, KeyError, IndexError, ValidationError)

EventHandler = Callable[[StreamEvent], Awaitable[None]]


@dataclass
class SSEFrame:
    """One dispatched server-sent event."""

    event: str | None
    data: str


async def iter_sse_frames(lines: AsyncIterator[str]) -> AsyncIterator[SSEFrame]:
    """Group raw lines into SSE frames.

    A frame is dispatched on a blank line, when a new ``event:`` line
    arrives while data is pending, or at end of input. Lines starting
    with ``:`` are keepalive comments.
    """
    event: str | None = None
    data_lines: list[str] = []

    async for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        if not line.strip():
            if data_lines:
                yield SSEFrame(event=event, data="\n".join(data_lines))
            event, data_lines = None, []
            continue

        if line.startswith(":"):
            continue

        if line.strip() == DONE_SENTINEL:
            yield SSEFrame(event=event, data=DONE_SENTINEL)
            event, data_lines = None, []
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            if data_lines:
                yield SSEFrame(event=event, data="\n".join(data_lines))
                data_lines = []
            event = value.strip()
        elif field == "data":
            data_lines.append(value)
        # id:, retry: and unknown fields are ignored

    if data_lines:
        yield SSEFrame(event=event, data="\n".join(data_lines))


def payload_error_message(payload: dict[str, Any]) -> str | None:
    """``error.message`` (or a bare ``error``/``message`` string) from a payload."""
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if payload.get("message"):
        return str(payload["message"])
    return None


def extract_error_message(body: str) -> str:
    """Error message from a JSON error body, falling back to the raw body."""
    try:
        payload = json.loads(body)
    except ValueError:
        return body
    if isinstance(payload, dict):
        return payload_error_message(payload) or body
    return body


class ThinkingClock:
    """Measures the thinking phase on a monotonic clock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.started_at: float | None = None
        self.finished_at: float | None = None

    @property
    def started(self) -> bool:
        return self.started_at is not None

    @property
    def running(self) -> bool:
        return self.started_at is not None and self.finished_at is None

    def start(self) -> None:
        if self.started_at is None:
            self.started_at = self._clock()

    def stop(self) -> None:
        if self.running:
            self.finished_at = self._clock()

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None:
            return None
        end = self.finished_at if self.finished_at is not None else self._clock()
        return end - self.started_at


@dataclass
class ToolCallBuilder:
    """Accumulates a tool call streamed in pieces."""

    id: str | None = None
    name: str | None = None
    arguments: str = ""

    @property
    def is_complete(self) -> bool:
        return self.id is not None and self.name is not None


class StreamParser(ABC):
    """Base class for one provider's streaming protocol.

    A parser instance holds the state of a single call and must not be
    reused. Subclasses implement ``build_request_body`` and ``on_frame``;
    inside ``on_frame`` they report progress through ``emit_text``,
    ``emit_thinking``, ``start_thinking``, ``finish_thinking``,
    ``replace_text``, ``detect_tool_call``, ``fail`` and ``stop``.
    """

    # Provider identifier (e.g., "openai", "anthropic")
    provider_id: str

    # Human-readable name used in error messages (e.g., "OpenAI")
    display_name: str

    # Event names that end the stream before their payload is decoded
    stop_events: frozenset[str] = frozenset()

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.thinking = ThinkingClock(clock)
        self._text: list[str] = []
        self._thoughts: list[str] = []
        self._pending: list[StreamEvent] = []
        self._tool_call: ToolCall | None = None
        self._error: str | None = None
        self._stopped = False
        self._closed = False

    # ========================================================================
    # Request side
    # ========================================================================

    def build_url(self, base_url: str, model: str) -> str:
        """Streaming URL for a model; ``{model_name}`` is already expanded."""
        return base_url

    def extra_params(self) -> dict[str, str]:
        """Query parameters the streaming call needs beyond the descriptor's."""
        return {}

    @abstractmethod
    def build_request_body(
        self, model: str, messages: list[Message], system_prompt: str = ""
    ) -> dict[str, Any]:
        """Minimal JSON body for one streaming text call."""

    # ========================================================================
    # Hooks for subclasses
    # ========================================================================

    @abstractmethod
    def on_frame(self, event: str | None, payload: dict[str, Any]) -> None:
        """Interpret one decoded frame."""

    @property
    def text(self) -> str:
        return "".join(self._text)

    @property
    def tool_call(self) -> ToolCall | None:
        return self._tool_call

    def emit_text(self, text: str) -> None:
        if not text:
            return
        self.finish_thinking()
        self._text.append(text)
        self._pending.append(TextDelta(text=text))

    def replace_text(self, text: str) -> None:
        """Discard the text so far and start over with ``text``."""
        self.finish_thinking()
        self._text = [text]
        self._pending.append(TextDelta(text=text))

    def start_thinking(self) -> None:
        if self.thinking.started:
            return
        self.thinking.start()
        self._pending.append(ThinkingDelta(text="", status=ThoughtStatus.IN_PROGRESS))

    def emit_thinking(self, text: str) -> None:
        if not text:
            return
        self.start_thinking()
        self._thoughts.append(text)
        self._pending.append(ThinkingDelta(text=text, status=ThoughtStatus.IN_PROGRESS))

    def finish_thinking(self) -> None:
        if not self.thinking.running:
            return
        self.thinking.stop()
        self._pending.append(ThinkingDelta(text="", status=ThoughtStatus.FINISHED))

    def detect_tool_call(self, tool_call: ToolCall) -> None:
        """Record a tool call; the stream ends after the current frame."""
        self.finish_thinking()
        self._tool_call = tool_call
        self._stopped = True

    def fail(self, message: str) -> None:
        self._error = message

    def stop(self) -> None:
        self._stopped = True

    def parse_arguments(self, raw: str | None) -> dict[str, Any]:
        """Decode accumulated tool-call arguments; empty means no arguments."""
        if not raw:
            return {}
        try:
            arguments = json.loads(raw)
        except ValueError as e:
            raise StreamDecodeError(self.provider_id, raw, "invalid tool arguments") from e
        if not isinstance(arguments, dict):
            raise StreamDecodeError(self.provider_id, raw, "tool arguments are not an object")
        return arguments

    # ========================================================================
    # Driving the stream
    # ========================================================================

    def decode(self, frame: SSEFrame) -> dict[str, Any]:
        """Decode a frame's data as a JSON object.

        Raises:
            StreamDecodeError: The data is not JSON, or not a JSON object.
        """
        try:
            payload = json.loads(frame.data)
        except ValueError as e:
            raise StreamDecodeError(self.provider_id, frame.data, "invalid JSON") from e
        if not isinstance(payload, dict):
            raise StreamDecodeError(self.provider_id, frame.data, "not a JSON object")
        return payload

    def handle_frame(self, frame: SSEFrame) -> None:
        """Decode a frame and pass it to ``on_frame``.

        Raises:
            StreamDecodeError: The frame is not JSON, or its payload does not
                have the shape the provider's envelope requires. Events the
                frame queued before failing are dropped.
        """
        payload = self.decode(frame)
        queued = len(self._pending)
        try:
            self.on_frame(frame.event, payload)
        except ENVELOPE_ERRORS as e:
            del self._pending[queued:]
            raise StreamDecodeError(
                self.provider_id, frame.data, f"unexpected envelope: {type(e).__name__}"
            ) from e

    async def _deliver(self, handler: EventHandler, event: StreamEvent) -> None:
        if self._closed:
            return
        if isinstance(event, (StreamSucceeded, StreamFailed)):
            self._closed = True
        await handler(event)

    async def _flush(self, handler: EventHandler) -> None:
        pending, self._pending = self._pending, []
        for event in pending:
            await self._deliver(handler, event)

    async def _terminate(
        self, handler: EventHandler, result: ProviderStreamingResult
    ) -> ProviderStreamingResult:
        if not isinstance(result, StreamError):
            self.finish_thinking()
        await self._flush(handler)
        if isinstance(result, StreamError):
            logger.warning("Stream failed", provider=self.provider_id, error=result.message)
            await self._deliver(handler, StreamFailed(message=result.message))
        else:
            await self._deliver(handler, StreamSucceeded(result=result))
        return result

    def build_result(self) -> ProviderStreamingResult:
        """Terminal result from the accumulated state."""
        thoughts = "".join(self._thoughts) or None
        status = ThoughtStatus.FINISHED if self.thinking.started else ThoughtStatus.NONE
        duration = self.thinking.duration_seconds

        if self._tool_call is not None:
            return ToolCallDetected(
                tool_call=self._tool_call,
                preceding_text=self.text,
                thoughts=thoughts,
                thinking_duration_seconds=duration,
                thought_status=status,
            )
        if self.text:
            return TextComplete(
                full_text=self.text,
                thoughts=thoughts,
                thinking_duration_seconds=duration,
                thought_status=status,
            )
        return StreamError(message=f"Empty response from {self.display_name}")

    async def parse(
        self, lines: AsyncIterator[str], handler: EventHandler
    ) -> ProviderStreamingResult:
        """Consume SSE lines, deliver events and return the terminal result.

        Args:
            lines: Raw response lines.
            handler: Receives text, thinking and exactly one terminal event.

        Returns:
            The same result carried by the terminal event.
        """
        try:
            async for frame in iter_sse_frames(lines):
                if frame.data.strip() == DONE_SENTINEL:
                    break
                if frame.event in self.stop_events:
                    break
                if not frame.data.strip():
                    continue

                try:
                    self.handle_frame(frame)
                except StreamDecodeError as e:
                    return await self._terminate(handler, StreamError(message=str(e)))

                await self._flush(handler)

                if self._error is not None:
                    return await self._terminate(handler, StreamError(message=self._error))
                if self._stopped:
                    break
        except httpx.HTTPError as e:
            message = f"{self.display_name} stream interrupted: {e}"
            return await self._terminate(handler, StreamError(message=message))

        return await self._terminate(handler, self.build_result())

    async def abort(self, handler: EventHandler, message: str) -> StreamError:
        """End a call that failed before any response was available."""
        result = StreamError(message=message)
        await self._terminate(handler, result)
        return result

    def http_error_message(self, status_code: int, body: str) -> str:
        return f"{self.display_name} API error ({status_code}): {extract_error_message(body)}"

    async def consume(
        self, response: httpx.Response, handler: EventHandler
    ) -> ProviderStreamingResult:
        """Drive a streaming response to completion and release it.

        Args:
            response: An open streaming response.
            handler: Receives the normalized events.

        Returns:
            The terminal result.
        """
        try:
            if not response.is_success:
                try:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                except httpx.HTTPError as e:
                    body = str(e)
                message = self.http_error_message(response.status_code, body)
                return await self._terminate(handler, StreamError(message=message))

            return await self.parse(response.aiter_lines(), handler)
        finally:
            await response.aclose()


def text_messages(messages: list[Message]) -> list[Message]:
    """User and assistant turns only; other roles never reach a plain text call."""
    return [m for m in messages if m.role in ("user", "assistant")]

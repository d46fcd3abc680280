"""Anthropic Messages API stream parser."""

from __future__ import annotations

import json
from typing import Any

from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import ToolCall
from llm_gateway.streaming.base import StreamParser, payload_error_message, text_messages
from llm_gateway.streaming.registry import parser_registry

MAX_TOKENS = 8192


@parser_registry.register
class AnthropicStreamParser(StreamParser):
    """``event:``/``data:`` pairs from ``POST /v1/messages``.

    Content arrives in indexed blocks: ``thinking``, ``text`` and
    ``tool_use``. A tool_use block's input is streamed as partial JSON and
    only becomes a tool call when the block stops.
    """

    provider_id = "anthropic"
    display_name = "Anthropic"
    stop_events = frozenset({"message_stop"})

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._tool_use_id: str | None = None
        self._tool_name: str | None = None
        self._tool_input: list[str] = []

    def build_request_body(
        self, model: str, messages: list[Message], system_prompt: str = ""
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": model,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": m.role, "content": [{"type": "text", "text": m.text}]}
                for m in text_messages(messages)
            ],
            "stream": True,
        }
        if system_prompt.strip():
            body["system"] = system_prompt
        return body

    def _start_block(self, block: dict[str, Any]) -> None:
        block_type = block.get("type")
        if block_type == "thinking":
            self.start_thinking()
        elif block_type == "text":
            self.finish_thinking()
        elif block_type == "tool_use":
            self.finish_thinking()
            self._tool_use_id = block.get("id")
            self._tool_name = block.get("name")
            self._tool_input = []
            initial_input = block.get("input")
            if initial_input:
                self._tool_input.append(json.dumps(initial_input))

    def _apply_delta(self, delta: dict[str, Any]) -> None:
        delta_type = delta.get("type")
        if delta_type == "thinking_delta":
            self.emit_thinking(delta.get("thinking") or "")
        elif delta_type == "text_delta":
            self.emit_text(delta.get("text") or "")
        elif delta_type == "input_json_delta":
            self._tool_input.append(delta.get("partial_json") or "")
        # signature_delta only matters when replaying thinking blocks

    def _stop_block(self) -> None:
        if self._tool_use_id is None or self._tool_name is None:
            return
        tool_call = ToolCall(
            id=self._tool_use_id,
            tool_id=self._tool_name,
            parameters=self.parse_arguments("".join(self._tool_input)),
            provider=self.provider_id,
        )
        self._tool_use_id = None
        self._tool_name = None
        self.detect_tool_call(tool_call)

    def on_frame(self, event: str | None, payload: dict[str, Any]) -> None:
        event_type = event or payload.get("type")

        if event_type == "content_block_start":
            self._start_block(payload.get("content_block") or {})
        elif event_type == "content_block_delta":
            self._apply_delta(payload.get("delta") or {})
        elif event_type == "content_block_stop":
            self._stop_block()
        elif event_type == "message_stop":
            self.stop()
        elif event_type == "error":
            message = payload_error_message(payload) or "Unknown error"
            self.fail(f"Anthropic API error: {message}")

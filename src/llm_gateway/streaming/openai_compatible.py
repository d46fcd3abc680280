"""Chat Completions stream parser for OpenAI-compatible aggregators."""

from __future__ import annotations

from typing import Any

from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import ToolCall
from llm_gateway.streaming.base import (
    StreamParser,
    ToolCallBuilder,
    payload_error_message,
    text_messages,
)
from llm_gateway.streaming.registry import parser_registry


class OpenAICompatibleStreamParser(StreamParser):
    """``data:`` frames carrying ``choices[0].delta`` chunks.

    Reasoning shows up as ``reasoning``, ``reasoning_content`` or
    ``reasoning_details``, depending on the upstream model.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._tool_builders: dict[int, ToolCallBuilder] = {}

    def build_request_body(
        self, model: str, messages: list[Message], system_prompt: str = ""
    ) -> dict[str, Any]:
        chat_messages: list[dict[str, Any]] = []
        if system_prompt.strip():
            chat_messages.append({"role": "system", "content": system_prompt})
        chat_messages.extend(
            {"role": m.role, "content": m.text} for m in text_messages(messages)
        )
        return {"model": model, "messages": chat_messages, "stream": True}

    def _apply_reasoning(self, delta: dict[str, Any]) -> None:
        for detail in delta.get("reasoning_details") or []:
            if isinstance(detail, dict):
                self.emit_thinking(detail.get("reasoning") or detail.get("text") or "")
        for key in ("reasoning", "reasoning_content"):
            value = delta.get(key)
            if isinstance(value, str):
                self.emit_thinking(value)

    def _apply_tool_fragments(self, fragments: list[dict[str, Any]]) -> None:
        self.finish_thinking()
        for fragment in fragments:
            builder = self._tool_builders.setdefault(fragment.get("index", 0), ToolCallBuilder())
            if fragment.get("id") is not None:
                builder.id = fragment["id"]
            function = fragment.get("function") or {}
            if function.get("name") is not None:
                builder.name = function["name"]
            if function.get("arguments") is not None:
                builder.arguments += function["arguments"]

    def _complete_tool_call(self) -> None:
        builder = self._tool_builders.get(0) or next(iter(self._tool_builders.values()), None)
        if builder is None or not builder.is_complete:
            return
        self.detect_tool_call(
            ToolCall(
                id=builder.id,
                tool_id=builder.name,
                parameters=self.parse_arguments(builder.arguments),
                provider=self.provider_id,
            )
        )

    def on_frame(self, event: str | None, payload: dict[str, Any]) -> None:
        if payload.get("error") is not None:
            self.fail(
                f"{self.display_name} API error: "
                f"{payload_error_message(payload) or 'Unknown error'}"
            )
            return

        choices = payload.get("choices") or []
        if not choices:
            return
        choice = choices[0]
        delta = choice.get("delta") or {}

        self._apply_reasoning(delta)

        content = delta.get("content")
        if isinstance(content, str):
            self.emit_text(content)

        tool_fragments = delta.get("tool_calls")
        if tool_fragments:
            self._apply_tool_fragments(tool_fragments)

        if choice.get("finish_reason") == "tool_calls":
            self._complete_tool_call()


@parser_registry.register
class OpenRouterStreamParser(OpenAICompatibleStreamParser):
    provider_id = "openrouter"
    display_name = "OpenRouter"


@parser_registry.register
class LLMStatsStreamParser(OpenAICompatibleStreamParser):
    provider_id = "llmstats"
    display_name = "LLM Stats"

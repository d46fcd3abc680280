"""Poe bot API stream parser."""

from __future__ import annotations

from typing import Any

from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import ToolCall
from llm_gateway.streaming.base import StreamParser, ToolCallBuilder, text_messages
from llm_gateway.streaming.registry import parser_registry


@parser_registry.register
class PoeStreamParser(StreamParser):
    """Named events: ``text``, ``replace_response``, ``json``, ``error``, ``done``.

    Tool calls arrive inside ``json`` events as OpenAI-style
    ``choices[0].delta.tool_calls`` fragments and are complete when the
    choice reports ``finish_reason == "tool_calls"``.
    """

    provider_id = "poe"
    display_name = "Poe"
    stop_events = frozenset({"done"})

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._tool_builders: dict[int, ToolCallBuilder] = {}

    def build_request_body(
        self, model: str, messages: list[Message], system_prompt: str = ""
    ) -> dict[str, Any]:
        query: list[dict[str, Any]] = []
        if system_prompt.strip():
            query.append(
                {"role": "system", "content": system_prompt, "content_type": "text/markdown"}
            )
        for message in text_messages(messages):
            query.append(
                {
                    "role": "bot" if message.role == "assistant" else "user",
                    "content": message.text,
                    "content_type": "text/markdown",
                }
            )
        return {
            "version": "1.2",
            "type": "query",
            "query": query,
            "user_id": "",
            "conversation_id": "",
            "message_id": "",
        }

    def _apply_json(self, payload: dict[str, Any]) -> None:
        choices = payload.get("choices") or []
        if not choices:
            return
        choice = choices[0]

        for fragment in (choice.get("delta") or {}).get("tool_calls") or []:
            builder = self._tool_builders.setdefault(fragment.get("index", 0), ToolCallBuilder())
            if fragment.get("id") is not None:
                builder.id = fragment["id"]
            function = fragment.get("function") or {}
            if function.get("name") is not None:
                builder.name = function["name"]
            if function.get("arguments") is not None:
                builder.arguments += function["arguments"]

        if choice.get("finish_reason") == "tool_calls" and self._tool_builders:
            builder = next(iter(self._tool_builders.values()))
            if builder.is_complete:
                self.detect_tool_call(
                    ToolCall(
                        id=builder.id,
                        tool_id=builder.name,
                        parameters=self.parse_arguments(builder.arguments),
                        provider=self.provider_id,
                    )
                )

    def on_frame(self, event: str | None, payload: dict[str, Any]) -> None:
        if event == "text":
            self.emit_text(payload.get("text") or "")
        elif event == "replace_response":
            replacement = payload.get("text")
            if replacement and replacement.strip():
                self.replace_text(replacement)
        elif event == "json":
            self._apply_json(payload)
        elif event == "error":
            error_text = payload.get("text") or "Unknown error"
            self.fail(f"Poe API error ({payload.get('error_type')}): {error_text}")

"""Cohere v2 chat stream parser."""

from __future__ import annotations

from typing import Any

from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import ToolCall
from llm_gateway.streaming.base import StreamParser, ToolCallBuilder, text_messages
from llm_gateway.streaming.registry import parser_registry


def _first_tool_call(message: dict[str, Any]) -> dict[str, Any]:
    # Cohere sends tool_calls as either an object or a one-element array
    tool_calls = message.get("tool_calls")
    if isinstance(tool_calls, list):
        tool_calls = tool_calls[0] if tool_calls else None
    return tool_calls if isinstance(tool_calls, dict) else {}


@parser_registry.register
class CohereStreamParser(StreamParser):
    """Named events from ``POST /v2/chat`` with ``stream: true``."""

    provider_id = "cohere"
    display_name = "Cohere"
    stop_events = frozenset({"message-end"})

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._tool = ToolCallBuilder()
        self.tool_plan = ""

    def build_request_body(
        self, model: str, messages: list[Message], system_prompt: str = ""
    ) -> dict[str, Any]:
        cohere_messages: list[dict[str, Any]] = []
        if system_prompt.strip():
            cohere_messages.append({"role": "system", "content": system_prompt})
        cohere_messages.extend(
            {"role": m.role, "content": m.text} for m in text_messages(messages)
        )
        return {"model": model, "messages": cohere_messages, "stream": True}

    def on_frame(self, event: str | None, payload: dict[str, Any]) -> None:
        event_type = event or payload.get("type")
        message = (payload.get("delta") or {}).get("message") or {}

        if event_type == "content-delta":
            content = message.get("content")
            if isinstance(content, dict):
                content = content.get("text")
            if isinstance(content, str):
                self.emit_text(content)

        elif event_type == "tool-plan-delta":
            self.tool_plan += message.get("tool_plan") or ""

        elif event_type == "tool-call-start":
            tool_call = _first_tool_call(message)
            function = tool_call.get("function") or {}
            self._tool = ToolCallBuilder(
                id=tool_call.get("id"),
                name=function.get("name"),
                arguments=function.get("arguments") or "",
            )

        elif event_type == "tool-call-delta":
            function = _first_tool_call(message).get("function") or {}
            self._tool.arguments += function.get("arguments") or ""

        elif event_type == "tool-call-end":
            if self._tool.is_complete:
                self.detect_tool_call(
                    ToolCall(
                        id=self._tool.id,
                        tool_id=self._tool.name,
                        parameters=self.parse_arguments(self._tool.arguments),
                        provider=self.provider_id,
                    )
                )

        elif event_type == "message-end":
            self.stop()

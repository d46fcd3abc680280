"""OpenAI Responses API stream parser."""

from __future__ import annotations

from typing import Any

from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import ToolCall
from llm_gateway.streaming.base import StreamParser, payload_error_message, text_messages
from llm_gateway.streaming.registry import parser_registry


@parser_registry.register
class OpenAIStreamParser(StreamParser):
    """Typed events from ``POST /v1/responses`` with ``stream: true``.

    The event name comes from the ``event:`` line when present, otherwise
    from the payload's ``type`` field.
    """

    provider_id = "openai"
    display_name = "OpenAI"

    def build_request_body(
        self, model: str, messages: list[Message], system_prompt: str = ""
    ) -> dict[str, Any]:
        conversation_input: list[dict[str, Any]] = []
        if system_prompt.strip():
            conversation_input.append({"role": "system", "content": system_prompt})

        for message in text_messages(messages):
            if message.role == "user":
                conversation_input.append(
                    {
                        "role": "user",
                        "content": [{"type": "input_text", "text": message.text}],
                    }
                )
            else:
                conversation_input.append({"role": "assistant", "content": message.text})

        return {"model": model, "input": conversation_input, "stream": True}

    def _tool_call_from_item(self, item: dict[str, Any]) -> ToolCall | None:
        if item.get("type") != "function_call" or item.get("status") != "completed":
            return None
        name = item.get("name")
        call_id = item.get("call_id")
        arguments = item.get("arguments")
        if name is None or call_id is None or arguments is None:
            return None
        return ToolCall(
            id=call_id,
            tool_id=name,
            parameters=self.parse_arguments(arguments),
            provider=self.provider_id,
        )

    def on_frame(self, event: str | None, payload: dict[str, Any]) -> None:
        event_type = event or payload.get("type")

        if event_type == "response.output_item.added":
            item = payload.get("item") or {}
            if item.get("type") == "reasoning":
                self.start_thinking()

        elif event_type == "response.reasoning_summary_text.delta":
            self.emit_thinking(payload.get("delta") or "")

        elif event_type == "response.output_text.delta":
            self.emit_text(payload.get("delta") or "")

        elif event_type == "response.output_item.done":
            tool_call = self._tool_call_from_item(payload.get("item") or {})
            if tool_call is not None:
                self.detect_tool_call(tool_call)

        elif event_type == "response.completed":
            response = payload.get("response") or {}
            for item in response.get("output") or []:
                tool_call = self._tool_call_from_item(item)
                if tool_call is not None:
                    self.detect_tool_call(tool_call)
                    return
            self.stop()

        elif event_type == "response.failed":
            error = (payload.get("response") or {}).get("error") or {}
            self.fail(f"OpenAI API error: {error.get('message') or 'Unknown error'}")

        elif event_type == "error":
            message = payload_error_message(payload) or "Unknown error"
            self.fail(f"OpenAI API error: {message}")

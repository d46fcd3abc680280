"""Google Gemini ``streamGenerateContent`` parser."""

from __future__ import annotations

import time
from typing import Any

from llm_gateway.models.conversation import Message
from llm_gateway.models.streaming import ToolCall
from llm_gateway.streaming.base import StreamParser, payload_error_message, text_messages
from llm_gateway.streaming.registry import parser_registry


@parser_registry.register
class GoogleStreamParser(StreamParser):
    """Data-only frames, each a partial ``GenerateContentResponse``.

    Frames carry no event name; the structure decides: an ``error`` object,
    or ``candidates[0].content.parts`` holding thought text, a
    ``functionCall`` or plain text.
    """

    provider_id = "google"
    display_name = "Google"

    def build_url(self, base_url: str, model: str) -> str:
        return base_url.replace(":generateContent", ":streamGenerateContent")

    def extra_params(self) -> dict[str, str]:
        return {"alt": "sse"}

    def build_request_body(
        self, model: str, messages: list[Message], system_prompt: str = ""
    ) -> dict[str, Any]:
        contents: list[dict[str, Any]] = []
        # Sent as a leading user turn, matching how the app replays history
        if system_prompt.strip():
            contents.append({"role": "user", "parts": [{"text": system_prompt}]})
        for message in text_messages(messages):
            role = "model" if message.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": message.text}]})
        return {"contents": contents}

    def _apply_part(self, part: dict[str, Any]) -> None:
        text = part.get("text")
        function_call = part.get("functionCall")

        if part.get("thought") is True and text is not None:
            self.emit_thinking(text)
        elif isinstance(function_call, dict):
            name = function_call.get("name")
            args = function_call.get("args")
            if name is not None and isinstance(args, dict):
                self.detect_tool_call(
                    ToolCall(
                        id=f"google_{int(time.time() * 1000)}",
                        tool_id=name,
                        parameters=args,
                        provider=self.provider_id,
                        thought_signature=part.get("thoughtSignature"),
                    )
                )
        elif text is not None:
            self.emit_text(text)

    def on_frame(self, event: str | None, payload: dict[str, Any]) -> None:
        if "error" in payload:
            message = payload_error_message(payload) or "Unknown Google API streaming error"
            self.fail(f"Google API streaming error: {message}")
            return

        candidates = payload.get("candidates") or []
        if not candidates:
            return
        candidate = candidates[0]

        finish_reason = candidate.get("finishReason")
        if finish_reason is not None and finish_reason != "STOP":
            self.fail(f"Google API streaming blocked due to: {finish_reason}")
            return

        for part in (candidate.get("content") or {}).get("parts") or []:
            self._apply_part(part)
            if self.tool_call is not None:
                return

"""Conversation models for JSON persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Attachment(BaseModel):
    """A file attached to a message. Only its name and type reach a title prompt."""

    file_name: str
    mime_type: str
    local_file_path: str | None = None


class Message(BaseModel):
    """A message in a conversation.

    Messages can be of different roles:
    - user: User input
    - assistant: LLM response
    - system: System message
    - tool_call: A tool invocation request
    - tool_response: The result of a tool invocation
    """

    role: Literal["user", "assistant", "system", "tool_call", "tool_response"]
    text: str
    attachments: list[Attachment] = Field(default_factory=list)
    model: str | None = None
    sent_at: datetime | None = None


class Conversation(BaseModel):
    """Full conversation format for JSON files."""

    id: str
    title: str = ""
    messages: list[Message] = Field(default_factory=list)
    system_prompt: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def add_message(self, message: Message) -> None:
        """Append a message and bump updated_at."""
        self.messages.append(message)
        self.updated_at = datetime.utcnow()

    @property
    def assistant_message_count(self) -> int:
        """Number of model replies in the conversation."""
        return sum(1 for m in self.messages if m.role == "assistant")

"""Normalized streaming events and results shared by every provider adapter."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ThoughtStatus(str, Enum):
    """Thinking state reported alongside streamed output."""

    NONE = "none"  # Model did not think
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class ToolCall(BaseModel):
    """A tool call emitted by a model mid-stream."""

    model_config = ConfigDict(frozen=True)

    id: str
    tool_id: str  # Function / tool name
    parameters: dict[str, Any] = Field(default_factory=dict)
    provider: str
    thought_signature: str | None = None  # Required by Gemini 3+ when replaying the call


# ============================================================================
# Terminal results
# ============================================================================


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextComplete(_Result):
    """Text response completed successfully."""

    kind: Literal["text"] = "text"
    full_text: str
    thoughts: str | None = None
    thinking_duration_seconds: float | None = None
    thought_status: ThoughtStatus = ThoughtStatus.NONE


class ToolCallDetected(_Result):
    """The model asked for a tool; the turn ends here."""

    kind: Literal["tool_call"] = "tool_call"
    tool_call: ToolCall
    preceding_text: str = ""
    thoughts: str | None = None
    thinking_duration_seconds: float | None = None
    thought_status: ThoughtStatus = ThoughtStatus.NONE


class StreamError(_Result):
    """The call failed."""

    kind: Literal["error"] = "error"
    message: str


ProviderStreamingResult = Annotated[
    TextComplete | ToolCallDetected | StreamError, Field(discriminator="kind")
]


class ApiSuccess(_Result):
    """Non-streaming call succeeded."""

    kind: Literal["success"] = "success"
    message: str


class ApiError(_Result):
    """Non-streaming call failed."""

    kind: Literal["error"] = "error"
    message: str


ApiResponse = Annotated[ApiSuccess | ApiError, Field(discriminator="kind")]


# ============================================================================
# Incremental events
# ============================================================================


class TextDelta(BaseModel):
    """A chunk of response text."""

    text: str


class ThinkingDelta(BaseModel):
    """A chunk of thinking text, or a status change with empty text."""

    text: str
    status: ThoughtStatus = ThoughtStatus.IN_PROGRESS


class StreamSucceeded(BaseModel):
    """Terminal event: the stream produced text or a tool call."""

    result: TextComplete | ToolCallDetected


class StreamFailed(BaseModel):
    """Terminal event: the stream failed."""

    message: str


StreamEvent = TextDelta | ThinkingDelta | StreamSucceeded | StreamFailed


def get_event_type(event: StreamEvent) -> str:
    """Get the event type string for an event."""
    if isinstance(event, TextDelta):
        return "text"
    if isinstance(event, ThinkingDelta):
        return "thinking"
    if isinstance(event, StreamSucceeded):
        return "complete"
    if isinstance(event, StreamFailed):
        return "error"
    msg = f"Unknown event type: {type(event)}"
    raise ValueError(msg)


def is_terminal(event: StreamEvent) -> bool:
    """True for the single event that ends a stream."""
    return isinstance(event, (StreamSucceeded, StreamFailed))

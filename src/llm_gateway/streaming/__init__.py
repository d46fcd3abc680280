"""Per-provider stream parsers behind one event/result contract."""

from llm_gateway.streaming.anthropic import AnthropicStreamParser
from llm_gateway.streaming.base import EventHandler, SSEFrame, StreamParser, iter_sse_frames
from llm_gateway.streaming.cohere import CohereStreamParser
from llm_gateway.streaming.google import GoogleStreamParser
from llm_gateway.streaming.openai import OpenAIStreamParser
from llm_gateway.streaming.openai_compatible import (
    LLMStatsStreamParser,
    OpenAICompatibleStreamParser,
    OpenRouterStreamParser,
)
from llm_gateway.streaming.poe import PoeStreamParser
from llm_gateway.streaming.registry import ParserRegistry, parser_registry

__all__ = [
    "AnthropicStreamParser",
    "CohereStreamParser",
    "EventHandler",
    "GoogleStreamParser",
    "LLMStatsStreamParser",
    "OpenAICompatibleStreamParser",
    "OpenAIStreamParser",
    "OpenRouterStreamParser",
    "ParserRegistry",
    "PoeStreamParser",
    "SSEFrame",
    "StreamParser",
    "iter_sse_frames",
    "parser_registry",
]

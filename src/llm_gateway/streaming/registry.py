"""Registry of stream parsers by provider id."""

from __future__ import annotations

from typing import TYPE_CHECKING

from llm_gateway.logging import get_logger

if TYPE_CHECKING:
    from llm_gateway.streaming.base import StreamParser

logger = get_logger(__name__)


class ParserRegistry:
    """Maps provider ids to parser classes.

    Parsers hold per-call state, so ``create`` returns a fresh instance
    every time.
    """

    def __init__(self) -> None:
        """Initialize the registry."""
        self._parser_classes: dict[str, type[StreamParser]] = {}

    def register(self, parser_class: type[StreamParser]) -> type[StreamParser]:
        """Register a parser class.

        Can be used as a decorator:
            @parser_registry.register
            class AnthropicStreamParser(StreamParser):
                ...

        Args:
            parser_class: The parser class to register.

        Returns:
            The parser class (for decorator use).
        """
        provider_id = parser_class.provider_id
        self._parser_classes[provider_id] = parser_class
        logger.debug("Registered stream parser", provider_id=provider_id)
        return parser_class

    def get_class(self, provider_id: str) -> type[StreamParser] | None:
        """Parser class for a provider, or None if unsupported."""
        return self._parser_classes.get(provider_id)

    def create(self, provider_id: str) -> StreamParser | None:
        """New parser instance for one call, or None if unsupported."""
        parser_class = self._parser_classes.get(provider_id)
        if parser_class is None:
            return None
        return parser_class()

    def display_name(self, provider_id: str) -> str:
        """Human-readable provider name, falling back to the id."""
        parser_class = self._parser_classes.get(provider_id)
        return parser_class.display_name if parser_class else provider_id

    def get_provider_ids(self) -> list[str]:
        """All provider ids with a registered parser."""
        return list(self._parser_classes.keys())


# Global registry instance
parser_registry = ParserRegistry()

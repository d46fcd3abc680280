"""Shared test fixtures for llm-gateway."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import pytest
import structlog

if TYPE_CHECKING:
    from llm_gateway.catalog import CatalogStore
    from llm_gateway.models import Provider, StreamEvent
    from llm_gateway.settings import Settings
    from llm_gateway.storage import ConversationStorage

CATALOG_URL = "https://catalog.test/models.json"

SAMPLE_CATALOG: list[dict[str, Any]] = [
    {
        "provider": "openai",
        "models": [
            {
                "name": "gpt-5-nano",
                "thinking": {
                    "discrete": {"options": ["minimal", "low", "medium", "high"], "default": "low"}
                },
            },
            {"name": "gpt-4.1", "temperature": {"min": 0, "max": 2, "default": 1}},
        ],
    },
    {
        "provider": "poe",
        "models": [
            {"name": "GPT-OSS-120B-T", "points": 250},
            {"name": "Claude-Opus-4.1", "1k_input_points": 50, "1k_output_points": 250},
        ],
    },
    {
        "provider": "anthropic",
        "models": [
            {
                "name": "claude-sonnet-4-5",
                "thinking": {
                    "continuous": {
                        "min": 1024,
                        "max": 64000,
                        "default": 8192,
                        "supports_off": True,
                    }
                },
            }
        ],
    },
    {"provider": "cohere", "models": []},
]


class EventRecorder:
    """Stream event handler that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[StreamEvent] = []

    async def __call__(self, event: StreamEvent) -> None:
        self.events.append(event)

    @property
    def terminal(self) -> list[StreamEvent]:
        from llm_gateway.models.streaming import is_terminal

        return [e for e in self.events if is_terminal(e)]

    @property
    def text(self) -> str:
        from llm_gateway.models import TextDelta

        return "".join(e.text for e in self.events if isinstance(e, TextDelta))


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo any logging configuration a test (or the app it starts) applied."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root.handlers[:] = handlers


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create settings configured for testing."""
    from llm_gateway.settings import Settings

    return Settings(
        _env_file=None,
        catalog_url=CATALOG_URL,
        cache_dir=tmp_path / "cache",
        conversations_dir=tmp_path / "conversations",
        json_logs=False,
        openai_api_key="sk-openai-test",
        anthropic_api_key=None,
        google_api_key=None,
        poe_api_key=None,
        cohere_api_key=None,
        openrouter_api_key=None,
        llmstats_api_key=None,
    )


@pytest.fixture
def catalog_store(tmp_path: Path) -> CatalogStore:
    """Create a catalog store in a temporary directory."""
    from llm_gateway.catalog import CatalogStore

    return CatalogStore(tmp_path / "cache")


@pytest.fixture
def temp_storage(tmp_path: Path) -> ConversationStorage:
    """Create a temporary conversation storage directory."""
    from llm_gateway.storage import ConversationStorage

    return ConversationStorage(tmp_path / "conversations")


@pytest.fixture
def sample_catalog_json() -> str:
    """The sample catalog feed as a JSON string."""
    return json.dumps(SAMPLE_CATALOG)


@pytest.fixture
def recorder() -> EventRecorder:
    """A fresh stream event recorder."""
    return EventRecorder()


@pytest.fixture
def sse_lines() -> Callable[[str], AsyncIterator[str]]:
    """Turn a raw SSE body into an async line iterator."""

    def make(body: str) -> AsyncIterator[str]:
        async def lines() -> AsyncIterator[str]:
            for line in body.split("\n"):
                yield line

        return lines()

    return make


@pytest.fixture
def default_providers() -> list[Provider]:
    """Every provider descriptor with its built-in default models."""
    from llm_gateway.catalog import DEFAULT_MODELS, PROVIDER_DESCRIPTORS
    from llm_gateway.models import PROVIDER_IDS

    return [
        PROVIDER_DESCRIPTORS[pid].model_copy(update={"models": list(DEFAULT_MODELS[pid])})
        for pid in PROVIDER_IDS
    ]


def sse_response(body: str, status_code: int = 200) -> httpx.Response:
    """An event-stream response for a MockTransport handler."""
    return httpx.Response(
        status_code,
        content=body.encode("utf-8"),
        headers={"content-type": "text/event-stream"},
    )


@pytest.fixture
def make_sse_response() -> Callable[..., httpx.Response]:
    """Factory for event-stream responses."""
    return sse_response


@pytest.fixture
def openai_text_stream() -> Callable[[str], str]:
    """SSE body of an OpenAI Responses stream that answers with ``text``."""

    def make(text: str) -> str:
        delta = json.dumps({"type": "response.output_text.delta", "delta": text})
        completed = json.dumps({"type": "response.completed", "response": {"output": []}})
        return (
            "event: response.output_text.delta\n"
            f"data: {delta}\n"
            "\n"
            "event: response.completed\n"
            f"data: {completed}\n"
            "\n"
        )

    return make


@pytest.fixture
def cache_snapshot(
    catalog_store: CatalogStore,
) -> Callable[[], tuple[bytes | None, bytes | None]]:
    """Raw bytes of the (catalog, metadata) cache files, None for a missing file."""

    def snapshot() -> tuple[bytes | None, bytes | None]:
        catalog_file, metadata_file = catalog_store.catalog_file, catalog_store.metadata_file
        return (
            catalog_file.read_bytes() if catalog_file.exists() else None,
            metadata_file.read_bytes() if metadata_file.exists() else None,
        )

    return snapshot

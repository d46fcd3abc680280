"""Tests for the FastAPI server."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

import httpx
import pytest
from fastapi.testclient import TestClient

from llm_gateway.models import Conversation, Message

if TYPE_CHECKING:
    from llm_gateway.settings import Settings


class FakeUpstream:
    """Routes outgoing calls: the catalog feed and the OpenAI API."""

    def __init__(self, catalog_json: str, title_stream: str) -> None:
        self.catalog_json = catalog_json
        self.catalog_status = 200
        self.title_stream = title_stream
        self.title_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "catalog.test":
            return httpx.Response(self.catalog_status, text=self.catalog_json)
        if request.url.host == "api.openai.com":
            self.title_calls += 1
            return httpx.Response(
                200,
                content=self.title_stream.encode(),
                headers={"content-type": "text/event-stream"},
            )
        return httpx.Response(404)


@pytest.fixture
def upstream(sample_catalog_json: str, openai_text_stream: Callable[[str], str]) -> FakeUpstream:
    return FakeUpstream(sample_catalog_json, openai_text_stream("Paris weekend"))


@pytest.fixture
def test_app(test_settings: Settings, upstream: FakeUpstream) -> Iterator[TestClient]:
    """Create a test client running the app lifespan."""
    from llm_gateway.server import create_app

    app = create_app(test_settings, transport=httpx.MockTransport(upstream))
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


PARIS_CHAT = Conversation(
    id="conv-http",
    messages=[
        Message(role="user", text="Weekend in Paris?"),
        Message(role="assistant", text="Sure."),
    ],
)


def _store_conversation(settings: Settings, conversation: Conversation) -> None:
    settings.conversations_dir.mkdir(parents=True, exist_ok=True)
    path = settings.conversations_dir / f"{conversation.id}.json"
    path.write_text(conversation.model_dump_json(), encoding="utf-8")


class TestHealthEndpoint:
    """Tests for the health endpoint."""

    def test_health_check(self, test_app: TestClient) -> None:
        response = test_app.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"
        assert "cache_valid" in data


class TestCatalogEndpoints:
    """Tests for provider and catalog endpoints."""

    def test_list_providers(self, test_app: TestClient) -> None:
        response = test_app.get("/providers")

        assert response.status_code == 200
        providers = response.json()
        assert [p["provider"] for p in providers] == [
            "openai",
            "anthropic",
            "google",
            "poe",
            "cohere",
            "openrouter",
            "llmstats",
        ]
        google = providers[2]
        assert google["request"]["params"] == {"key": "{GOOGLE_API_KEY_HERE}"}

    def test_refresh_then_models(self, test_app: TestClient) -> None:
        response = test_app.post("/catalog/refresh")

        assert response.status_code == 200
        assert response.json()["status"] == "refreshed"
        assert response.json()["provider_count"] == 7

        models = test_app.get("/providers/openai/models").json()
        assert [m["name"] for m in models] == ["gpt-5-nano", "gpt-4.1"]
        assert models[0]["thinking_config"]["kind"] == "discrete"

        poe = test_app.get("/providers/poe/models").json()
        assert poe[0]["kind"] == "complex"
        assert poe[0]["pricing"]["points"] == 250

    def test_unknown_provider(self, test_app: TestClient) -> None:
        response = test_app.get("/providers/mistral/models")

        assert response.status_code == 404

    def test_refresh_failure(self, test_app: TestClient, upstream: FakeUpstream) -> None:
        upstream.catalog_status = 500

        response = test_app.post("/catalog/refresh")

        assert response.status_code == 502
        assert "HTTP 500" in response.json()["detail"]


class TestTitleEndpoint:
    """Tests for title generation over HTTP."""

    def test_generate_and_save(self, test_app: TestClient, test_settings: Settings) -> None:
        _store_conversation(test_settings, PARIS_CHAT)

        response = test_app.post("/conversations/conv-http/title", json={})

        assert response.status_code == 200
        assert response.json() == {
            "conversation_id": "conv-http",
            "title": "Paris weekend",
            "saved": True,
            "generated": True,
        }
        stored = Conversation.model_validate_json(
            (test_settings.conversations_dir / "conv-http.json").read_text(encoding="utf-8")
        )
        assert stored.title == "Paris weekend"

    def test_default_title_not_saved(self, test_app: TestClient, test_settings: Settings) -> None:
        _store_conversation(test_settings, Conversation(id="empty"))

        response = test_app.post("/conversations/empty/title", json={"save": True})

        assert response.status_code == 200
        assert response.json()["title"] == test_settings.default_title
        assert response.json()["saved"] is False

    def test_missing_conversation(self, test_app: TestClient) -> None:
        response = test_app.post("/conversations/nope/title", json={})

        assert response.status_code == 404

    def test_unreadable_conversation_gets_default(
        self, test_app: TestClient, test_settings: Settings
    ) -> None:
        test_settings.conversations_dir.mkdir(parents=True, exist_ok=True)
        (test_settings.conversations_dir / "broken.json").write_text("{not json", encoding="utf-8")

        response = test_app.post("/conversations/broken/title", json={"save": True})

        assert response.status_code == 200
        assert response.json() == {
            "conversation_id": "broken",
            "title": test_settings.default_title,
            "saved": False,
            "generated": False,
        }

    def test_save_failure_still_answers(
        self, test_app: TestClient, test_settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from llm_gateway.errors import StorageError

        _store_conversation(test_settings, PARIS_CHAT)

        async def read_only(conv_id: str, title: str) -> None:
            raise StorageError("read-only file system")

        monkeypatch.setattr(test_app.app.state.storage, "update_title", read_only)

        response = test_app.post("/conversations/conv-http/title", json={})

        assert response.status_code == 200
        assert response.json()["title"] == "Paris weekend"
        assert response.json()["saved"] is False

    @pytest.mark.parametrize(("replies", "generated"), [(1, True), (2, False), (3, True)])
    def test_only_if_due(
        self,
        test_app: TestClient,
        test_settings: Settings,
        upstream: FakeUpstream,
        replies: int,
        generated: bool,
    ) -> None:
        """Test that only_if_due titles after the first and third replies only."""
        conversation = Conversation(id="due", title="Old title")
        for _ in range(replies):
            conversation.add_message(Message(role="user", text="q"))
            conversation.add_message(Message(role="assistant", text="a"))
        _store_conversation(test_settings, conversation)

        response = test_app.post("/conversations/due/title", json={"only_if_due": True})

        assert response.json()["generated"] is generated
        assert response.json()["title"] == ("Paris weekend" if generated else "Old title")
        assert upstream.title_calls == (1 if generated else 0)


class TestTitleSettings:
    """Tests for title switches read from settings."""

    @pytest.fixture
    def disabled_app(self, test_settings: Settings, upstream: FakeUpstream) -> Iterator[TestClient]:
        from llm_gateway.server import create_app

        disabled = test_settings.model_copy(update={"title_enabled": False})
        app = create_app(disabled, transport=httpx.MockTransport(upstream))
        with TestClient(app, raise_server_exceptions=False) as client:
            yield client

    def test_disabled_titles_are_not_generated(
        self, disabled_app: TestClient, test_settings: Settings, upstream: FakeUpstream
    ) -> None:
        _store_conversation(test_settings, PARIS_CHAT)

        response = disabled_app.post("/conversations/conv-http/title", json={})

        assert response.json()["generated"] is False
        assert response.json()["title"] == test_settings.default_title
        assert upstream.title_calls == 0

    def test_title_providers(self, test_app: TestClient) -> None:
        response = test_app.get("/titles/providers")

        assert response.status_code == 200
        assert response.json() == {"enabled": True, "selected": "auto", "available": ["openai"]}

"""FastAPI server exposing the catalog and title generation."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from llm_gateway import __version__
from llm_gateway.catalog import ProviderCatalogManager
from llm_gateway.client import LLMClient
from llm_gateway.errors import StorageError
from llm_gateway.keys import KeyProvider
from llm_gateway.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from llm_gateway.models.catalog import PROVIDER_IDS
from llm_gateway.selector import titling_providers
from llm_gateway.settings import Settings, settings
from llm_gateway.storage import ConversationStorage
from llm_gateway.titles import TitleGenerator, TitleSettings, should_generate_title

if TYPE_CHECKING:
    import httpx

logger = get_logger(__name__)


# ============================================================================
# Request/Response Models
# ============================================================================


class HealthResponse(BaseModel):
    """Response body for health check."""

    status: str
    version: str
    cache_valid: bool
    cache_age_seconds: float | None = None


class CatalogRefreshResponse(BaseModel):
    """Response body for a forced catalog refresh."""

    status: str
    provider_count: int
    model_count: int


class TitleRequest(BaseModel):
    """Request body for title generation."""

    provider: str | None = None  # Preferred provider; None means automatic
    user: str | None = None
    save: bool = True  # Store the title on the conversation
    only_if_due: bool = False  # Skip unless right after the first (or third) reply


class TitleResponse(BaseModel):
    """Response body for title generation."""

    conversation_id: str
    title: str
    saved: bool
    generated: bool  # False when titles are disabled or not yet due


class TitleProvidersResponse(BaseModel):
    """Response body for the title provider picker."""

    enabled: bool
    selected: str  # "auto" or a provider id
    available: list[str]


# ============================================================================
# Routes
# ============================================================================

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Health check endpoint."""
    manager: ProviderCatalogManager = request.app.state.manager
    return HealthResponse(
        status="ok",
        version=__version__,
        cache_valid=await manager.is_cache_valid(),
        cache_age_seconds=await manager.cache_age_seconds(),
    )


@router.get("/providers")
async def list_providers(request: Request) -> list[dict[str, Any]]:
    """All providers with their current model lists."""
    manager: ProviderCatalogManager = request.app.state.manager
    providers = await manager.build_providers()
    return [provider.model_dump(mode="json") for provider in providers]


@router.get("/providers/{provider_id}/models")
async def list_provider_models(request: Request, provider_id: str) -> list[dict[str, Any]]:
    """Current model list for one provider."""
    if provider_id not in PROVIDER_IDS:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}")

    manager: ProviderCatalogManager = request.app.state.manager
    providers = await manager.build_providers()
    provider = next(p for p in providers if p.provider == provider_id)
    return [model.model_dump(mode="json") for model in provider.models]


@router.post("/catalog/refresh", response_model=CatalogRefreshResponse)
async def refresh_catalog(request: Request) -> CatalogRefreshResponse:
    """Fetch the remote catalog now, ignoring the TTL."""
    manager: ProviderCatalogManager = request.app.state.manager

    success, error = await manager.force_refresh()
    if not success:
        raise HTTPException(status_code=502, detail=f"Failed to refresh catalog: {error}")

    providers = await manager.build_providers()
    return CatalogRefreshResponse(
        status="refreshed",
        provider_count=len(providers),
        model_count=sum(len(p.models) for p in providers),
    )


@router.get("/titles/providers", response_model=TitleProvidersResponse)
async def title_providers(request: Request, user: str | None = None) -> TitleProvidersResponse:
    """Providers a user can pick for titles, given their configured keys."""
    keys: KeyProvider = request.app.state.keys
    title_settings: TitleSettings = request.app.state.title_settings
    active_keys = await keys.load_active_keys(user)
    return TitleProvidersResponse(
        enabled=title_settings.enabled,
        selected=title_settings.provider,
        available=titling_providers(set(active_keys)),
    )


@router.post("/conversations/{conv_id}/title", response_model=TitleResponse)
async def generate_title(request: Request, conv_id: str, body: TitleRequest) -> TitleResponse:
    """Generate a title for a stored conversation.

    Always answers with a title; failures produce the default title. Only
    a conversation with no file at all is a 404.
    """
    storage: ConversationStorage = request.app.state.storage
    titles: TitleGenerator = request.app.state.titles
    title_settings: TitleSettings = request.app.state.title_settings

    bind_request_context(conversation_id=conv_id, provider=body.provider)
    try:
        try:
            conversation = await storage.get(conv_id)
        except StorageError as e:
            logger.warning("Conversation unreadable, using default title", error=str(e))
            return TitleResponse(
                conversation_id=conv_id, title=titles.default_title, saved=False, generated=False
            )
        if conversation is None:
            raise HTTPException(status_code=404, detail="Conversation not found")

        due = title_settings.enabled and (
            not body.only_if_due or should_generate_title(conversation, title_settings)
        )
        if not due:
            return TitleResponse(
                conversation_id=conv_id,
                title=conversation.title or titles.default_title,
                saved=False,
                generated=False,
            )

        title = await titles.generate_title(
            body.user, conv_id, body.provider or title_settings.preferred_provider
        )

        saved = False
        if body.save and title != titles.default_title:
            try:
                await storage.update_title(conv_id, title)
                saved = True
                logger.info("Saved conversation title")
            except StorageError as e:
                logger.warning("Failed to save conversation title", error=str(e))
    finally:
        clear_request_context()

    return TitleResponse(conversation_id=conv_id, title=title, saved=saved, generated=True)


# ============================================================================
# Application
# ============================================================================


def create_app(
    app_settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_settings: Settings to use; defaults to the global settings.
        transport: Optional httpx transport for all outgoing calls, used by tests.

    Returns:
        The configured application.
    """
    config = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        configure_logging(json_output=config.json_logs, log_level=config.log_level)

        logger.info("Starting LLM Gateway...")

        storage = ConversationStorage(config.conversations_dir)
        await storage.ensure_dir()

        manager = ProviderCatalogManager.from_settings(config, transport=transport)
        keys = KeyProvider(config)
        client = LLMClient(transport=transport, timeout=config.stream_timeout)

        app.state.storage = storage
        app.state.manager = manager
        app.state.keys = keys
        app.state.client = client
        app.state.title_settings = TitleSettings.from_settings(config)
        app.state.titles = TitleGenerator(
            load_conversation=storage.get,
            load_providers=manager.build_providers,
            load_active_keys=keys.load_active_keys,
            client=client,
            default_title=config.default_title,
        )

        # Catalog refresh must not delay startup
        refresh_task = asyncio.create_task(manager.refresh_if_needed())

        logger.info(
            "LLM Gateway started",
            host=config.host,
            port=config.port,
            cache_dir=str(config.cache_dir),
        )

        yield

        logger.info("Shutting down LLM Gateway...")
        if not refresh_task.done():
            refresh_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await refresh_task
        logger.info("LLM Gateway shutdown complete")

    app = FastAPI(
        title="LLM Gateway",
        description="Provider catalog, streaming normalization and title generation for LLM APIs",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()

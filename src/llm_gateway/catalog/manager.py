"""TTL-driven refresh of the model catalog and assembly of provider descriptors."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from llm_gateway.catalog.convert import remote_models_to_models
from llm_gateway.catalog.defaults import DEFAULT_MODELS, PROVIDER_DESCRIPTORS
from llm_gateway.catalog.fetcher import RemoteCatalogFetcher
from llm_gateway.catalog.store import CatalogStore
from llm_gateway.errors import CacheError, CatalogFetchError, CatalogSchemaError
from llm_gateway.logging import get_logger
from llm_gateway.models.catalog import PROVIDER_IDS, Model, Provider

if TYPE_CHECKING:
    import httpx

    from llm_gateway.settings import Settings

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class ProviderCatalogManager:
    """Keeps the cached catalog fresh and serves merged model lists.

    Reads never touch the network: they combine whatever is cached with the
    compiled-in defaults. Refreshes are explicit (startup or user-forced)
    and never leave the cache in a mixed state.
    """

    def __init__(
        self,
        store: CatalogStore,
        fetcher: RemoteCatalogFetcher,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        background_timeout: float = 10.0,
        force_timeout: float = 15.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Cache file store.
            fetcher: Remote catalog fetcher.
            ttl_seconds: Cache validity window.
            background_timeout: Fetch timeout for TTL-driven refreshes.
            force_timeout: Fetch timeout for user-forced refreshes.
            clock: Returns the current time in epoch seconds.
        """
        self.store = store
        self.fetcher = fetcher
        self.ttl_seconds = ttl_seconds
        self.background_timeout = background_timeout
        self.force_timeout = force_timeout
        self._clock = clock
        self._refresh_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ProviderCatalogManager:
        """Build a manager wired to the configured cache dir and feed URL."""
        return cls(
            store=CatalogStore(settings.cache_dir),
            fetcher=RemoteCatalogFetcher(settings.catalog_url, transport=transport),
            ttl_seconds=settings.catalog_ttl_seconds,
            background_timeout=settings.background_fetch_timeout,
            force_timeout=settings.force_fetch_timeout,
        )

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def cache_age_seconds(self) -> float | None:
        """Seconds since the last successful fetch, or None if never fetched."""
        metadata = await self.store.load_metadata()
        if metadata is None:
            return None
        return (self._now_ms() - metadata.last_fetch_timestamp) / 1000

    async def is_cache_valid(self) -> bool:
        """True if the last fetch is younger than the TTL."""
        age = await self.cache_age_seconds()
        return age is not None and age < self.ttl_seconds

    async def _fetch_and_store(self, timeout: float) -> None:
        catalog = await self.fetcher.fetch(timeout)
        await self.store.save(catalog, self._now_ms())

    async def refresh_if_needed(self) -> bool:
        """Fetch the catalog if the cache is missing or expired.

        Concurrent callers share one fetch: the TTL is checked again once
        the lock is held.

        Returns:
            True if a fresh catalog was fetched and stored, False otherwise.
        """
        if await self.is_cache_valid():
            logger.debug("Catalog cache is still valid, skipping refresh")
            return False

        async with self._refresh_lock:
            if await self.is_cache_valid():
                logger.debug("Catalog refreshed by a concurrent caller")
                return False

            logger.info("Catalog cache expired or missing, fetching")
            try:
                await self._fetch_and_store(self.background_timeout)
            except (CatalogFetchError, CacheError) as e:
                logger.warning(
                    "Catalog refresh failed, using existing cache or defaults",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return False

        logger.info("Catalog cache updated")
        return True

    async def force_refresh(self) -> tuple[bool, str | None]:
        """Fetch the catalog regardless of the TTL.

        Returns:
            (True, None) on success, or (False, message) on failure. Stored
            files are untouched on failure.
        """
        logger.info("Force refreshing catalog")
        async with self._refresh_lock:
            try:
                await self._fetch_and_store(self.force_timeout)
            except CatalogSchemaError as e:
                logger.error("Catalog payload rejected", error=str(e))
                return False, str(e)
            except (CatalogFetchError, CacheError) as e:
                logger.error(
                    "Catalog force refresh failed", error=str(e), error_type=type(e).__name__
                )
                return False, str(e)

        logger.info("Catalog force refreshed")
        return True, None

    async def get_models_for_provider(
        self, provider_id: str, fallback_defaults: list[Model]
    ) -> list[Model]:
        """Cached models for a provider, ignoring the TTL.

        Args:
            provider_id: Provider identifier.
            fallback_defaults: Returned unchanged when the cache has nothing.

        Returns:
            The converted cached models, or the fallback list.
        """
        catalog = await self.store.load_catalog()
        entry = None
        if catalog is not None:
            entry = next((item for item in catalog if item.provider == provider_id), None)

        if entry is not None and entry.models:
            logger.debug("Using cached models", provider=provider_id, count=len(entry.models))
            return remote_models_to_models(entry.models)

        logger.debug("Using default models", provider=provider_id, count=len(fallback_defaults))
        return fallback_defaults

    async def build_providers(self) -> list[Provider]:
        """One Provider per supported id, with its current model list."""
        providers = []
        for provider_id in PROVIDER_IDS:
            models = await self.get_models_for_provider(provider_id, DEFAULT_MODELS[provider_id])
            descriptor = PROVIDER_DESCRIPTORS[provider_id]
            providers.append(descriptor.model_copy(update={"models": list(models)}))
        return providers

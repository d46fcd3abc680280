"""Remote model catalog: fetch, cache, convert and serve."""

from llm_gateway.catalog.defaults import DEFAULT_MODELS, PROVIDER_DESCRIPTORS
from llm_gateway.catalog.fetcher import RemoteCatalogFetcher
from llm_gateway.catalog.manager import ProviderCatalogManager
from llm_gateway.catalog.store import CatalogStore

__all__ = [
    "DEFAULT_MODELS",
    "PROVIDER_DESCRIPTORS",
    "CatalogStore",
    "ProviderCatalogManager",
    "RemoteCatalogFetcher",
]

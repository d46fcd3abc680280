"""Client for the remote models.json catalog feed."""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from llm_gateway.errors import CatalogSchemaError, CatalogTransportError
from llm_gateway.logging import get_logger
from llm_gateway.models.remote import RemoteCatalog, RemoteProviderModels

logger = get_logger(__name__)

HTML_ERROR = "Received HTML instead of JSON. Check URL and network access."


def looks_like_html(body: str) -> bool:
    """True if a body is an HTML page (captive portal, error page, wrong URL)."""
    trimmed = body.strip()
    return trimmed.startswith("<") or "<!DOCTYPE" in trimmed or "<html" in trimmed


class RemoteCatalogFetcher:
    """Fetches and validates the authoritative provider/model list."""

    def __init__(self, url: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize the fetcher.

        Args:
            url: Address of the catalog feed.
            transport: Optional httpx transport, used by tests.
        """
        self.url = url
        self._transport = transport

    async def fetch(self, timeout: float) -> list[RemoteProviderModels]:
        """Fetch the catalog with a single GET.

        Args:
            timeout: Request timeout in seconds.

        Returns:
            Provider entries parsed from the feed.

        Raises:
            CatalogTransportError: Timeout, connection failure or non-2xx status.
            CatalogSchemaError: The body is HTML or not a valid catalog.
        """
        logger.info("Fetching remote catalog", url=self.url, timeout=timeout)

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                body = response.text
        except httpx.HTTPStatusError as e:
            raise CatalogTransportError(f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise CatalogTransportError(f"Request failed: {e}") from e

        if looks_like_html(body):
            raise CatalogSchemaError(HTML_ERROR)

        try:
            catalog = RemoteCatalog.validate_json(body)
        except ValidationError as e:
            raise CatalogSchemaError(f"JSON parsing failed: {e}") from e

        logger.info(
            "Received remote catalog",
            provider_count=len(catalog),
            model_count=sum(len(entry.models) for entry in catalog),
        )
        return catalog

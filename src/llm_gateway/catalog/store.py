"""JSON file cache for the remote model catalog."""

from __future__ import annotations

import json
import os
from pathlib import Path

import aiofiles
import aiofiles.os
from pydantic import ValidationError

from llm_gateway.errors import CacheError
from llm_gateway.logging import get_logger
from llm_gateway.models.catalog import CacheMetadata
from llm_gateway.models.remote import RemoteCatalog, RemoteProviderModels

logger = get_logger(__name__)

CATALOG_FILE = "models_cache.json"
METADATA_FILE = "models_cache_metadata.json"


class CatalogStore:
    """Two-file JSON cache: the catalog snapshot and its fetch metadata.

    The catalog is always made durable before the metadata that vouches
    for it, so a reader never sees a fresh timestamp next to an old or
    half-written catalog.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the store.

        Args:
            cache_dir: Directory holding the two cache files.
        """
        self.cache_dir = Path(cache_dir).expanduser()
        self.catalog_file = self.cache_dir / CATALOG_FILE
        self.metadata_file = self.cache_dir / METADATA_FILE

    async def ensure_dir(self) -> None:
        """Ensure the cache directory exists."""
        if not self.cache_dir.exists():
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    async def _read_text(self, path: Path) -> str | None:
        if not path.exists():
            logger.debug("Cache file does not exist", path=str(path))
            return None
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                return await f.read()
        except OSError as e:
            logger.warning("Failed to read cache file", path=str(path), error=str(e))
            return None

    async def load_catalog(self) -> list[RemoteProviderModels] | None:
        """Load the cached catalog.

        Returns:
            The cached provider entries, or None if the file is absent or corrupt.
        """
        content = await self._read_text(self.catalog_file)
        if content is None:
            return None

        try:
            catalog = RemoteCatalog.validate_json(content)
        except ValidationError as e:
            logger.warning("Corrupt catalog cache, ignoring", error=str(e))
            return None

        logger.debug("Loaded catalog from cache", provider_count=len(catalog))
        return catalog

    async def load_metadata(self) -> CacheMetadata | None:
        """Load the cache metadata.

        Returns:
            CacheMetadata, or None if the file is absent or corrupt.
        """
        content = await self._read_text(self.metadata_file)
        if content is None:
            return None

        try:
            return CacheMetadata.model_validate_json(content)
        except ValidationError as e:
            logger.warning("Corrupt cache metadata, ignoring", error=str(e))
            return None

    async def _read_bytes(self, path: Path) -> bytes | None:
        if not path.exists():
            return None
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def _write_atomic(self, path: Path, content: bytes) -> None:
        temp_path = path.with_suffix(".json.tmp")
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(content)
                await f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            await aiofiles.os.rename(temp_path, path)
        except Exception as e:
            # Clean up temp file on error
            if temp_path.exists():
                await aiofiles.os.remove(temp_path)
            msg = f"Failed to write {path.name}: {e}"
            raise CacheError(msg) from e

    async def save(self, catalog: list[RemoteProviderModels], fetched_at_ms: int) -> None:
        """Persist a fetched catalog, then its metadata.

        Args:
            catalog: Provider entries as received from the feed.
            fetched_at_ms: Fetch time in epoch milliseconds.

        Raises:
            CacheError: If either file cannot be written. Both existing files
                are left byte-identical: a failed metadata write puts the
                previous catalog back.
        """
        await self.ensure_dir()

        catalog_json = RemoteCatalog.dump_json(
            catalog, by_alias=True, exclude_none=True, indent=2
        )
        metadata = CacheMetadata(last_fetch_timestamp=fetched_at_ms)
        metadata_json = json.dumps(metadata.model_dump(by_alias=True), indent=2).encode("utf-8")

        previous_catalog = await self._read_bytes(self.catalog_file)
        await self._write_atomic(self.catalog_file, catalog_json)
        try:
            await self._write_atomic(self.metadata_file, metadata_json)
        except CacheError:
            await self._restore_catalog(previous_catalog)
            raise

        logger.info(
            "Saved catalog to cache",
            path=str(self.catalog_file),
            provider_count=len(catalog),
            fetched_at_ms=fetched_at_ms,
        )

    async def _restore_catalog(self, previous: bytes | None) -> None:
        try:
            if previous is None:
                await aiofiles.os.remove(self.catalog_file)
            else:
                await self._write_atomic(self.catalog_file, previous)
        except (OSError, CacheError) as e:
            logger.error("Failed to restore previous catalog", error=str(e))

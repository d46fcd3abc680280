"""Tests for the catalog cache files."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import aiofiles.os
import pytest

from llm_gateway.models import RemoteCatalog

if TYPE_CHECKING:
    from collections.abc import Callable

    from llm_gateway.catalog import CatalogStore

    Snapshot = Callable[[], tuple[bytes | None, bytes | None]]


class TestCatalogStore:
    """Tests for CatalogStore."""

    async def test_empty_store(
        self, catalog_store: CatalogStore, cache_snapshot: Snapshot
    ) -> None:
        """Test that a missing cache reads as None."""
        assert await catalog_store.load_catalog() is None
        assert await catalog_store.load_metadata() is None
        assert cache_snapshot() == (None, None)

    async def test_save_and_load(
        self, catalog_store: CatalogStore, sample_catalog_json: str
    ) -> None:
        """Test saving a catalog and reading it back."""
        catalog = RemoteCatalog.validate_json(sample_catalog_json)

        await catalog_store.save(catalog, 1_700_000_000_000)

        loaded = await catalog_store.load_catalog()
        assert loaded is not None
        assert [entry.provider for entry in loaded] == ["openai", "poe", "anthropic", "cohere"]
        assert loaded[1].models[1].input_points_per_1k == 50

        metadata = await catalog_store.load_metadata()
        assert metadata is not None
        assert metadata.last_fetch_timestamp == 1_700_000_000_000

    async def test_files_use_wire_names(
        self, catalog_store: CatalogStore, sample_catalog_json: str
    ) -> None:
        """Test that cached files keep the feed's field names."""
        await catalog_store.save(RemoteCatalog.validate_json(sample_catalog_json), 42)

        catalog_data = json.loads(catalog_store.catalog_file.read_text(encoding="utf-8"))
        metadata_data = json.loads(catalog_store.metadata_file.read_text(encoding="utf-8"))

        assert catalog_data[1]["models"][1]["1k_input_points"] == 50
        assert metadata_data == {"lastFetchTimestamp": 42, "version": "1"}

    async def test_corrupt_catalog_ignored(self, catalog_store: CatalogStore) -> None:
        """Test that an unparseable catalog reads as absent."""
        await catalog_store.ensure_dir()
        catalog_store.catalog_file.write_text("{oops", encoding="utf-8")
        catalog_store.metadata_file.write_text('{"nope": 1}', encoding="utf-8")

        assert await catalog_store.load_catalog() is None
        assert await catalog_store.load_metadata() is None

    async def test_failed_write_keeps_previous_files(
        self,
        catalog_store: CatalogStore,
        cache_snapshot: Snapshot,
        sample_catalog_json: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that a failed rename raises CacheError and leaves the old files alone."""
        from llm_gateway.errors import CacheError

        catalog = RemoteCatalog.validate_json(sample_catalog_json)
        await catalog_store.save(catalog, 1)
        before = cache_snapshot()

        async def failing_rename(src: object, dst: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(aiofiles.os, "rename", failing_rename)

        with pytest.raises(CacheError, match="disk full"):
            await catalog_store.save(catalog[:1], 2)

        assert cache_snapshot() == before
        assert list(catalog_store.cache_dir.glob("*.tmp")) == []

    @pytest.mark.parametrize("has_previous", [True, False])
    async def test_failed_metadata_write_restores_catalog(
        self,
        catalog_store: CatalogStore,
        cache_snapshot: Snapshot,
        sample_catalog_json: str,
        monkeypatch: pytest.MonkeyPatch,
        has_previous: bool,
    ) -> None:
        """Test that the new catalog is rolled back when its metadata cannot be written."""
        from llm_gateway.errors import CacheError

        catalog = RemoteCatalog.validate_json(sample_catalog_json)
        if has_previous:
            await catalog_store.save(catalog, 1)
        before = cache_snapshot()

        real_rename = aiofiles.os.rename

        async def rename_except_metadata(src: object, dst: object) -> None:
            if dst == catalog_store.metadata_file:
                raise OSError("disk full")
            await real_rename(src, dst)

        monkeypatch.setattr(aiofiles.os, "rename", rename_except_metadata)

        with pytest.raises(CacheError, match="disk full"):
            await catalog_store.save(catalog[:1], 2)

        assert cache_snapshot() == before
        assert list(catalog_store.cache_dir.glob("*.tmp")) == []

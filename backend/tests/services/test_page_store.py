"""
Tests for FilePageStore
"""
import json
import shutil
import tempfile
import time
from pathlib import Path

import pytest

from agents.model_client import fallback_title
from errors import InvalidPageIdError, PageNotFoundError
from services.page_store import FilePageStore, detect_page_type, validate_page_id


class TestFilePageStore:
    """Test suite for FilePageStore"""

    @pytest.fixture
    def temp_dir(self):
        temp = Path(tempfile.mkdtemp())
        yield temp
        if temp.exists():
            shutil.rmtree(temp)

    @pytest.fixture
    def store(self, temp_dir):
        templates = temp_dir / "templates"
        templates.mkdir()
        (templates / "h5.tsx").write_text("<h1>__PAGE_TITLE__</h1>", encoding="utf-8")
        return FilePageStore(temp_dir / "pages", templates)

    async def test_initialize_page_writes_files(self, store):
        source = await store.initialize_page("page-1", "h5", "Coffee")

        page_dir = store.page_dir("page-1")
        assert source == "<h1>Coffee</h1>"
        assert (page_dir / "app.tsx").read_text(encoding="utf-8") == source
        assert "PageComponent_page_1" in (page_dir / "index.html").read_text(encoding="utf-8")

        metadata = json.loads((page_dir / "page.json").read_text(encoding="utf-8"))
        assert metadata["id"] == "page-1"
        assert metadata["title"] == "Coffee"
        assert metadata["pageType"] == "h5"

    async def test_initialize_without_title_uses_default(self, store):
        await store.initialize_page("page-1", "admin")

        metadata = await store.read_metadata("page-1")
        assert metadata.title == "Admin Dashboard"

    @pytest.mark.parametrize("page_type", ["h5", "admin", "pc", "kiosk"])
    def test_default_title_matches_model_fallback(self, page_type):
        assert FilePageStore.default_title(page_type) == fallback_title("", page_type)

    async def test_component_source_round_trip(self, store):
        assert await store.read_component_source("page-1") is None

        await store.write_component_source("page-1", "const App = 1")

        assert await store.read_component_source("page-1") == "const App = 1"

    async def test_read_content_missing_page(self, store):
        with pytest.raises(PageNotFoundError):
            await store.read_content("nope")

    async def test_write_bumps_updated_at(self, store):
        await store.initialize_page("page-1", "h5", "T")
        before = await store.read_metadata("page-1")

        time.sleep(0.01)
        await store.write_component_source("page-1", "new")

        after = await store.read_metadata("page-1")
        assert after.updatedAt > before.updatedAt
        assert after.createdAt == before.createdAt

    async def test_corrupt_metadata_does_not_block_writes(self, store):
        await store.initialize_page("page-1", "h5", "T")
        (store.page_dir("page-1") / "page.json").write_text("{not json", encoding="utf-8")

        await store.write_content("page-1", "<html></html>")

        assert await store.read_content("page-1") == "<html></html>"

    async def test_list_pages_newest_first_with_filter(self, store):
        await store.initialize_page("old", "h5", "Old")
        time.sleep(0.01)
        await store.initialize_page("new", "admin", "New")

        assert [p.id for p in await store.list_pages()] == ["new", "old"]
        assert [p.id for p in await store.list_pages("all")] == ["new", "old"]
        assert [p.id for p in await store.list_pages("h5")] == ["old"]

    async def test_list_pages_detects_type_without_metadata(self, store):
        legacy = store.root / "legacy"
        legacy.mkdir()
        (legacy / "index.html").write_text("<Layout><Header/></Layout>", encoding="utf-8")

        pages = await store.list_pages()

        assert len(pages) == 1
        assert pages[0].id == "legacy"
        assert pages[0].title == "legacy"
        assert pages[0].pageType == "pc"

    async def test_list_pages_skips_unreadable_entries(self, store):
        (store.root / "empty").mkdir()
        (store.root / "stray.txt").write_text("x", encoding="utf-8")

        assert await store.list_pages() == []

    async def test_artifact(self, store):
        assert not store.has_artifact("page-1")

        store.page_dir("page-1").mkdir(parents=True)
        store.artifact_path("page-1").write_text("bundle", encoding="utf-8")

        assert store.has_artifact("page-1")
        assert store.artifact_path("page-1").name == "main.js"

    def test_invalid_page_ids_are_rejected(self, store):
        for page_id in ("../etc", "a/b", "", "x" * 65, "with space"):
            with pytest.raises(InvalidPageIdError):
                store.page_dir(page_id)


class TestHelpers:

    def test_validate_page_id_accepts_safe_ids(self):
        assert validate_page_id("abc_DEF-123") == "abc_DEF-123"

    @pytest.mark.parametrize("content,expected", [
        ('<meta name="viewport" content="width=device-width"> mobile', "h5"),
        ("<Sider>menu</Sider>", "admin"),
        ("<Layout><Header/></Layout>", "pc"),
        ("plain", "h5"),
    ])
    def test_detect_page_type(self, content, expected):
        assert detect_page_type(content) == expected

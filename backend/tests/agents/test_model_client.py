"""
Tests for the model clients and the ModelRouter

LangChain's FakeListChatModel stands in for real chat models.
"""
import shutil
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from agents.model_client import (
    LangChainModelClient,
    ModelRouter,
    TemplateModelClient,
    fallback_title,
)
from errors import ModelClientError


class TestLangChainModelClient:
    """Test suite for LangChainModelClient"""

    async def test_generate_content_extracts_code(self):
        llm = FakeListChatModel(responses=["```tsx\nexport default function App() {}\n```"])
        client = LangChainModelClient(llm)

        content = await client.generate_content("a login page", None, "h5")

        assert content == "export default function App() {}"

    async def test_generate_content_strips_think_blocks(self):
        llm = FakeListChatModel(responses=["<think>planning</think>const App = () => null"])
        client = LangChainModelClient(llm)

        assert await client.generate_content("page") == "const App = () => null"

    async def test_empty_content_raises(self):
        client = LangChainModelClient(FakeListChatModel(responses=["<think>only thoughts</think>"]))

        with pytest.raises(ModelClientError):
            await client.generate_content("page")

    async def test_generate_title_is_cleaned(self):
        client = LangChainModelClient(
            FakeListChatModel(responses=["unused"]),
            title_llm=FakeListChatModel(responses=['"Coffee Shop Landing"\nextra line']),
        )

        assert await client.generate_title("a coffee shop", "pc") == "Coffee Shop Landing"

    async def test_repair_uses_repair_model(self):
        client = LangChainModelClient(
            FakeListChatModel(responses=["content"]),
            repair_llm=FakeListChatModel(responses=["fixed code"]),
        )

        assert await client.repair_source("fix this") == "fixed code"


class TestTemplateModelClient:
    """Test suite for the deterministic fallback"""

    @pytest.fixture
    def templates_dir(self):
        temp = Path(tempfile.mkdtemp())
        (temp / "h5.tsx").write_text("<h1>__PAGE_TITLE__</h1>", encoding="utf-8")
        yield temp
        if temp.exists():
            shutil.rmtree(temp)

    async def test_new_page_uses_template_with_title(self, templates_dir):
        client = TemplateModelClient(templates_dir)

        assert await client.generate_content("Shop", None, "h5") == "<h1>Shop</h1>"

    async def test_long_prompt_title_is_shortened(self, templates_dir):
        client = TemplateModelClient(templates_dir)
        content = await client.generate_content("A very long description of a page", None, "h5")

        assert content == "<h1>A very long descript...</h1>"

    async def test_missing_template_uses_default(self, templates_dir):
        content = await TemplateModelClient(templates_dir).generate_content("Shop", None, "admin")

        assert "Shop" in content
        assert "export default App" in content

    async def test_modifies_existing_code_colors(self, templates_dir):
        code = '<div className="bg-blue-500 text-blue-700">x</div>'
        content = await TemplateModelClient(templates_dir).generate_content("change the color", code, "h5")

        assert content == '<div className="bg-red-500 text-red-700">x</div>'

    async def test_modifies_existing_code_title(self, templates_dir):
        code = '<h1 className="a">Old</h1><h1>Second</h1>'
        content = await TemplateModelClient(templates_dir).generate_content("new title", code, "h5")

        assert content == '<h1 className="a">new title</h1><h1>Second</h1>'

    async def test_cannot_repair(self, templates_dir):
        with pytest.raises(ModelClientError):
            await TemplateModelClient(templates_dir).repair_source("fix")


class TestFallbackTitle:

    @pytest.mark.parametrize("prompt,page_type,expected", [
        ("a login form", "h5", "User Login"),
        ("a login form", "admin", "Admin Login"),
        ("order list with filters", "admin", "Order Management"),
        ("something else", "h5", "Mobile Page"),
        ("something else", "admin", "Admin Dashboard"),
        ("something else", "pc", "Desktop Page"),
        ("something else", "kiosk", "New Page"),
    ])
    def test_keyword_titles(self, prompt, page_type, expected):
        assert fallback_title(prompt, page_type) == expected


class TestModelRouter:
    """Test suite for ModelRouter"""

    @pytest.fixture
    def fallback(self):
        fallback = AsyncMock()
        fallback.generate_content = AsyncMock(return_value="template content")
        return fallback

    def client(self, name="primary", **methods):
        client = AsyncMock()
        client.name = name
        for method, mock in methods.items():
            setattr(client, method, mock)
        return client

    async def test_content_from_primary(self, fallback):
        primary = self.client(generate_content=AsyncMock(return_value="ai content"))
        router = ModelRouter(primary, fallback)

        assert await router.generate_content("p", "ctx", "pc") == "ai content"
        fallback.generate_content.assert_not_called()

    async def test_content_falls_back_on_failure(self, fallback):
        primary = self.client(generate_content=AsyncMock(side_effect=ModelClientError("boom")))
        router = ModelRouter(primary, fallback)

        assert await router.generate_content("p", "ctx", "pc") == "template content"
        fallback.generate_content.assert_awaited_once_with("p", "ctx", "pc")

    async def test_content_falls_back_without_primary(self, fallback):
        router = ModelRouter(None, fallback)

        assert await router.generate_content("p") == "template content"

    async def test_content_failure_propagates_when_fallback_fails(self):
        fallback = AsyncMock()
        fallback.generate_content = AsyncMock(side_effect=ModelClientError("no template"))
        router = ModelRouter(None, fallback)

        with pytest.raises(ModelClientError):
            await router.generate_content("p")

    async def test_local_choice_uses_local_client(self, fallback):
        primary = self.client(generate_content=AsyncMock(return_value="primary"))
        local = self.client("local", generate_content=AsyncMock(return_value="local"))
        router = ModelRouter(primary, fallback, local=local)

        assert await router.generate_content("p", model_choice="local") == "local"
        assert await router.generate_content("p") == "primary"

    async def test_local_choice_without_local_client_uses_fallback(self, fallback):
        primary = self.client(generate_content=AsyncMock(return_value="primary"))
        router = ModelRouter(primary, fallback)

        assert await router.generate_content("p", model_choice="local") == "template content"

    async def test_title_never_raises(self, fallback):
        primary = self.client(generate_title=AsyncMock(side_effect=RuntimeError("down")))
        router = ModelRouter(primary, fallback)

        assert await router.generate_title("a login page", "admin") == "Admin Login"

    async def test_repair_without_client_raises(self, fallback):
        with pytest.raises(ModelClientError):
            await ModelRouter(None, fallback).repair_source("fix")

    async def test_repair_uses_chosen_client(self, fallback):
        primary = self.client(repair_source=AsyncMock(return_value="fixed"))
        router = ModelRouter(primary, fallback)

        assert await router.repair_source("fix") == "fixed"
        primary.repair_source.assert_awaited_once_with("fix")

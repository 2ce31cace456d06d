"""
Tests for RepairRequester
"""
from unittest.mock import AsyncMock

import pytest

from agents.core.error_classifier import classify_build_error
from agents.core.repairer import RepairRequester
from errors import RepairError


class TestRepairRequester:
    """Test suite for RepairRequester"""

    @pytest.fixture
    def error(self):
        return classify_build_error("SyntaxError: Unexpected token '<'")

    async def test_returns_code_from_fenced_reply(self, error):
        model = AsyncMock()
        model.repair_source = AsyncMock(return_value="Here you go:\n```tsx\nconst App = () => null\n```\n")

        patched = await RepairRequester(model).repair("broken", error, "page-1", 0)

        assert patched == "const App = () => null"

    async def test_prompt_carries_source_and_error(self, error):
        model = AsyncMock()
        model.repair_source = AsyncMock(return_value="fixed()")

        await RepairRequester(model).repair("const x = <", error, "page-1", 1)

        prompt = model.repair_source.await_args.args[0]
        assert "const x = <" in prompt
        assert "syntax" in prompt
        assert "Unexpected token '<'" in prompt

    async def test_model_choice_is_forwarded(self, error):
        model = AsyncMock()
        model.repair_source = AsyncMock(return_value="fixed()")

        await RepairRequester(model, model_choice="local").repair("src", error, "page-1", 0)

        assert model.repair_source.await_args.kwargs == {"model_choice": "local"}

    @pytest.mark.parametrize("reply", ["", "   ", "<think>hmm</think>", None])
    async def test_empty_reply_is_a_failed_repair(self, error, reply):
        model = AsyncMock()
        model.repair_source = AsyncMock(return_value=reply)

        with pytest.raises(RepairError):
            await RepairRequester(model).repair("src", error, "page-1", 0)

    async def test_model_exception_becomes_repair_error(self, error):
        model = AsyncMock()
        model.repair_source = AsyncMock(side_effect=TimeoutError("timed out"))

        with pytest.raises(RepairError, match="timed out"):
            await RepairRequester(model).repair("src", error, "page-1", 0)

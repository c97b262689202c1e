"""Tests for ModelClient and endpoint URL normalization."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bobbot.config.settings import LLMSettings
from bobbot.llm.client import ModelClient, build_base_url


class TestBuildBaseUrl:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("localhost:1234", "http://localhost:1234/v1"),
            ("http://localhost:1234", "http://localhost:1234/v1"),
            ("http://localhost:1234/", "http://localhost:1234/v1"),
            ("http://host/v1", "http://host/v1"),
            ("https://host/v1/", "https://host/v1"),
            ("http://host/v1/chat/completions", "http://host/v1"),
            ("  192.168.1.5:8080  ", "http://192.168.1.5:8080/v1"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert build_base_url(raw) == expected


class TestModelClient:
    def test_routed_model_adds_openai_prefix(self):
        client = ModelClient("localhost:1234", "qwen3", LLMSettings())
        assert client.routed_model == "openai/qwen3"

    def test_routed_model_keeps_existing_prefix(self):
        client = ModelClient("localhost:1234", "openai/qwen3", LLMSettings())
        assert client.routed_model == "openai/qwen3"

    def test_matches_compares_normalized_url(self):
        client = ModelClient("localhost:1234", "qwen3", LLMSettings())
        assert client.matches("http://localhost:1234/v1/", "qwen3")
        assert not client.matches("localhost:1234", "llama3")
        assert not client.matches("localhost:9999", "qwen3")

    @pytest.mark.asyncio
    async def test_complete_passes_sampling_only_when_set(self):
        settings = LLMSettings(api_key="k", temperature=0.2, max_tokens=256)
        client = ModelClient("localhost:1234", "qwen3", settings)
        with patch("bobbot.llm.client.acompletion", new_callable=AsyncMock) as mock_completion:
            await client.complete([{"role": "user", "content": "hi"}])

        kwargs = mock_completion.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 256
        assert "tools" not in kwargs

    @pytest.mark.asyncio
    async def test_complete_omits_unset_sampling(self):
        client = ModelClient("localhost:1234", "qwen3", LLMSettings())
        tools = [{"type": "function", "function": {"name": "x"}}]
        with patch("bobbot.llm.client.acompletion", new_callable=AsyncMock) as mock_completion:
            await client.complete([], tools=tools)

        kwargs = mock_completion.call_args.kwargs
        assert "temperature" not in kwargs
        assert "max_tokens" not in kwargs
        assert kwargs["tools"] == tools


class TestMaybeReasoning:
    def test_prefers_reasoning_content(self):
        message = MagicMock()
        message.reasoning_content = "deep thoughts"
        message.reasoning = "other"
        assert ModelClient.maybe_reasoning(message) == "deep thoughts"

    def test_falls_back_to_reasoning(self):
        message = MagicMock()
        message.reasoning_content = None
        message.reasoning = "other"
        assert ModelClient.maybe_reasoning(message) == "other"

    def test_ignores_blank_and_non_string(self):
        message = MagicMock()
        message.reasoning_content = "   "
        assert ModelClient.maybe_reasoning(message) is None

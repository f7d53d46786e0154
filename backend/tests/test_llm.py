"""
Unit tests for the LLM module.
Tests LLMMessage, LLMResponse, providers, and factory.
"""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from interviewace.llm.base import LLMMessage, LLMResponse
from interviewace.llm.openai_provider import OpenAIProvider, GroqProvider
from interviewace.llm.factory import create_llm_provider


def _install_client(mock_client, response):
    """Make the patched httpx.AsyncClient return ``response`` from post()."""
    mock_instance = AsyncMock()
    mock_instance.post.return_value = response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


class TestLLMMessage:
    """Tests for LLMMessage dataclass."""

    def test_text_message(self):
        msg = LLMMessage.text("user", "Hello")
        assert msg.role == "user"
        assert msg.content == "Hello"

    def test_system_message(self):
        msg = LLMMessage.text("system", "You are a helpful interview assistant")
        assert msg.role == "system"
        assert msg.content == "You are a helpful interview assistant"


class TestLLMResponse:
    """Tests for LLMResponse dataclass."""

    def test_basic_response(self):
        resp = LLMResponse(content="Hello!", model="gpt-4o-mini")
        assert resp.content == "Hello!"
        assert resp.model == "gpt-4o-mini"
        assert resp.usage == {}
        assert resp.raw is None

    def test_response_with_usage(self):
        resp = LLMResponse(
            content="Hi",
            model="test",
            usage={"prompt_tokens": 10, "completion_tokens": 5}
        )
        assert resp.usage["prompt_tokens"] == 10


class TestOpenAIProvider:
    """Tests for OpenAI-compatible provider."""

    def test_init_defaults(self):
        provider = OpenAIProvider(api_key="test-key")
        assert provider.api_key == "test-key"
        assert provider.model == "gpt-4o-mini"
        assert provider.base_url == "https://api.openai.com/v1"
        assert provider.provider_id == "openai:gpt-4o-mini"

    def test_init_custom(self):
        provider = OpenAIProvider(
            api_key="key",
            model="gpt-4o",
            base_url="https://custom.api.com/v1"
        )
        assert provider.model == "gpt-4o"
        assert provider.base_url == "https://custom.api.com/v1"

    def test_format_messages(self):
        provider = OpenAIProvider(api_key="test")
        messages = [
            LLMMessage.text("system", "sys prompt"),
            LLMMessage.text("user", "hello")
        ]
        formatted = provider._format_messages(messages)
        assert len(formatted) == 2
        assert formatted[0] == {"role": "system", "content": "sys prompt"}
        assert formatted[1] == {"role": "user", "content": "hello"}

    def test_headers(self):
        provider = OpenAIProvider(api_key="sk-test123")
        headers = provider._get_headers()
        assert headers["Authorization"] == "Bearer sk-test123"
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = OpenAIProvider(api_key="test-key")
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "choices": [{"message": {"content": "Test response"}}],
            "model": "gpt-4o-mini",
            "usage": {"prompt_tokens": 10, "completion_tokens": 5}
        }
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _install_client(mock_client, mock_response)

            result = await provider.chat_completion(
                [LLMMessage.text("user", "Hello")]
            )

            assert result.content == "Test response"
            assert result.model == "gpt-4o-mini"

            url = mock_instance.post.call_args.args[0]
            payload = mock_instance.post.call_args.kwargs["json"]
            assert url == "https://api.openai.com/v1/chat/completions"
            assert payload["temperature"] == 0.7
            assert payload["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_chat_completion_overrides(self):
        provider = OpenAIProvider(api_key="test-key")
        mock_response = MagicMock()
        mock_response.json.return_value = {"choices": [{"message": {"content": "ok"}}]}
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _install_client(mock_client, mock_response)

            await provider.chat_completion(
                [LLMMessage.text("user", "Hello")], temperature=0.0, max_tokens=50
            )

            payload = mock_instance.post.call_args.kwargs["json"]
            assert payload["temperature"] == 0.0
            assert payload["max_tokens"] == 50


class TestGroqProvider:
    """Tests for the Groq provider."""

    def test_init_defaults(self):
        provider = GroqProvider(api_key="test-key")
        assert provider.model == "llama-3.1-8b-instant"
        assert "groq.com" in provider.base_url
        assert provider.provider_id == "groq:llama-3.1-8b-instant"

    def test_timeout_is_passed_through(self):
        provider = GroqProvider(api_key="key", timeout=12.5)
        assert provider.timeout == 12.5

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = GroqProvider(api_key="test-key")
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "choices": [{"message": {"content": "Groq reply"}}],
            "model": "llama-3.1-8b-instant",
            "usage": {}
        }
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _install_client(mock_client, mock_response)

            result = await provider.chat_completion(
                [LLMMessage.text("user", "Hi")]
            )

            assert result.content == "Groq reply"
            url = mock_instance.post.call_args.args[0]
            assert url == "https://api.groq.com/openai/v1/chat/completions"


class TestLLMFactory:
    """Tests for LLM provider factory."""

    def test_create_openai_provider(self):
        provider = create_llm_provider(
            provider="openai",
            api_key="test-key",
            model="gpt-4o"
        )
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o"

    def test_create_groq_provider_by_default(self):
        provider = create_llm_provider(api_key="test-key")
        assert isinstance(provider, GroqProvider)

    def test_no_api_key_returns_none(self):
        provider = create_llm_provider(provider="openai", api_key="")
        assert provider is None

    def test_unsupported_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_llm_provider(provider="unsupported", api_key="key")

    def test_custom_base_url(self):
        provider = create_llm_provider(
            provider="openai",
            api_key="key",
            base_url="https://custom.api.com/v1"
        )
        assert provider.base_url == "https://custom.api.com/v1"

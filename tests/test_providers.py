"""Tests for the provider abstraction layer.

Covers:
- LLMResponse properties
- ProviderConfig defaults
- Claude / OpenAI response conversion and request building
- Retry and error mapping in the base class
- Provider factory
"""

from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from promptguard.exceptions import ProviderError, ProviderTimeoutError
from promptguard.providers import create_provider
from promptguard.providers.base import (
    ContentBlock,
    LLMResponse,
    ProviderCapability,
    ProviderConfig,
)
from promptguard.providers.claude import ClaudeProvider
from promptguard.providers.openai import OpenAIProvider


def _anthropic_response(text: str) -> MagicMock:
    response = MagicMock()
    block = MagicMock()
    block.type = "text"
    block.text = text
    response.content = [block]
    response.stop_reason = "end_turn"
    response.model = "claude-3-5-haiku-latest"
    response.usage = MagicMock(input_tokens=10, output_tokens=5)
    return response


def _openai_response(content: str | None, finish_reason: str = "stop") -> MagicMock:
    response = MagicMock()
    choice = MagicMock()
    choice.message.content = content
    choice.finish_reason = finish_reason
    response.choices = [choice]
    response.model = "gpt-4o-mini"
    response.usage = MagicMock(prompt_tokens=12, completion_tokens=4)
    return response


# ─── LLMResponse ──────────────────────────────────────────


class TestLLMResponse:
    def test_text_property(self):
        response = LLMResponse(content=[ContentBlock(text='{"score": '), ContentBlock(text="3}")])
        assert response.text == '{"score": 3}'
        assert response.has_text is True

    def test_empty_response(self):
        response = LLMResponse()
        assert response.text == ""
        assert response.has_text is False


class TestProviderConfig:
    def test_defaults(self):
        config = ProviderConfig()
        assert config.max_retries == 1
        assert config.timeout_seconds == 30.0
        assert config.retry_base_delay == 1.0


# ─── ClaudeProvider ────────────────────────────────────────


class TestClaudeProvider:
    def test_capabilities(self):
        provider = ClaudeProvider(client=MagicMock())
        assert provider.supports(ProviderCapability.SYSTEM_PROMPT) is True
        assert provider.supports(ProviderCapability.JSON_MODE) is False

    def test_to_response_text(self):
        result = ClaudeProvider._to_response(_anthropic_response('{"score": 0}'))
        assert isinstance(result, LLMResponse)
        assert result.text == '{"score": 0}'
        assert result.input_tokens == 10
        assert result.output_tokens == 5

    def test_from_client(self):
        client = MagicMock()
        provider = ClaudeProvider.from_client(client, model="claude-3-haiku-20240307")
        assert provider.client is client
        assert provider.model == "claude-3-haiku-20240307"

    @pytest.mark.asyncio
    async def test_create_message_calls_api(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_anthropic_response("ok"))
        provider = ClaudeProvider(client=client)

        result = await provider.create_message(
            messages=[{"role": "user", "content": "Hello"}],
            max_tokens=256,
            temperature=0,
            json_mode=True,
        )

        assert result.text == "ok"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 256
        assert kwargs["temperature"] == 0
        assert "response_format" not in kwargs


# ─── OpenAIProvider ────────────────────────────────────────


class TestOpenAIProvider:
    def test_capabilities(self):
        provider = OpenAIProvider(client=MagicMock())
        assert provider.supports(ProviderCapability.JSON_MODE) is True

    @pytest.mark.asyncio
    async def test_json_mode_and_system_prompt(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_openai_response('{"score": 1}'))
        provider = OpenAIProvider(ProviderConfig(model="gpt-4o-mini"), client=client)

        result = await provider.create_message(
            messages=[{"role": "user", "content": "score this"}],
            system="rubric",
            json_mode=True,
        )

        assert result.text == '{"score": 1}'
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"] == [
            {"role": "system", "content": "rubric"},
            {"role": "user", "content": "score this"},
        ]

    def test_to_response_maps_usage(self):
        result = OpenAIProvider._to_response(_openai_response("hi", finish_reason="length"))
        assert result.stop_reason == "max_tokens"
        assert result.input_tokens == 12
        assert result.output_tokens == 4

    def test_to_response_without_content(self):
        result = OpenAIProvider._to_response(_openai_response(None))
        assert result.has_text is False

    def test_to_response_without_choices(self):
        response = MagicMock()
        response.choices = []
        assert OpenAIProvider._to_response(response).content == []

    @pytest.mark.asyncio
    async def test_aclose_closes_sdk_client(self):
        client = MagicMock()
        client.close = AsyncMock()
        await OpenAIProvider(client=client).aclose()
        client.close.assert_awaited_once()


# ─── Retry / errors ────────────────────────────────────────


class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        client = MagicMock()
        client.messages.create = AsyncMock(
            side_effect=[RuntimeError("overloaded"), _anthropic_response("ok")]
        )
        config = ProviderConfig(model="m", max_retries=2, retry_base_delay=0)
        provider = ClaudeProvider(config, client=client)

        result = await provider.create_message(messages=[{"role": "user", "content": "x"}])
        assert result.text == "ok"
        assert client.messages.create.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_raises_provider_error(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=RuntimeError("API down"))
        provider = ClaudeProvider(ProviderConfig(model="m", max_retries=1), client=client)

        with pytest.raises(ProviderError, match="API down") as exc_info:
            await provider.create_message(messages=[{"role": "user", "content": "x"}])
        assert exc_info.value.provider_name == "ClaudeProvider"

    @pytest.mark.asyncio
    async def test_timeout_maps_to_provider_timeout(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=TimeoutError("slow"))
        provider = ClaudeProvider(ProviderConfig(model="m"), client=client)

        with pytest.raises(ProviderTimeoutError):
            await provider.create_message(messages=[{"role": "user", "content": "x"}])

    @pytest.mark.asyncio
    async def test_fatal_error_not_retried(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        auth_error = anthropic.AuthenticationError(
            "invalid x-api-key", response=httpx.Response(401, request=request), body=None
        )
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=auth_error)
        config = ProviderConfig(model="m", max_retries=3, retry_base_delay=0)
        provider = ClaudeProvider(config, client=client)

        with pytest.raises(ProviderError, match="rejected"):
            await provider.create_message(messages=[{"role": "user", "content": "x"}])
        assert client.messages.create.await_count == 1

    @pytest.mark.asyncio
    async def test_sdk_timeout_maps_to_provider_timeout(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=openai.APITimeoutError(request))
        provider = OpenAIProvider(ProviderConfig(model="m"), client=client)

        with pytest.raises(ProviderTimeoutError):
            await provider.create_message(messages=[{"role": "user", "content": "x"}])


# ─── Factory ───────────────────────────────────────────────


class TestCreateProvider:
    def test_openai(self):
        provider = create_provider("openai", api_key="sk-test", model="gpt-4o")
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o"

    @pytest.mark.parametrize("name", ["anthropic", "claude", "Anthropic"])
    def test_anthropic_aliases(self, name):
        provider = create_provider(name, api_key="ak-test")
        assert isinstance(provider, ClaudeProvider)
        assert provider.model == ClaudeProvider.DEFAULT_MODEL

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            create_provider("nonexistent")

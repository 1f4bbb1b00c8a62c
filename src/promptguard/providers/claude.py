"""
promptguard Claude Provider

Scores through Anthropic's Messages API. There is no JSON response
mode on this API; the scoring rubric itself asks for a JSON object,
so ``json_mode`` is accepted and ignored.
"""

from __future__ import annotations

from typing import Any

import anthropic

from promptguard.providers.base import (
    ContentBlock,
    LLMProvider,
    LLMResponse,
    ProviderCapability,
    ProviderConfig,
)


class ClaudeProvider(LLMProvider):
    """Anthropic provider over ``anthropic.AsyncAnthropic``.

    Without an api_key in the config the SDK reads ANTHROPIC_API_KEY.
    """

    DEFAULT_MODEL = "claude-3-5-haiku-latest"
    capabilities = frozenset({ProviderCapability.SYSTEM_PROMPT})
    timeout_errors = (anthropic.APITimeoutError,)
    fatal_errors = (
        anthropic.AuthenticationError,
        anthropic.PermissionDeniedError,
        anthropic.BadRequestError,
    )

    def __init__(
        self,
        config: ProviderConfig | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        super().__init__(config)
        if client is None:
            # retries are handled by LLMProvider.create_message
            client = anthropic.AsyncAnthropic(
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                timeout=self._config.timeout_seconds,
                max_retries=0,
            )
        self._client = client

    @classmethod
    def from_client(cls, client: anthropic.AsyncAnthropic, model: str | None = None) -> ClaudeProvider:
        """Reuse an Anthropic client the host already holds."""
        return cls(ProviderConfig(model=model or cls.DEFAULT_MODEL), client=client)

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        return self._client

    async def _send(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int,
        system: str | None,
        temperature: float | None,
        json_mode: bool,
    ) -> LLMResponse:
        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            request["system"] = system
        if temperature is not None:
            request["temperature"] = temperature
        return self._to_response(await self._client.messages.create(**request))

    @staticmethod
    def _to_response(message: Any) -> LLMResponse:
        """Keep the text blocks of an Anthropic ``Message``."""
        usage = message.usage
        return LLMResponse(
            content=[
                ContentBlock(text=block.text)
                for block in message.content
                if block.type == "text"
            ],
            stop_reason=message.stop_reason or "end_turn",
            model=message.model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )

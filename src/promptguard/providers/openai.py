"""
promptguard OpenAI Provider

Scores through the Chat Completions API of OpenAI or any compatible
service (set ``base_url``). JSON mode maps to
``response_format={"type": "json_object"}``.
"""

from __future__ import annotations

from typing import Any

import openai

from promptguard.providers.base import (
    ContentBlock,
    LLMProvider,
    LLMResponse,
    ProviderCapability,
    ProviderConfig,
)

# OpenAI finish_reason -> LLMResponse.stop_reason; anything else is end_turn
_STOP_REASONS = {
    "length": "max_tokens",
    "tool_calls": "tool_use",
}


class OpenAIProvider(LLMProvider):
    """OpenAI provider over ``openai.AsyncOpenAI``.

    Without an api_key in the config the SDK reads OPENAI_API_KEY.
    """

    DEFAULT_MODEL = "gpt-4o-mini"
    capabilities = frozenset({ProviderCapability.SYSTEM_PROMPT, ProviderCapability.JSON_MODE})
    timeout_errors = (openai.APITimeoutError,)
    fatal_errors = (
        openai.AuthenticationError,
        openai.PermissionDeniedError,
        openai.BadRequestError,
    )

    def __init__(self, config: ProviderConfig | None = None, client: Any = None):
        super().__init__(config)
        if client is None:
            client = openai.AsyncOpenAI(
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                timeout=self._config.timeout_seconds,
                max_retries=0,
            )
        self._client = client

    async def _send(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int,
        system: str | None,
        temperature: float | None,
        json_mode: bool,
    ) -> LLMResponse:
        chat = [{"role": "system", "content": system}] if system else []
        chat += [{"role": m["role"], "content": str(m.get("content", ""))} for m in messages]

        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": chat,
        }
        if temperature is not None:
            request["temperature"] = temperature
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        return self._to_response(await self._client.chat.completions.create(**request))

    @staticmethod
    def _to_response(completion: Any) -> LLMResponse:
        """First choice of a ``ChatCompletion``; empty when there is none."""
        if not completion.choices:
            return LLMResponse()
        choice = completion.choices[0]
        text = choice.message.content
        usage = completion.usage
        return LLMResponse(
            content=[ContentBlock(text=text)] if text else [],
            stop_reason=_STOP_REASONS.get(choice.finish_reason, "end_turn"),
            model=completion.model or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )

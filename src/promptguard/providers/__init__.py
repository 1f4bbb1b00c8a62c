"""
promptguard LLM Providers

Vendor SDKs (Anthropic, OpenAI) behind one interface so the classifier
can score with whichever model the host is configured for.

Usage:
    from promptguard.providers import create_provider

    provider = create_provider("anthropic", model="claude-3-5-haiku-latest")
    reply = await provider.create_message([{"role": "user", "content": "..."}])
"""

from __future__ import annotations

import importlib

from promptguard.providers.base import (
    ContentBlock,
    LLMProvider,
    LLMResponse,
    ProviderCapability,
    ProviderConfig,
)

__all__ = [
    "ContentBlock",
    "LLMProvider",
    "LLMResponse",
    "ProviderCapability",
    "ProviderConfig",
    "create_provider",
    "is_registered_provider",
]

# Provider name -> (module, class). Modules load on first use.
_PROVIDERS: dict[str, tuple[str, str]] = {
    "openai": ("promptguard.providers.openai", "OpenAIProvider"),
    "anthropic": ("promptguard.providers.claude", "ClaudeProvider"),
    "claude": ("promptguard.providers.claude", "ClaudeProvider"),
}


def is_registered_provider(name: str) -> bool:
    """Whether create_provider knows ``name``."""
    return name.lower() in _PROVIDERS


def create_provider(
    name: str = "openai",
    *,
    api_key: str | None = None,
    model: str | None = None,
    timeout_seconds: float = 30.0,
    max_retries: int = 1,
) -> LLMProvider:
    """Build a provider by name ("openai", "anthropic" or "claude").

    ``model`` defaults to the provider's DEFAULT_MODEL.

    Raises:
        ValueError: Unknown provider name.
    """
    try:
        module_name, class_name = _PROVIDERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown provider: {name}. Supported: openai, anthropic") from None

    provider_cls = getattr(importlib.import_module(module_name), class_name)
    config = ProviderConfig(
        api_key=api_key,
        model=model or provider_cls.DEFAULT_MODEL,
        timeout_seconds=timeout_seconds,
        max_retries=max_retries,
    )
    return provider_cls(config)

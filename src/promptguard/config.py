"""
promptguard Configuration

The monitor is configured from two places:

1. A structured MonitorConfig section supplied by the host application.
2. Environment variables, kept for backwards compatibility and for
   pointing the classifier at an explicit OpenAI-compatible endpoint.

Environment variables:
    PI_MONITOR_ENABLED    "1" or "true" (any case) turns the monitor on
                          when the config does not say otherwise.
    PI_MONITOR_API_KEY    Explicit classifier key. When set, scoring goes
                          straight to PI_MONITOR_API_BASE.
    PI_MONITOR_API_BASE   Default: https://api.openai.com/v1
    PI_MONITOR_MODEL      Default: gpt-4o-mini

The monitor is off by default.
"""

from __future__ import annotations

import os
from enum import Enum

from pydantic import BaseModel, Field

from promptguard.exceptions import MissingCredentialsError
from promptguard.providers import is_registered_provider

ENV_ENABLED = "PI_MONITOR_ENABLED"
ENV_API_KEY = "PI_MONITOR_API_KEY"
ENV_API_BASE = "PI_MONITOR_API_BASE"
ENV_MODEL = "PI_MONITOR_MODEL"

DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_MONITOR_MODEL = "gpt-4o-mini"
DEFAULT_PROVIDER = "openai"

# Provider name -> environment variable holding its API key
PROVIDER_API_KEY_ENV: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
}


class RedactionPolicy(str, Enum):
    """What the redaction notice tells the agent it may do next."""
    OFFER_BYPASS = "offer_bypass"  # mention the one-time bypass tool
    WITHHOLD = "withhold"          # only inform the user, no bypass hint


class MonitorConfig(BaseModel):
    """Host configuration for the prompt injection monitor.

    ``enabled`` left as None defers to the PI_MONITOR_ENABLED environment
    variable. ``model`` is a "provider/model" reference; without it the
    host's ``default_model`` is used for scoring.
    """
    enabled: bool | None = None
    model: str | None = None
    default_model: str = f"{DEFAULT_PROVIDER}/{DEFAULT_MONITOR_MODEL}"
    api_key: str | None = None
    threshold: int = 20
    min_text_length: int = Field(default=50, ge=0)
    redaction_policy: RedactionPolicy = RedactionPolicy.OFFER_BYPASS
    timeout_seconds: float = Field(default=30.0, gt=0)


class ExplicitEndpoint(BaseModel):
    """Classifier endpoint given directly through PI_MONITOR_* variables."""
    api_key: str
    api_base: str = DEFAULT_API_BASE
    model: str = DEFAULT_MONITOR_MODEL

    @classmethod
    def from_env(cls) -> ExplicitEndpoint | None:
        """Read the override from the environment. None when no key is set."""
        api_key = os.environ.get(ENV_API_KEY)
        if not api_key:
            return None
        return cls(
            api_key=api_key,
            api_base=os.environ.get(ENV_API_BASE) or DEFAULT_API_BASE,
            model=os.environ.get(ENV_MODEL) or DEFAULT_MONITOR_MODEL,
        )


def is_monitor_enabled(cfg: MonitorConfig | None = None) -> bool:
    """Whether prompt injection monitoring is switched on.

    Config takes precedence. Otherwise PI_MONITOR_ENABLED is read, and
    only "1" and a case-insensitive "true" count as on.
    """
    if cfg is not None and cfg.enabled is not None:
        return cfg.enabled
    value = os.environ.get(ENV_ENABLED)
    if value is None:
        return False
    return value == "1" or value.lower() == "true"


def parse_model_ref(ref: str, default_provider: str = DEFAULT_PROVIDER) -> tuple[str, str] | None:
    """Split a "provider/model" reference.

    A bare model name gets ``default_provider``. Returns None for an
    empty reference or one with an empty part.
    """
    ref = ref.strip()
    if not ref:
        return None
    if "/" not in ref:
        return default_provider, ref
    provider, model = ref.split("/", 1)
    provider, model = provider.strip().lower(), model.strip()
    if not provider or not model:
        return None
    return provider, model


def resolve_monitor_model(cfg: MonitorConfig) -> tuple[str, str]:
    """Provider and model used for scoring: configured model, else the host default."""
    default = parse_model_ref(cfg.default_model) or (DEFAULT_PROVIDER, DEFAULT_MONITOR_MODEL)
    if cfg.model:
        parsed = parse_model_ref(cfg.model, default[0])
        if parsed:
            return parsed
    return default


def resolve_provider_api_key(provider: str, cfg: MonitorConfig | None = None) -> str | None:
    """API key for a provider: explicit config key first, then the provider's env var."""
    if cfg is not None and cfg.api_key:
        return cfg.api_key
    env_name = PROVIDER_API_KEY_ENV.get(provider.lower())
    if env_name:
        return os.environ.get(env_name) or None
    return None


def require_provider_api_key(provider: str, cfg: MonitorConfig | None = None) -> str:
    """Like resolve_provider_api_key, but raises MissingCredentialsError."""
    api_key = resolve_provider_api_key(provider, cfg)
    if not api_key:
        env_name = PROVIDER_API_KEY_ENV.get(provider.lower(), "an API key")
        raise MissingCredentialsError(
            f"No API key found for provider '{provider}' (set {env_name} or MonitorConfig.api_key)",
            provider=provider,
        )
    return api_key


def has_monitor_credentials(cfg: MonitorConfig | None = None) -> bool:
    """Whether any classifier backend can be reached with the current settings.

    Without the explicit endpoint, the configured provider must be one
    create_provider knows and must have a key.
    """
    if ExplicitEndpoint.from_env() is not None:
        return True
    if cfg is None:
        return False
    provider, _ = resolve_monitor_model(cfg)
    if not is_registered_provider(provider):
        return False
    return resolve_provider_api_key(provider, cfg) is not None

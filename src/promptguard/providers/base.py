"""
promptguard LLM Provider Base

When no explicit PI_MONITOR endpoint is set, the classifier scores
through the same vendor SDK the host agent is configured for. A
provider hides that SDK behind one async call returning the reply
text, token usage and stop reason.

Retries: ``max_retries`` attempts in total, sleeping
``retry_base_delay * 2**n`` between them. Errors a provider lists in
``fatal_errors`` (bad key, rejected request) fail on the first attempt.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from promptguard.exceptions import ProviderError, ProviderTimeoutError
from promptguard.logging import get_logger

logger = get_logger("promptguard.providers")


class ContentBlock(BaseModel):
    type: str = "text"
    text: str = ""


class LLMResponse(BaseModel):
    """One provider reply, independent of the vendor SDK."""
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: str = "end_turn"
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content if block.type == "text")

    @property
    def has_text(self) -> bool:
        return bool(self.text)


class ProviderConfig(BaseModel):
    """Connection and retry settings for a provider."""
    api_key: str | None = None
    model: str = ""
    base_url: str | None = None
    max_retries: int = Field(default=1, ge=1)
    timeout_seconds: float = 30.0
    retry_base_delay: float = 1.0


class ProviderCapability(str, Enum):
    SYSTEM_PROMPT = "SYSTEM_PROMPT"
    JSON_MODE = "JSON_MODE"


class LLMProvider(ABC):
    """Async provider with retry and error mapping.

    Subclasses implement ``_send`` and declare which SDK exceptions are
    timeouts and which are not worth retrying.
    """

    DEFAULT_MODEL: ClassVar[str] = ""
    capabilities: ClassVar[frozenset[ProviderCapability]] = frozenset()
    timeout_errors: ClassVar[tuple[type[BaseException], ...]] = ()
    fatal_errors: ClassVar[tuple[type[BaseException], ...]] = ()

    _client: Any = None

    def __init__(self, config: ProviderConfig | None = None):
        self._config = config or ProviderConfig(model=self.DEFAULT_MODEL)

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def model(self) -> str:
        return self._config.model

    def supports(self, capability: ProviderCapability) -> bool:
        return capability in self.capabilities

    async def aclose(self) -> None:
        """Close the SDK client and its connection pool."""
        if self._client is not None:
            await self._client.close()

    @abstractmethod
    async def _send(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int,
        system: str | None,
        temperature: float | None,
        json_mode: bool,
    ) -> LLMResponse:
        """One SDK call, no retries."""
        ...

    def _is_timeout(self, error: BaseException) -> bool:
        return isinstance(error, (asyncio.TimeoutError, TimeoutError, *self.timeout_errors))

    async def create_message(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int = 1024,
        system: str | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Send ``messages`` and return the reply.

        Args:
            messages: Chat messages (role + content).
            max_tokens: Reply token budget.
            system: Optional system prompt.
            temperature: Optional sampling temperature.
            json_mode: Request a JSON object reply where supported.

        Raises:
            ProviderTimeoutError: The final attempt timed out.
            ProviderError: The request was rejected or every attempt failed.
        """
        attempts = self._config.max_retries
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                return await self._send(
                    messages,
                    max_tokens=max_tokens,
                    system=system,
                    temperature=temperature,
                    json_mode=json_mode,
                )
            except self.fatal_errors as e:
                raise ProviderError(self.name, f"request rejected: {e}") from e
            except Exception as e:
                last_error = e
                if attempt + 1 >= attempts:
                    break
                delay = self._config.retry_base_delay * (2 ** attempt)
                logger.warning(
                    f"{self.name} call failed ({type(e).__name__}), retrying in {delay:g}s",
                    extra={"provider": self.name, "model": self.model},
                )
                await asyncio.sleep(delay)

        message = f"failed after {attempts} attempt(s): {last_error}"
        if last_error is not None and self._is_timeout(last_error):
            raise ProviderTimeoutError(self.name, message) from last_error
        raise ProviderError(self.name, message) from last_error

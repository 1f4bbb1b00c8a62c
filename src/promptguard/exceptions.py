"""
promptguard Custom Exceptions

Structured exception hierarchy for the prompt injection monitor.
All promptguard-specific exceptions inherit from PromptGuardError.

Exception hierarchy:
    PromptGuardError
    +-- ConfigurationError                 (monitor cannot be set up)
    |   +-- MissingCredentialsError        (no usable API key)
    +-- ClassifierError                    (scoring call failed, fail closed)
    |   +-- ClassifierHTTPError            (non-2xx status)
    |   +-- ClassifierTimeoutError         (transport timeout)
    |   +-- ClassifierTransportError       (network failure)
    |   +-- EmptyClassifierResponseError   (no content in reply)
    |   +-- MalformedClassifierResponseError (reply is not a JSON object)
    +-- ProviderError                      (LLM provider failure)
        +-- ProviderTimeoutError           (request timeout)
"""

from __future__ import annotations


class PromptGuardError(Exception):
    """Base exception for all promptguard errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(PromptGuardError):
    """Raised when the monitor configuration cannot be resolved."""

    pass


class MissingCredentialsError(ConfigurationError):
    """Raised when no API key can be found for the classifier backend."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message, details={"provider": provider} if provider else None)
        self.provider = provider


class ClassifierError(PromptGuardError):
    """Base exception for operational failures of a scoring call.

    These are never shown to the agent. The tool wrapper converts
    them into a redaction with score -1.
    """

    pass


class ClassifierHTTPError(ClassifierError):
    """Raised when the classifier endpoint returns a non-success status."""

    def __init__(self, status_code: int, details: dict | None = None):
        super().__init__(
            f"PI monitor API returned {status_code} for prompt injection scoring",
            details={"status_code": status_code, **(details or {})},
        )
        self.status_code = status_code


class ClassifierTimeoutError(ClassifierError):
    """Raised when the classifier request times out."""

    pass


class ClassifierTransportError(ClassifierError):
    """Raised when the classifier request fails at the network level."""

    pass


class EmptyClassifierResponseError(ClassifierError):
    """Raised when the classifier reply carries no content."""

    pass


class MalformedClassifierResponseError(ClassifierError):
    """Raised when the classifier reply is not a JSON object."""

    def __init__(self, message: str, content: str = ""):
        super().__init__(message, details={"content": content[:500]})
        self.content = content


class ProviderError(PromptGuardError):
    """Base exception for LLM provider errors."""

    def __init__(self, provider_name: str, message: str, details: dict | None = None):
        super().__init__(
            f"Provider '{provider_name}' error: {message}",
            details={"provider_name": provider_name, **(details or {})},
        )
        self.provider_name = provider_name


class ProviderTimeoutError(ProviderError):
    """Raised when a provider request times out."""

    pass

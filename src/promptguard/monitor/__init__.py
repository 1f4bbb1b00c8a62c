"""
promptguard Prompt Injection Monitor

Screens agent tool results with an external classifier and replaces
adversarial ones with a redaction notice:

    Agent → wrapped tool → inner execute → Classifier Gateway → pass / redact

Components:
- PromptInjectionClassifier: scores tool text over a pluggable transport
- create_redacted_tool_result: the replacement notice
- MonitorState: per-session single-use bypass flag
- wrap_tool_with_prompt_injection_monitor: the interception decorator
- create_disable_monitor_tool: agent-facing bypass tool
"""

from promptguard.monitor.classifier import (
    PROMPT_INJECTION_THRESHOLD,
    SCORING_PROMPT,
    ChatCompletionsTransport,
    ClassifierTransport,
    ClassifierVerdict,
    PromptInjectionClassifier,
    ProviderTransport,
    parse_verdict,
    resolve_classifier,
    score_for_prompt_injection,
)
from promptguard.monitor.redaction import (
    DISABLE_MONITOR_TOOL_NAME,
    REDACTION_MARKER,
    create_redacted_tool_result,
)
from promptguard.monitor.state import MonitorState, create_monitor_state
from promptguard.monitor.wrapper import (
    MIN_TEXT_LENGTH,
    apply_prompt_injection_monitor,
    create_disable_monitor_tool,
    is_monitor_active,
    wrap_tool_with_prompt_injection_monitor,
)

__all__ = [
    "ChatCompletionsTransport",
    "ClassifierTransport",
    "ClassifierVerdict",
    "DISABLE_MONITOR_TOOL_NAME",
    "MIN_TEXT_LENGTH",
    "MonitorState",
    "PROMPT_INJECTION_THRESHOLD",
    "PromptInjectionClassifier",
    "ProviderTransport",
    "REDACTION_MARKER",
    "SCORING_PROMPT",
    "apply_prompt_injection_monitor",
    "create_disable_monitor_tool",
    "create_monitor_state",
    "create_redacted_tool_result",
    "is_monitor_active",
    "parse_verdict",
    "resolve_classifier",
    "score_for_prompt_injection",
    "wrap_tool_with_prompt_injection_monitor",
]

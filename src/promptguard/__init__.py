"""
promptguard — Prompt Injection Monitor for Agent Tools

Usage:
    from promptguard import (
        MonitorConfig,
        apply_prompt_injection_monitor,
        create_monitor_state,
    )

    state = create_monitor_state()  # one per agent session
    tools = apply_prompt_injection_monitor(tools, state, MonitorConfig(enabled=True))

Every tool result is scored by an external classifier. Results scoring
at or above the threshold (20/100), and results whose scoring call
fails, are replaced with a redaction notice.
"""

from promptguard.config import MonitorConfig, RedactionPolicy, is_monitor_enabled
from promptguard.exceptions import (
    ClassifierError,
    MissingCredentialsError,
    PromptGuardError,
)
from promptguard.monitor import (
    DISABLE_MONITOR_TOOL_NAME,
    PROMPT_INJECTION_THRESHOLD,
    ClassifierVerdict,
    MonitorState,
    PromptInjectionClassifier,
    apply_prompt_injection_monitor,
    create_disable_monitor_tool,
    create_monitor_state,
    create_redacted_tool_result,
    score_for_prompt_injection,
    wrap_tool_with_prompt_injection_monitor,
)
from promptguard.tools import AgentTool, ToolResult, extract_tool_result_text, json_result

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Config
    "MonitorConfig",
    "RedactionPolicy",
    "is_monitor_enabled",
    # Tools
    "AgentTool",
    "ToolResult",
    "extract_tool_result_text",
    "json_result",
    # Monitor
    "ClassifierVerdict",
    "DISABLE_MONITOR_TOOL_NAME",
    "MonitorState",
    "PROMPT_INJECTION_THRESHOLD",
    "PromptInjectionClassifier",
    "apply_prompt_injection_monitor",
    "create_disable_monitor_tool",
    "create_monitor_state",
    "create_redacted_tool_result",
    "score_for_prompt_injection",
    "wrap_tool_with_prompt_injection_monitor",
    # Errors
    "ClassifierError",
    "MissingCredentialsError",
    "PromptGuardError",
]

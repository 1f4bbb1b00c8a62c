"""
promptguard Tool Wrapper

Wraps an agent tool so every result is checked for prompt injection
before the agent sees it:

    agent → wrapped execute → inner execute → bypass? → extract text
          → long enough? → classifier → score >= threshold? → redact

The wrapped tool keeps the original name, label, description and
parameters; only ``execute`` is replaced, and the original tool value
is left untouched. Classifier failures fail closed: the result is
redacted with score -1 and the error is logged, never raised to the
agent.

The bypass tool (``disable_pi_monitor``) arms the session's
MonitorState so the next monitored call skips scoring once. It is
never wrapped itself.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from promptguard.config import (
    MonitorConfig,
    RedactionPolicy,
    has_monitor_credentials,
    is_monitor_enabled,
)
from promptguard.logging import get_logger, get_trace_logger
from promptguard.monitor.classifier import (
    PROMPT_INJECTION_THRESHOLD,
    ClassifierVerdict,
    score_for_prompt_injection,
)
from promptguard.monitor.redaction import DISABLE_MONITOR_TOOL_NAME, create_redacted_tool_result
from promptguard.monitor.state import MonitorState
from promptguard.tools import AgentTool, ToolUpdateCallback, extract_tool_result_text, json_result

logger = get_logger("promptguard.monitor")
trace = get_trace_logger()

MIN_TEXT_LENGTH = 50
FAILURE_SCORE = -1
PREVIEW_CHARS = 200

Scorer = Callable[[str, str], Awaitable[ClassifierVerdict]]


def _should_wrap(
    tool: AgentTool, cfg: MonitorConfig | None, scorer: Scorer | None
) -> bool:
    if tool.name == DISABLE_MONITOR_TOOL_NAME:
        return False
    if not is_monitor_enabled(cfg):
        trace.debug('SKIP wrapping tool "%s" - monitor not enabled', tool.name)
        return False
    if scorer is None and not has_monitor_credentials(cfg):
        trace.debug('SKIP wrapping tool "%s" - no classifier credentials', tool.name)
        return False
    if tool.execute is None:
        trace.debug('SKIP wrapping tool "%s" - no execute method', tool.name)
        return False
    return True


def wrap_tool_with_prompt_injection_monitor(
    tool: AgentTool,
    state: MonitorState,
    cfg: MonitorConfig | None = None,
    *,
    scorer: Scorer | None = None,
) -> AgentTool:
    """Return ``tool`` with its results screened for prompt injection.

    Returns the tool unchanged when it is the bypass tool, when the
    monitor is disabled, when no classifier can be reached (and no
    ``scorer`` was injected), or when the tool has no execute function.

    Args:
        tool: Tool to wrap. Never mutated.
        state: The session's bypass state.
        cfg: Host monitor config (threshold, text floor, redaction wording).
        scorer: Optional async ``(text, tool_name) -> ClassifierVerdict``;
            defaults to :func:`score_for_prompt_injection` with ``cfg``.
    """
    if not _should_wrap(tool, cfg, scorer):
        return tool

    execute = tool.execute
    tool_name = tool.name or "tool"
    threshold = cfg.threshold if cfg is not None else PROMPT_INJECTION_THRESHOLD
    min_length = cfg.min_text_length if cfg is not None else MIN_TEXT_LENGTH
    policy = cfg.redaction_policy if cfg is not None else RedactionPolicy.OFFER_BYPASS

    async def _score(text: str) -> ClassifierVerdict:
        if scorer is not None:
            return await scorer(text, tool_name)
        return await score_for_prompt_injection(text, tool_name, cfg)

    async def monitored_execute(
        tool_call_id: str,
        params: dict[str, Any],
        cancel_event: asyncio.Event | None = None,
        on_update: ToolUpdateCallback | None = None,
    ) -> Any:
        trace.debug('EXECUTE tool="%s" tool_call_id=%s', tool_name, tool_call_id)
        result = await execute(tool_call_id, params, cancel_event, on_update)

        if state.consume():
            trace.debug('SKIP monitoring tool="%s" - disabled by %s', tool_name, DISABLE_MONITOR_TOOL_NAME)
            logger.info(
                "Prompt injection monitoring bypassed for one call",
                extra={"tool_name": tool_name, "tool_call_id": tool_call_id, "action": "bypass"},
            )
            return result

        text = extract_tool_result_text(result)
        if text is None or len(text) < min_length:
            trace.debug(
                'SKIP scoring tool="%s" - text too short (%d chars)',
                tool_name, len(text) if text else 0,
            )
            return result

        trace.debug(
            'SCORING tool="%s" text=%d chars, preview: %r',
            tool_name, len(text), text[:PREVIEW_CHARS],
        )

        try:
            verdict = await _score(text)
        except Exception as e:
            logger.warning(
                f'Prompt injection scoring failed for tool "{tool_name}": {e}',
                extra={"tool_name": tool_name, "tool_call_id": tool_call_id, "action": "redact"},
            )
            trace.debug('ERROR tool="%s" err=%s - REDACTING (fail closed)', tool_name, e)
            return create_redacted_tool_result(tool_name, FAILURE_SCORE, policy)

        trace.debug(
            'SCORED tool="%s" score=%s/100 reasoning=%r', tool_name, verdict.score, verdict.reasoning
        )
        if verdict.score >= threshold:
            logger.warning(
                f'Prompt injection detected in tool "{tool_name}" '
                f"(score: {verdict.score}/100): {verdict.reasoning}",
                extra={
                    "tool_name": tool_name,
                    "tool_call_id": tool_call_id,
                    "score": verdict.score,
                    "action": "redact",
                },
            )
            trace.debug('REDACTED tool="%s" score=%s', tool_name, verdict.score)
            return create_redacted_tool_result(tool_name, verdict.score, policy)

        trace.debug('PASSED tool="%s" score=%s', tool_name, verdict.score)
        return result

    trace.debug('WRAPPED tool "%s"', tool_name)
    return dataclasses.replace(tool, execute=monitored_execute)


def create_disable_monitor_tool(state: MonitorState) -> AgentTool:
    """The agent-facing bypass tool. Arms ``state`` for the next monitored call."""

    async def execute(
        tool_call_id: str,
        params: dict[str, Any],
        cancel_event: asyncio.Event | None = None,
        on_update: ToolUpdateCallback | None = None,
    ) -> Any:
        state.arm()
        trace.debug("%s called - skip_next set to true", DISABLE_MONITOR_TOOL_NAME)
        logger.info(
            "Prompt injection monitoring disabled for the next tool call",
            extra={"tool_call_id": tool_call_id, "action": "arm_bypass"},
        )
        return json_result({
            "ok": True,
            "message": "Prompt injection monitoring disabled for the next tool call.",
        })

    return AgentTool(
        name=DISABLE_MONITOR_TOOL_NAME,
        label="Disable PI Monitor",
        description=(
            "Disables prompt injection monitoring for the next tool call only. "
            "Use when the user has reviewed a redacted result and confirmed it is safe. "
            "The bypass is consumed after one tool execution."
        ),
        parameters={"type": "object", "properties": {}},
        execute=execute,
    )


def is_monitor_active(cfg: MonitorConfig | None = None, *, scorer: Scorer | None = None) -> bool:
    """Whether wrapping would take effect with these settings."""
    if not is_monitor_enabled(cfg):
        return False
    return scorer is not None or has_monitor_credentials(cfg)


def apply_prompt_injection_monitor(
    tools: Sequence[AgentTool],
    state: MonitorState,
    cfg: MonitorConfig | None = None,
    *,
    scorer: Scorer | None = None,
) -> list[AgentTool]:
    """Wrap a session's toolset and expose the bypass tool alongside it.

    When the monitor is inactive the tools come back unchanged and no
    bypass tool is added.
    """
    if not is_monitor_active(cfg, scorer=scorer):
        return list(tools)

    wrapped = [
        wrap_tool_with_prompt_injection_monitor(t, state, cfg, scorer=scorer)
        for t in tools
        if t.name != DISABLE_MONITOR_TOOL_NAME
    ]
    wrapped.append(create_disable_monitor_tool(state))
    return wrapped

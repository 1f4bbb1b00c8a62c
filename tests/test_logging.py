"""Tests for promptguard structured logging and the debug trace."""

import json
import logging

import pytest

from promptguard.config import MonitorConfig
from promptguard.logging import (
    TRACE_LOGGER_NAME,
    PromptGuardFormatter,
    configure_logging,
    disable_debug_trace,
    enable_debug_trace,
    get_logger,
    get_trace_logger,
)
from promptguard.monitor.state import create_monitor_state
from promptguard.monitor.wrapper import wrap_tool_with_prompt_injection_monitor

from conftest import MALICIOUS_TEXT, make_scorer, make_stub_tool, make_text_result


def _record(name: str, level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name=name, level=level, pathname="test.py", lineno=1, msg=msg, args=(), exc_info=None,
    )


class TestPromptGuardFormatter:
    def test_human_readable_format(self):
        output = PromptGuardFormatter(json_output=False).format(
            _record("promptguard.monitor", logging.WARNING, "Prompt injection detected")
        )
        assert "promptguard.monitor" in output
        assert "Prompt injection detected" in output
        assert "WARNING" in output

    def test_json_format(self):
        output = PromptGuardFormatter(json_output=True).format(
            _record("promptguard.monitor", logging.INFO, "Bypass armed")
        )
        data = json.loads(output)
        assert data["logger"] == "promptguard.monitor"
        assert data["message"] == "Bypass armed"
        assert data["level"] == "INFO"
        assert "timestamp" in data

    def test_extra_fields_in_human_format(self):
        record = _record("promptguard", logging.WARNING, "Redacted")
        record.tool_name = "web_fetch"  # type: ignore[attr-defined]
        record.score = 75  # type: ignore[attr-defined]
        output = PromptGuardFormatter().format(record)
        assert "tool_name=web_fetch" in output
        assert "score=75" in output

    def test_extra_fields_in_json(self):
        record = _record("promptguard", logging.WARNING, "Redacted")
        record.action = "redact"  # type: ignore[attr-defined]
        record.tool_call_id = "call-1"  # type: ignore[attr-defined]
        data = json.loads(PromptGuardFormatter(json_output=True).format(record))
        assert data["action"] == "redact"
        assert data["tool_call_id"] == "call-1"


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("promptguard.test")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "promptguard.test"

    def test_default_name(self):
        assert get_logger().name == "promptguard"

    def test_trace_logger_name(self):
        assert get_trace_logger().name == TRACE_LOGGER_NAME


class TestConfigureLogging:
    def test_configure_debug(self):
        configure_logging(level="DEBUG")
        assert get_logger("promptguard").level == logging.DEBUG
        configure_logging()

    def test_configure_json(self):
        configure_logging(json_output=True)
        logger = get_logger("promptguard")
        assert len(logger.handlers) == 1
        formatter = logger.handlers[0].formatter
        assert isinstance(formatter, PromptGuardFormatter)
        assert formatter._json_output is True
        configure_logging(json_output=False)

    def test_trace_does_not_propagate(self):
        configure_logging()
        assert get_trace_logger().propagate is False


class TestDebugTrace:
    @pytest.mark.asyncio
    async def test_trace_records_monitor_steps(self, tmp_path):
        path = tmp_path / "monitor.log"
        handler = enable_debug_trace(path)
        try:
            tool = make_stub_tool(make_text_result(MALICIOUS_TEXT), name="web_fetch")
            wrapped = wrap_tool_with_prompt_injection_monitor(
                tool, create_monitor_state(), MonitorConfig(enabled=True), scorer=make_scorer(75, "bad")
            )
            await wrapped.execute("call-9", {}, None, None)
        finally:
            disable_debug_trace(handler)

        lines = path.read_text(encoding="utf-8")
        assert 'WRAPPED tool "web_fetch"' in lines
        assert "EXECUTE" in lines and "call-9" in lines
        assert "SCORING" in lines
        assert "REDACTED" in lines

    def test_disable_removes_handlers(self, tmp_path):
        enable_debug_trace(tmp_path / "a.log")
        enable_debug_trace(tmp_path / "b.log")
        disable_debug_trace()
        assert get_trace_logger().handlers == []

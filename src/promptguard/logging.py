"""
promptguard Structured Logging

Stdlib logging for the promptguard package. Records carry structured
fields (tool name, call id, score, action) passed through ``extra=``.

Usage:
    from promptguard.logging import get_logger

    logger = get_logger("promptguard.monitor")
    logger.warning("Prompt injection detected", extra={"tool_name": "web_fetch", "score": 75})

JSON lines for log shipping:
    from promptguard.logging import configure_logging
    configure_logging(json_output=True, level="INFO")

The monitor also writes a step-by-step trace (wrap, execute, skip, score,
redact) to the ``promptguard.monitor.trace`` logger. It is silent until
enabled with :func:`enable_debug_trace`.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

TRACE_LOGGER_NAME = "promptguard.monitor.trace"
DEFAULT_DEBUG_TRACE_PATH = "/tmp/promptguard-monitor.log"


# Record attributes passed via ``extra=`` that are rendered as structured fields
STRUCTURED_FIELDS = (
    "tool_name",
    "tool_call_id",
    "score",
    "action",
    "provider",
    "model",
    "duration_ms",
)


class PromptGuardFormatter(logging.Formatter):
    """Renders records as one human-readable line or one JSON object.

    Structured fields present on the record are appended as
    ``key=value`` pairs (human) or extra keys (JSON).
    """

    def __init__(self, json_output: bool = False):
        super().__init__()
        self._json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).isoformat()
        message = record.getMessage()
        fields: dict[str, Any] = {
            key: getattr(record, key)
            for key in STRUCTURED_FIELDS
            if getattr(record, key, None) is not None
        }

        if self._json_output:
            return json.dumps(
                {
                    "timestamp": timestamp,
                    "level": record.levelname,
                    "logger": record.name,
                    "message": message,
                    **fields,
                },
                default=str,
            )

        line = f"[{timestamp}] {record.levelname:8s} {record.name}: {message}"
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """Send promptguard logs to stderr.

    Replaces any handler installed by an earlier call.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown names fall back to INFO.
        json_output: One JSON object per line instead of human-readable text.
    """
    package_logger = logging.getLogger("promptguard")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    package_logger.propagate = False

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(PromptGuardFormatter(json_output=json_output))
    package_logger.handlers = [stream]

    # The trace is a separate side channel, never mixed into the main stream.
    logging.getLogger(TRACE_LOGGER_NAME).propagate = False


def get_logger(name: str = "promptguard") -> logging.Logger:
    """Logger under the promptguard hierarchy, e.g. "promptguard.monitor"."""
    return logging.getLogger(name)


def get_trace_logger() -> logging.Logger:
    """Logger for the monitor's debug trace side channel."""
    return logging.getLogger(TRACE_LOGGER_NAME)


def enable_debug_trace(path: str | Path = DEFAULT_DEBUG_TRACE_PATH) -> logging.Handler:
    """Append the monitor's step-by-step trace to a file.

    Returns the attached handler so callers can remove it again
    with :func:`disable_debug_trace`.
    """
    trace = get_trace_logger()
    handler = logging.FileHandler(str(path), encoding="utf-8")
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s"))
    trace.addHandler(handler)
    trace.setLevel(logging.DEBUG)
    trace.propagate = False
    return handler


def disable_debug_trace(handler: logging.Handler | None = None) -> None:
    """Detach one trace handler, or all of them when none is given."""
    trace = get_trace_logger()
    handlers = [handler] if handler is not None else list(trace.handlers)
    for h in handlers:
        trace.removeHandler(h)
        h.close()
    if not trace.handlers:
        trace.setLevel(logging.NOTSET)


# Stderr at INFO until the host calls configure_logging
configure_logging()

"""
promptguard Bypass State

Per-session flag that lets exactly one monitored tool call skip
scoring. The bypass tool arms it; the next monitored execution
consumes it. Reading and clearing happen under one lock so two
concurrent calls can never both observe the armed flag.

Create one MonitorState per agent session and pass it to every
wrapped tool and to the bypass tool. Never share it across sessions.
"""

from __future__ import annotations

import threading


class MonitorState:
    """Single-use "skip the next monitored call" flag."""

    def __init__(self) -> None:
        self._skip_next = False
        self._lock = threading.Lock()

    @property
    def skip_next(self) -> bool:
        with self._lock:
            return self._skip_next

    def arm(self) -> None:
        """Skip scoring for the next monitored call. Arming twice stays armed."""
        with self._lock:
            self._skip_next = True

    def consume(self) -> bool:
        """Return whether the flag was armed, disarming it in the same step."""
        with self._lock:
            armed = self._skip_next
            self._skip_next = False
            return armed

    def __repr__(self) -> str:
        return f"MonitorState(skip_next={self.skip_next})"


def create_monitor_state() -> MonitorState:
    """Fresh, disarmed state for a new agent session."""
    return MonitorState()

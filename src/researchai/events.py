"""Leveled, categorised event log.

Every pipeline step reports progress as a :class:`LogEvent`. Events are:

  - kept in a bounded in-memory history (newest last)
  - delivered to subscribed sinks (e.g. a dashboard broadcaster)
  - forwarded to stdlib ``logging`` under ``researchai.<category>``

Nothing in the pipeline depends on a sink being attached.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# level name → (icon, stdlib logging level)
LEVELS: dict[str, tuple[str, int]] = {
    "info": ("ℹ️", logging.INFO),
    "success": ("✅", logging.INFO),
    "error": ("❌", logging.ERROR),
    "warning": ("⚠️", logging.WARNING),
    "debug": ("🔧", logging.DEBUG),
    "process": ("🔄", logging.INFO),
    "data": ("📊", logging.INFO),
}

DEFAULT_HISTORY_SIZE = 1000


@dataclass(frozen=True)
class LogEvent:
    """A single emitted event."""

    level: str
    category: str
    message: str
    data: dict[str, Any] | None = None
    icon: str = ""
    id: str = field(default_factory=lambda: f"log_{uuid.uuid4().hex[:12]}")
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "level": self.level,
            "icon": self.icon,
            "category": self.category,
            "message": self.message,
            "data": self.data,
        }


Sink = Callable[[LogEvent], None]


class EventLog:
    """Thread-safe event recorder with history and fan-out to sinks.

    Args:
        history_size: Maximum number of events kept in memory.
        logger_name:  Root stdlib logger that events are forwarded to.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        logger_name: str = "researchai",
    ) -> None:
        self._history: deque[LogEvent] = deque(maxlen=history_size)
        self._sinks: list[Sink] = []
        self._lock = threading.Lock()
        self._logger_name = logger_name

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    def subscribe(self, sink: Sink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def unsubscribe(self, sink: Sink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def history(self, count: int | None = None) -> list[LogEvent]:
        """Return the last *count* events (all when None), oldest first."""
        with self._lock:
            events = list(self._history)
        if count is None:
            return events
        return events[-count:] if count > 0 else []

    def clear(self) -> None:
        with self._lock:
            self._history.clear()

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def emit(
        self,
        level: str,
        category: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> LogEvent:
        """Record an event and deliver it. Unknown levels fall back to ``info``."""
        if level not in LEVELS:
            level = "info"
        icon, std_level = LEVELS[level]
        event = LogEvent(level=level, category=category, message=message, data=data, icon=icon)

        with self._lock:
            self._history.append(event)
            sinks = list(self._sinks)

        logging.getLogger(f"{self._logger_name}.{category.lower()}").log(
            std_level, "[%s] %s", category, message
        )

        for sink in sinks:
            try:
                sink(event)
            except Exception:
                logging.getLogger(self._logger_name).debug(
                    "event sink %r failed", sink, exc_info=True
                )
        return event

    def info(self, category: str, message: str, data: dict[str, Any] | None = None) -> LogEvent:
        return self.emit("info", category, message, data)

    def success(self, category: str, message: str, data: dict[str, Any] | None = None) -> LogEvent:
        return self.emit("success", category, message, data)

    def warning(self, category: str, message: str, data: dict[str, Any] | None = None) -> LogEvent:
        return self.emit("warning", category, message, data)

    def error(self, category: str, message: str, data: dict[str, Any] | None = None) -> LogEvent:
        return self.emit("error", category, message, data)

    def debug(self, category: str, message: str, data: dict[str, Any] | None = None) -> LogEvent:
        return self.emit("debug", category, message, data)

    def process(self, category: str, message: str, data: dict[str, Any] | None = None) -> LogEvent:
        return self.emit("process", category, message, data)

    def data(self, category: str, message: str, data: dict[str, Any] | None = None) -> LogEvent:
        return self.emit("data", category, message, data)

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    def separator(self, char: str = "─", length: int = 50) -> None:
        self.info("SYSTEM", char * length)

    def header(self, title: str) -> None:
        self.info("SYSTEM", "═" * 60)
        self.info("SYSTEM", f"📋 {title}")
        self.info("SYSTEM", "═" * 60)

    def step(self, number: int, total: int, message: str) -> None:
        self.process("PIPELINE", f"Step {number}/{total}: {message}")


_default_log: EventLog | None = None
_default_lock = threading.Lock()


def get_event_log() -> EventLog:
    """Return the process-wide EventLog, creating it on first use."""
    global _default_log
    with _default_lock:
        if _default_log is None:
            _default_log = EventLog()
        return _default_log


def set_event_log(log: EventLog) -> None:
    """Replace the process-wide EventLog (e.g. with a configured history size)."""
    global _default_log
    with _default_lock:
        _default_log = log

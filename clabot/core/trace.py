"""Run-scoped trace collector.

A :class:`RunTrace` is created once per reconciliation run and handed to the
components taking part in it.  Every event recorded on it is forwarded to
structlog and also kept in order, so the full trace can be rendered into the
operator report once the run is over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog


@dataclass
class TraceEntry:
    at: datetime
    level: str
    event: str
    fields: dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        stamp = self.at.strftime("%Y-%m-%d %H:%M:%S")
        extra = " ".join(f"{k}={v}" for k, v in self.fields.items())
        line = f"{stamp} [{self.level:<7}] {self.event}"
        return f"{line} {extra}" if extra else line


class RunTrace:
    """Ordered record of one run's log events."""

    def __init__(self, logger_name: str = "clabot.run") -> None:
        self._log = structlog.get_logger(logger_name)
        self.entries: list[TraceEntry] = []

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def events(self, level: str | None = None) -> list[str]:
        """Return recorded event names, optionally filtered by *level*."""
        return [e.event for e in self.entries if level is None or e.level == level]

    def render(self) -> str:
        return "\n".join(e.render() for e in self.entries)

    def _emit(self, level: str, event: str, fields: dict[str, Any]) -> None:
        self.entries.append(
            TraceEntry(at=datetime.now(timezone.utc), level=level, event=event, fields=fields)
        )
        getattr(self._log, level)(event, **fields)

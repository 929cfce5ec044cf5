"""
Observability for agentcore.

Provides logging setup and a structured logger for agent turn events.

Design Philosophy:
- Plain `logging` everywhere (`logging.getLogger(__name__)`)
- Optional JSON-formatted output for log shipping
- Turn-level events carry an agent name and turn id for correlation

Usage:
    configure_logging(level="DEBUG", fmt="json")

    log = AgentLogger(agent_name="researcher", turn_id="abc-123")
    log.turn_started(max_iterations=5, history_behavior="last")
    log.llm_call(iteration=1, latency_ms=812.4, total_tokens=950)
    log.turn_completed(status="answered", iterations=2, duration_ms=2100.0)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Attributes present on every LogRecord; anything else was passed via `extra`
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys() | {"message", "asctime"}
)


# =============================================================================
# Log Levels
# =============================================================================


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# Formatter and Setup
# =============================================================================


class JSONFormatter(logging.Formatter):
    """
    Formats records as single-line JSON.

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
         "logger": "agentcore.agent.agent", "message": "Turn started",
         "agent": "researcher", "turn_id": "abc-123"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """
    Install a root handler for the agentcore process.

    Args:
        level: Logging level name
        fmt: "text" for human-readable lines, "json" for JSONFormatter
    """
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
    logger.debug(f"[observability] Logging configured (level={level}, format={fmt})")


# =============================================================================
# Agent Logger
# =============================================================================


@dataclass
class AgentLogger:
    """
    Structured logger for agent turn events.

    Context fields are attached via `extra`, so they show up as keys with
    JSONFormatter and are ignored by the plain text format.
    """

    agent_name: str
    turn_id: str | None = None
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("agentcore.agent"), init=False
    )

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        extra = {"agent": self.agent_name, **self.extra_context, **context}
        if self.turn_id:
            extra["turn_id"] = self.turn_id

        getattr(self._python_logger, level.value)(
            f"[{self.agent_name}] {message}", extra=extra
        )

    def with_turn(self, turn_id: str) -> "AgentLogger":
        """Create a logger bound to one turn."""
        return AgentLogger(
            agent_name=self.agent_name,
            turn_id=turn_id,
            extra_context=dict(self.extra_context),
        )

    # Turn lifecycle
    def turn_started(self, max_iterations: int, history_behavior: str) -> None:
        self._log(
            LogLevel.INFO,
            "Turn started",
            {"max_iterations": max_iterations, "history_behavior": history_behavior},
        )

    def turn_completed(
        self,
        status: str,
        iterations: int,
        duration_ms: float,
        error: str | None = None,
    ) -> None:
        level = LogLevel.INFO if error is None else LogLevel.ERROR
        self._log(
            level,
            f"Turn finished: {status}",
            {
                "status": status,
                "iterations": iterations,
                "duration_ms": round(duration_ms, 2),
                "error": error,
            },
        )

    # Model calls
    def llm_call(self, iteration: int, latency_ms: float, total_tokens: int) -> None:
        self._log(
            LogLevel.DEBUG,
            f"LLM call took {latency_ms / 1000:.1f}s ({total_tokens} tokens)",
            {
                "iteration": iteration,
                "latency_ms": round(latency_ms, 2),
                "total_tokens": total_tokens,
            },
        )

    # Tools
    def tool_batch(self, iteration: int, tool_names: list[str], failures: int) -> None:
        self._log(
            LogLevel.INFO,
            f"Executed {len(tool_names)} tool call(s): {', '.join(tool_names)}",
            {"iteration": iteration, "tools": tool_names, "failures": failures},
        )

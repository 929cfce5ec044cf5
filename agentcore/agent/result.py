"""
Agent Turn Result.

This module defines the result returned by Agent.run_turn(). Every turn
ends with an answer string, including failed ones, so callers that only
need text can use Agent.process_turn() instead.

Usage:
    result = await agent.run_turn("Compare these papers")

    if result.success:
        print(result.answer)
    else:
        print(f"{result.status.value}: {result.answer}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

NO_RESPONSE_TEXT = "No response generated."
BACKEND_ERROR_TEXT = "Error: No response from LLM API after retries"
INVALID_RESPONSE_TEXT = "Error: Invalid response structure from LLM"
MAX_ITERATIONS_TEXT = "Max iterations reached without response."


class TurnStatus(str, Enum):
    """How a turn ended."""

    ANSWERED = "answered"
    NO_RESPONSE = "no_response"  # Model returned neither content nor tool calls
    BACKEND_ERROR = "backend_error"  # Retries exhausted
    INVALID_RESPONSE = "invalid_response"  # Response had no message
    MAX_ITERATIONS = "max_iterations"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class TurnResult:
    """
    Result of one agent turn.

    Contains:
    - answer: Text returned to the caller (final reply, salvage or error text)
    - status: How the turn ended
    - iterations: Iterations counted against the cap
    - tools_called: Function names requested, in order
    - llm_calls / tokens_used / llm_latency_ms: Backend accounting for this turn
    """

    answer: str
    status: TurnStatus

    iterations: int = 0
    tools_called: tuple[str, ...] = ()

    llm_calls: int = 0
    tokens_used: int = 0
    llm_latency_ms: float = 0.0

    started_at: datetime = field(default_factory=_now)
    completed_at: datetime = field(default_factory=_now)

    @property
    def success(self) -> bool:
        return self.status is TurnStatus.ANSWERED

    @property
    def duration_ms(self) -> float:
        """Wall-clock time of the turn in milliseconds."""
        return (self.completed_at - self.started_at).total_seconds() * 1000

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "answer": self.answer,
            "status": self.status.value,
            "success": self.success,
            "iterations": self.iterations,
            "tools_called": list(self.tools_called),
            "llm_calls": self.llm_calls,
            "tokens_used": self.tokens_used,
            "llm_latency_ms": self.llm_latency_ms,
            "duration_ms": self.duration_ms,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
        }


# =============================================================================
# Factory Functions
# =============================================================================


def answered_result(answer: str, **counters: Any) -> TurnResult:
    """Create a result for a turn that ended with a final reply."""
    return TurnResult(answer=answer, status=TurnStatus.ANSWERED, completed_at=_now(), **counters)


def no_response_result(**counters: Any) -> TurnResult:
    """Create a result for a reply with neither content nor tool calls."""
    return TurnResult(
        answer=NO_RESPONSE_TEXT,
        status=TurnStatus.NO_RESPONSE,
        completed_at=_now(),
        **counters,
    )


def backend_error_result(**counters: Any) -> TurnResult:
    """Create a result for a backend that kept failing through every retry."""
    return TurnResult(
        answer=BACKEND_ERROR_TEXT,
        status=TurnStatus.BACKEND_ERROR,
        completed_at=_now(),
        **counters,
    )


def invalid_response_result(**counters: Any) -> TurnResult:
    """Create a result for a response that carried no message."""
    return TurnResult(
        answer=INVALID_RESPONSE_TEXT,
        status=TurnStatus.INVALID_RESPONSE,
        completed_at=_now(),
        **counters,
    )


def max_iterations_result(salvaged: str | None, **counters: Any) -> TurnResult:
    """
    Create a result for a turn that ran out of iterations.

    Args:
        salvaged: Formatted information gathered so far, if any
    """
    return TurnResult(
        answer=salvaged or MAX_ITERATIONS_TEXT,
        status=TurnStatus.MAX_ITERATIONS,
        completed_at=_now(),
        **counters,
    )

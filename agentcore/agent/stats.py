"""
Agent Accounting.

Cumulative backend accounting for one agent instance: LLM calls, latency
and tokens. Updated under a lock; read through snapshot().
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agentcore.llm.base import TokenUsage


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    llm_calls: int = 0
    latency_ms: float = 0.0
    tokens_used: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "llm_calls": self.llm_calls,
            "latency_ms": self.latency_ms,
            "tokens_used": self.tokens_used,
        }


class AgentStats:
    """
    Thread-safe accumulator for backend calls.

    Example:
        stats = AgentStats()
        stats.record_llm_call(latency_ms=120.5, usage=response.usage)
        stats.snapshot().tokens_used
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._llm_calls = 0
        self._latency_ms = 0.0
        self._tokens_used = 0

    def record_llm_call(self, latency_ms: float, usage: TokenUsage | None = None) -> None:
        """Count one backend attempt, with its latency and token usage if any."""
        with self._lock:
            self._llm_calls += 1
            self._latency_ms += latency_ms
            if usage is not None:
                self._tokens_used += usage.total_tokens

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                llm_calls=self._llm_calls,
                latency_ms=self._latency_ms,
                tokens_used=self._tokens_used,
            )

    def reset(self) -> None:
        with self._lock:
            self._llm_calls = 0
            self._latency_ms = 0.0
            self._tokens_used = 0

    def __repr__(self) -> str:
        s = self.snapshot()
        return f"<AgentStats calls={s.llm_calls} latency_ms={s.latency_ms:.1f} tokens={s.tokens_used}>"
